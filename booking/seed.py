"""Create tables and load a demo branch when the database is empty.

Usage:
    python -m booking.seed
"""
import sys
from datetime import time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking.database import Base, SessionLocal, engine, ensure_appointment_schema
from booking.models.appointment import Appointment  # noqa: F401
from booking.models.branch import Branch, OperatingHours
from booking.models.consultant import Consultant
from booking.models.service import Service

WEEKDAYS = range(0, 5)
WEEKEND = range(5, 7)


def seed_demo_data(db: Session) -> bool:
    if db.query(Branch).first() is not None:
        return False

    branch = Branch(name='Sandton', city='Johannesburg', is_active=True)
    db.add(branch)
    db.flush()

    for day in WEEKDAYS:
        db.add(OperatingHours(branch_id=branch.id, day_of_week=day, open_time=time(8, 0), close_time=time(17, 0)))
    for day in WEEKEND:
        db.add(
            OperatingHours(
                branch_id=branch.id,
                day_of_week=day,
                open_time=time(8, 0),
                close_time=time(17, 0),
                is_closed=True,
            )
        )

    db.add_all([
        Consultant(branch_id=branch.id, first_name='Thandi', last_name='Mokoena'),
        Consultant(branch_id=branch.id, first_name='Pieter', last_name='van Wyk'),
        Service(name='Consultation', duration_minutes=30),
    ])
    db.commit()
    return True


def main() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_appointment_schema()
        db = SessionLocal()
        try:
            created = seed_demo_data(db)
        finally:
            db.close()
    except SQLAlchemyError as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        sys.exit(1)

    print("Demo data created." if created else "Database already contains branches; nothing to do.")


if __name__ == "__main__":
    main()
