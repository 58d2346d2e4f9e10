import os
from datetime import date, datetime, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from booking.database import Base  # noqa: E402
from booking.models.appointment import Appointment, AppointmentStatus  # noqa: E402
from booking.models.branch import Branch, OperatingHours  # noqa: E402
from booking.models.consultant import Consultant  # noqa: E402
from booking.models.customer import Customer  # noqa: E402
from booking.models.service import Service  # noqa: E402
from booking.schemas import CreateAppointmentRequest, CustomerDetails  # noqa: E402

MONDAY = date(2025, 6, 2)
SATURDAY = date(2025, 6, 7)
NOW = datetime(2025, 6, 1, 8, 0)


def build_request(
    branch_id: int,
    service_id: int,
    start_time: time,
    email: str = 'jane@example.com',
    appointment_date: date = MONDAY,
    notes: str | None = None,
) -> CreateAppointmentRequest:
    return CreateAppointmentRequest(
        branch_id=branch_id,
        service_id=service_id,
        appointment_date=appointment_date,
        start_time=start_time,
        customer=CustomerDetails(
            first_name='Jane',
            last_name='Doe',
            email=email,
            phone='+27821234567',
        ),
        notes=notes,
    )


def add_branch(db, name: str = 'Sandton', consultants: int = 2, weekday_hours: bool = True) -> Branch:
    """Create a branch open 08:00-17:00 Monday to Friday and closed at weekends."""
    branch = Branch(name=name, city='Johannesburg', is_active=True)
    db.add(branch)
    db.flush()

    if weekday_hours:
        for day in range(7):
            db.add(
                OperatingHours(
                    branch_id=branch.id,
                    day_of_week=day,
                    open_time=time(8, 0),
                    close_time=time(17, 0),
                    is_closed=day >= 5,
                )
            )

    for index in range(consultants):
        db.add(Consultant(branch_id=branch.id, first_name='Consultant', last_name=str(index + 1)))

    db.commit()
    db.refresh(branch)
    return branch


def add_service(db, duration_minutes: int = 30, name: str = 'Consultation') -> Service:
    service = Service(name=name, duration_minutes=duration_minutes, is_active=True)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def add_appointment(
    db,
    branch: Branch,
    service: Service,
    consultant_id: int | None,
    start_time: time,
    end_time: time,
    email: str = 'existing@example.com',
    appointment_date: date = MONDAY,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    code: str | None = None,
) -> Appointment:
    customer = db.query(Customer).filter(Customer.email == email).first()
    if customer is None:
        customer = Customer(first_name='Existing', last_name='Customer', email=email, phone='+27820000000')
        db.add(customer)
        db.flush()

    appointment_count = db.query(Appointment).count()
    appointment = Appointment(
        confirmation_code=code or f'APT-20250601-TEST{appointment_count}',
        customer_id=customer.id,
        branch_id=branch.id,
        service_id=service.id,
        consultant_id=consultant_id,
        appointment_date=appointment_date,
        start_time=start_time,
        end_time=end_time,
        status=status,
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def consultant_ids(db, branch: Branch) -> list[int]:
    return [
        consultant.id
        for consultant in db.query(Consultant).filter(Consultant.branch_id == branch.id).order_by(Consultant.id).all()
    ]


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def sandton(db) -> Branch:
    return add_branch(db)


@pytest.fixture
def consultation(db) -> Service:
    return add_service(db)


@pytest.fixture
def make_branch(db):
    def factory(**kwargs) -> Branch:
        return add_branch(db, **kwargs)
    return factory


@pytest.fixture
def make_service(db):
    def factory(**kwargs) -> Service:
        return add_service(db, **kwargs)
    return factory


@pytest.fixture
def make_appointment(db):
    def factory(*args, **kwargs) -> Appointment:
        return add_appointment(db, *args, **kwargs)
    return factory


@pytest.fixture
def make_request():
    return build_request


@pytest.fixture
def branch_consultant_ids(db):
    def lookup(branch: Branch) -> list[int]:
        return consultant_ids(db, branch)
    return lookup


@pytest.fixture
def session_factory(tmp_path):
    """Sessions on a file-backed database so several threads can book at once."""
    engine = create_engine(
        f'sqlite:///{tmp_path / "booking.db"}',
        connect_args={'check_same_thread': False, 'timeout': 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
