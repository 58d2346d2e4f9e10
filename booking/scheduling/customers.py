import logging
from datetime import date, time

from sqlalchemy.orm import Session

from booking.core.exceptions import CustomerDoubleBookedError
from booking.models.appointment import Appointment, AppointmentStatus
from booking.models.branch import Branch
from booking.models.customer import Customer
from booking.schemas import CustomerDetails
from booking.scheduling.slots import intervals_overlap

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_customer_by_email(db: Session, email: str) -> Customer | None:
    return db.query(Customer).filter(Customer.email == normalize_email(email)).first()


def ensure_customer_available(db: Session, email: str, on_date: date, start_time: time, end_time: time) -> None:
    """Reject the booking if the customer already has an overlapping appointment at any branch."""
    customer = find_customer_by_email(db, email)
    if customer is None:
        return

    candidates = db.query(Appointment).filter(
        Appointment.customer_id == customer.id,
        Appointment.appointment_date == on_date,
        Appointment.status != AppointmentStatus.CANCELLED,
        Appointment.start_time < end_time,
    ).order_by(Appointment.start_time.asc()).all()

    conflict = next(
        (
            appointment for appointment in candidates
            if intervals_overlap(appointment.start_time, appointment.end_time, start_time, end_time)
        ),
        None,
    )
    if conflict is None:
        return

    branch = db.query(Branch).filter(Branch.id == conflict.branch_id).first()
    branch_name = branch.name if branch is not None else 'another branch'

    logger.warning(
        'Customer %s already has appointment at %s on %s at %s',
        customer.email, branch_name, on_date, conflict.start_time,
    )
    raise CustomerDoubleBookedError(
        f'You already have an appointment at {branch_name} on {on_date:%B} {on_date.day}, {on_date.year} '
        f'at {conflict.start_time:%H:%M}. Please choose a different time or cancel your existing appointment.',
        branch_name=branch_name,
    )


def find_or_create_customer(db: Session, details: CustomerDetails) -> Customer:
    email = normalize_email(details.email)
    customer = find_customer_by_email(db, email)
    if customer is not None:
        return customer

    logger.info('Creating new customer: %s', email)
    customer = Customer(
        first_name=details.first_name,
        last_name=details.last_name,
        email=email,
        phone=details.phone,
    )
    db.add(customer)
    db.flush()
    return customer
