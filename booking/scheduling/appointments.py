"""Appointment booking and lifecycle.

``create_appointment`` is the only way appointments are created. It runs
the cheap validations first, then the customer and availability checks,
and finally writes the customer and appointment rows in one transaction.
The availability pre-check is optimistic: the unique consultant slot index
is what actually stops two concurrent requests from taking the same
consultant. A request that loses that race is rolled back and reassigned
from a fresh read, up to ``BOOKING_MAX_ATTEMPTS`` times, after which it
surfaces as ``SlotUnavailableError``.
"""

import logging
from datetime import date, datetime
from typing import Literal

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from booking.core import config
from booking.core.exceptions import (
    BookingValidationError,
    InvalidStatusTransitionError,
    NotFoundError,
    SlotUnavailableError,
)
from booking.models.appointment import Appointment, AppointmentStatus
from booking.schemas import CreateAppointmentRequest
from booking.scheduling.assignment import assign_consultant
from booking.scheduling.availability import get_active_branch, get_active_service, is_slot_available
from booking.scheduling.confirmation import generate_confirmation_code
from booking.scheduling.customers import ensure_customer_available, find_customer_by_email, find_or_create_customer
from booking.scheduling.operating_hours import resolve_operating_hours
from booking.scheduling.slots import compute_end_time, validate_operating_hours, validate_slot_increment
from booking.scheduling.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

CustomerScope = Literal['all', 'upcoming', 'past']

ALLOWED_STATUS_TRANSITIONS = {
    AppointmentStatus.PENDING: {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED},
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
    AppointmentStatus.CANCELLED: set(),
    AppointmentStatus.COMPLETED: set(),
    AppointmentStatus.NO_SHOW: set(),
}


def _hydrated_query(db: Session):
    return db.query(Appointment).options(
        joinedload(Appointment.branch),
        joinedload(Appointment.service),
        joinedload(Appointment.customer),
        joinedload(Appointment.consultant),
    )


def _persist_appointment(db: Session, data: CreateAppointmentRequest, service, consultant, end_time) -> str:
    """Write the customer and appointment rows in one transaction and return the confirmation code."""
    unit_of_work = UnitOfWork(db)
    unit_of_work.begin()
    try:
        customer = find_or_create_customer(db, data.customer)
        confirmation_code = generate_confirmation_code(db)

        db.add(
            Appointment(
                confirmation_code=confirmation_code,
                customer_id=customer.id,
                branch_id=data.branch_id,
                service_id=service.id,
                consultant_id=consultant.id,
                appointment_date=data.appointment_date,
                start_time=data.start_time,
                end_time=end_time,
                status=AppointmentStatus.CONFIRMED,
                notes=data.notes,
            )
        )
        unit_of_work.commit()
    except IntegrityError as exc:
        unit_of_work.rollback()
        logger.warning(
            'Lost booking race for consultant %s on %s at %s', consultant.id, data.appointment_date, data.start_time,
        )
        raise SlotUnavailableError(
            'The selected time slot was just booked by someone else. Please choose another time.'
        ) from exc
    except BaseException:
        # Includes cancellation of the request while the write is in flight.
        if unit_of_work.has_active_transaction():
            unit_of_work.rollback()
        raise

    return confirmation_code


def create_appointment(db: Session, data: CreateAppointmentRequest, now: datetime | None = None) -> Appointment:
    logger.info('Creating appointment for customer %s at branch %s', data.customer.email, data.branch_id)

    service = get_active_service(db, data.service_id)
    get_active_branch(db, data.branch_id)

    try:
        validate_slot_increment(data.start_time)
        end_time = compute_end_time(data.appointment_date, data.start_time, service.duration_minutes)

        window = resolve_operating_hours(db, data.branch_id, data.appointment_date)
        validate_operating_hours(window, data.appointment_date, data.start_time, end_time)
    except BookingValidationError as exc:
        logger.warning(
            'Rejected booking for branch %s on %s at %s: %s',
            data.branch_id, data.appointment_date, data.start_time, exc.message,
        )
        raise

    attempt = 1
    while True:
        ensure_customer_available(db, data.customer.email, data.appointment_date, data.start_time, end_time)

        if not is_slot_available(db, data.branch_id, data.appointment_date, data.start_time, end_time, now):
            logger.warning(
                'Time slot not available for branch %s on %s at %s',
                data.branch_id, data.appointment_date, data.start_time,
            )
            raise SlotUnavailableError('The selected time slot is not available. Please choose another time.')

        consultant = assign_consultant(db, data.branch_id, data.appointment_date, data.start_time, end_time)

        try:
            confirmation_code = _persist_appointment(db, data, service, consultant, end_time)
            break
        except SlotUnavailableError:
            if attempt >= config.BOOKING_MAX_ATTEMPTS:
                raise
            attempt += 1
            logger.info('Retrying booking with a fresh consultant assignment (attempt %d)', attempt)

    logger.info(
        'Appointment created with confirmation code %s, assigned to consultant %s',
        confirmation_code, consultant.id,
    )
    return get_appointment_by_code(db, confirmation_code)


def get_appointment(db: Session, appointment_id: int) -> Appointment | None:
    return _hydrated_query(db).filter(Appointment.id == appointment_id).first()


def get_appointment_by_code(db: Session, confirmation_code: str) -> Appointment | None:
    normalized = (confirmation_code or '').strip().upper()
    if not normalized:
        return None
    return _hydrated_query(db).filter(Appointment.confirmation_code == normalized).first()


def list_customer_appointments(
    db: Session,
    email: str,
    scope: CustomerScope = 'all',
    today: date | None = None,
) -> list[Appointment]:
    customer = find_customer_by_email(db, email)
    if customer is None:
        return []

    today = today or date.today()
    query = _hydrated_query(db).filter(Appointment.customer_id == customer.id)

    if scope == 'upcoming':
        return query.filter(
            Appointment.appointment_date >= today,
            Appointment.status != AppointmentStatus.CANCELLED,
        ).order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc()).all()

    if scope == 'past':
        return query.filter(
            (Appointment.appointment_date < today) | (Appointment.status == AppointmentStatus.COMPLETED),
        ).order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc()).all()

    return query.order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc()).all()


def list_branch_appointments(db: Session, branch_id: int, on_date: date | None = None) -> list[Appointment]:
    query = _hydrated_query(db).filter(Appointment.branch_id == branch_id)
    if on_date is not None:
        query = query.filter(Appointment.appointment_date == on_date)
    return query.order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc()).all()


def list_consultant_appointments(
    db: Session,
    consultant_id: int,
    start_date: date,
    end_date: date,
) -> list[Appointment]:
    return _hydrated_query(db).filter(
        Appointment.consultant_id == consultant_id,
        Appointment.appointment_date >= start_date,
        Appointment.appointment_date <= end_date,
    ).order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc()).all()


def _get_appointment_for_update(db: Session, appointment_id: int) -> Appointment:
    appointment = db.query(Appointment).filter(Appointment.id == appointment_id).first()
    if appointment is None:
        logger.error('Appointment not found: %s', appointment_id)
        raise NotFoundError('Appointment', appointment_id)
    return appointment


def cancel_appointment(db: Session, appointment_id: int, reason: str | None = None) -> bool:
    """Mark the appointment cancelled; rows are never deleted.

    Cancelling an appointment that is already cancelled changes nothing.
    """
    appointment = _get_appointment_for_update(db, appointment_id)

    if appointment.status == AppointmentStatus.CANCELLED:
        logger.info('Appointment %s is already cancelled', appointment_id)
        return True

    appointment.status = AppointmentStatus.CANCELLED
    appointment.cancellation_reason = reason
    appointment.updated_at = func.now()
    db.commit()

    logger.info('Appointment cancelled: %s', appointment_id)
    return True


def update_appointment_status(db: Session, appointment_id: int, status: AppointmentStatus) -> bool:
    """Move the appointment along its lifecycle.

    Cancelled, completed and no-show appointments are final; a cancelled
    slot may already belong to someone else, so it is never reactivated.
    Setting the current status again changes nothing.
    """
    appointment = _get_appointment_for_update(db, appointment_id)
    current = AppointmentStatus(appointment.status)

    if current == status:
        return True

    if status not in ALLOWED_STATUS_TRANSITIONS[current]:
        logger.warning('Rejected status change for appointment %s: %s -> %s', appointment_id, current.value, status.value)
        raise InvalidStatusTransitionError(
            f'An appointment that is {current.value} cannot be changed to {status.value}.'
        )

    appointment.status = status
    appointment.updated_at = func.now()
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Status change for appointment %s conflicts with another booking', appointment_id)
        raise SlotUnavailableError(
            'The appointment time is now held by another booking and cannot be restored.'
        ) from exc

    logger.info('Appointment %s status updated to %s', appointment_id, status.value)
    return True
