from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking.core.exceptions import BookingError
from booking.database import get_db
from booking.routes.errors import database_unavailable, ensure_database_ready, to_http_exception
from booking.schemas import AppointmentResponse, CancelAppointmentRequest, CreateAppointmentRequest, UpdateStatusRequest
from booking.scheduling import appointments

router = APIRouter(tags=['appointments'])


class MessageResponse(BaseModel):
    message: str


def _appointment_not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail='Appointment not found.',
    )


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(data: CreateAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        return appointments.create_appointment(db, data)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc


@router.get('/confirmation/{confirmation_code}', response_model=AppointmentResponse)
def get_appointment_by_confirmation_code(confirmation_code: str, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointment = appointments.get_appointment_by_code(db, confirmation_code)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if appointment is None:
        raise _appointment_not_found()
    return appointment


@router.get('/customer/{email}', response_model=list[AppointmentResponse])
def list_customer_appointments(
    email: str,
    scope: Literal['all', 'upcoming', 'past'] = Query(default='all'),
    db: Session = Depends(get_db),
):
    normalized_email = email.strip().lower()
    if not normalized_email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Customer email is required.',
        )

    ensure_database_ready()

    try:
        return appointments.list_customer_appointments(db, normalized_email, scope)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/branch/{branch_id}', response_model=list[AppointmentResponse])
def list_branch_appointments(
    branch_id: int,
    appointment_date: date | None = Query(default=None, alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return appointments.list_branch_appointments(db, branch_id, appointment_date)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/consultant/{consultant_id}', response_model=list[AppointmentResponse])
def list_consultant_appointments(
    consultant_id: int,
    start_date: date = Query(...),
    end_date: date = Query(...),
    db: Session = Depends(get_db),
):
    if end_date < start_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='End date must not be before start date.',
        )

    ensure_database_ready()

    try:
        return appointments.list_consultant_appointments(db, consultant_id, start_date, end_date)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointment = appointments.get_appointment(db, appointment_id)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    if appointment is None:
        raise _appointment_not_found()
    return appointment


@router.post('/{appointment_id}/cancel', response_model=MessageResponse)
def cancel_appointment(appointment_id: int, data: CancelAppointmentRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointments.cancel_appointment(db, appointment_id, data.reason)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return MessageResponse(message='Appointment cancelled successfully.')


@router.patch('/{appointment_id}/status', response_model=MessageResponse)
def update_appointment_status(appointment_id: int, data: UpdateStatusRequest, db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        appointments.update_appointment_status(db, appointment_id, data.status)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise database_unavailable(exc) from exc

    return MessageResponse(message='Appointment status updated successfully.')
