from datetime import date, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from booking.core import config
from booking.core.exceptions import BookingError
from booking.database import get_db
from booking.routes.errors import database_unavailable, ensure_database_ready, to_http_exception
from booking.schemas import SlotAvailability
from booking.scheduling.availability import get_available_dates, get_available_slots, is_slot_available

router = APIRouter(tags=['availability'])


class SlotCheckResponse(BaseModel):
    branch_id: int
    date: date
    start_time: time
    end_time: time
    is_available: bool


@router.get('/slots', response_model=list[SlotAvailability])
def list_available_slots(
    branch_id: int = Query(..., gt=0),
    service_id: int = Query(..., gt=0),
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return get_available_slots(db, branch_id, service_id, slot_date)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/dates', response_model=list[date])
def list_available_dates(
    branch_id: int = Query(..., gt=0),
    days_ahead: int = Query(default=config.DEFAULT_AVAILABLE_DAYS_AHEAD, ge=1, le=config.MAX_AVAILABLE_DAYS_AHEAD),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        return get_available_dates(db, branch_id, days_ahead)
    except BookingError as exc:
        raise to_http_exception(exc) from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


@router.get('/check', response_model=SlotCheckResponse)
def check_slot(
    branch_id: int = Query(..., gt=0),
    slot_date: date = Query(..., alias='date'),
    start_time: time = Query(...),
    end_time: time = Query(...),
    db: Session = Depends(get_db),
):
    if end_time <= start_time:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='End time must be later than start time.',
        )

    ensure_database_ready()

    try:
        available = is_slot_available(db, branch_id, slot_date, start_time, end_time)
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc

    return SlotCheckResponse(
        branch_id=branch_id,
        date=slot_date,
        start_time=start_time,
        end_time=end_time,
        is_available=available,
    )
