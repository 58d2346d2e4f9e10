import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from booking.core import config
from booking.core.exceptions import NotFoundError
from booking.models.appointment import Appointment, AppointmentStatus
from booking.models.branch import Branch
from booking.models.consultant import Consultant
from booking.models.service import Service
from booking.schemas import SlotAvailability
from booking.scheduling.operating_hours import resolve_operating_hours
from booking.scheduling.slots import intervals_overlap, iterate_display_starts

logger = logging.getLogger(__name__)

BookedIntervals = dict[int, list[tuple[time, time]]]


def get_active_service(db: Session, service_id: int) -> Service:
    service = db.query(Service).filter(Service.id == service_id).first()
    if service is None or not service.is_active:
        logger.warning('Service not found or inactive: %s', service_id)
        raise NotFoundError('Service', service_id)
    return service


def get_active_branch(db: Session, branch_id: int) -> Branch:
    branch = db.query(Branch).filter(Branch.id == branch_id).first()
    if branch is None or not branch.is_active:
        logger.warning('Branch not found or inactive: %s', branch_id)
        raise NotFoundError('Branch', branch_id)
    return branch


def list_active_consultants(db: Session, branch_id: int) -> list[Consultant]:
    # Ascending id keeps first-fit assignment deterministic.
    return db.query(Consultant).filter(
        Consultant.branch_id == branch_id,
        Consultant.is_active.is_(True),
    ).order_by(Consultant.id.asc()).all()


def load_booked_intervals(
    db: Session,
    consultant_ids: list[int],
    on_date: date,
    before: time | None = None,
) -> BookedIntervals:
    """Map each consultant id to its non-cancelled ``(start, end)`` intervals on ``on_date``.

    ``before`` limits the scan to appointments starting before that time.
    """
    booked: BookedIntervals = defaultdict(list)
    if not consultant_ids:
        return booked

    query = db.query(Appointment.consultant_id, Appointment.start_time, Appointment.end_time).filter(
        Appointment.consultant_id.in_(consultant_ids),
        Appointment.appointment_date == on_date,
        Appointment.status != AppointmentStatus.CANCELLED,
    )
    if before is not None:
        query = query.filter(Appointment.start_time < before)

    for consultant_id, booked_start, booked_end in query.all():
        booked[consultant_id].append((booked_start, booked_end))

    return booked


def consultant_is_free(intervals: list[tuple[time, time]], start_time: time, end_time: time) -> bool:
    return not any(
        intervals_overlap(booked_start, booked_end, start_time, end_time)
        for booked_start, booked_end in intervals
    )


def count_available_consultants(
    consultants: list[Consultant],
    booked: BookedIntervals,
    start_time: time,
    end_time: time,
) -> int:
    return sum(
        1 for consultant in consultants
        if consultant_is_free(booked.get(consultant.id, []), start_time, end_time)
    )


def is_slot_in_future(on_date: date, start_time: time, now: datetime | None = None) -> bool:
    # Server-local wall clock, not the branch's time zone.
    now = now or datetime.now()
    return datetime.combine(on_date, start_time) > now + timedelta(minutes=config.MIN_LEAD_TIME_MINUTES)


def is_slot_available(
    db: Session,
    branch_id: int,
    on_date: date,
    start_time: time,
    end_time: time,
    now: datetime | None = None,
) -> bool:
    if not is_slot_in_future(on_date, start_time, now):
        return False

    consultants = list_active_consultants(db, branch_id)
    booked = load_booked_intervals(db, [consultant.id for consultant in consultants], on_date, before=end_time)

    return count_available_consultants(consultants, booked, start_time, end_time) > 0


def get_available_slots(
    db: Session,
    branch_id: int,
    service_id: int,
    on_date: date,
    now: datetime | None = None,
) -> list[SlotAvailability]:
    service = get_active_service(db, service_id)
    get_active_branch(db, branch_id)

    window = resolve_operating_hours(db, branch_id, on_date)
    if window.is_closed:
        return []

    now = now or datetime.now()
    consultants = list_active_consultants(db, branch_id)
    booked = load_booked_intervals(db, [consultant.id for consultant in consultants], on_date)

    slots: list[SlotAvailability] = []
    for slot_start, slot_end in iterate_display_starts(window, on_date, service.duration_minutes):
        available_count = count_available_consultants(consultants, booked, slot_start, slot_end)
        is_available = available_count > 0 and is_slot_in_future(on_date, slot_start, now)

        slots.append(
            SlotAvailability(
                date=on_date,
                start_time=slot_start,
                end_time=slot_end,
                is_available=is_available,
                available_consultant_count=available_count if is_available else 0,
                total_consultant_count=len(consultants),
            )
        )

    logger.debug(
        'Computed %d slots for branch %s service %s on %s', len(slots), branch_id, service_id, on_date,
    )
    return slots


def get_available_dates(
    db: Session,
    branch_id: int,
    days_ahead: int = config.DEFAULT_AVAILABLE_DAYS_AHEAD,
    today: date | None = None,
) -> list[date]:
    get_active_branch(db, branch_id)

    today = today or date.today()
    open_dates: list[date] = []

    for offset in range(1, days_ahead + 1):
        candidate = today + timedelta(days=offset)
        if not resolve_operating_hours(db, branch_id, candidate).is_closed:
            open_dates.append(candidate)

    return open_dates
