from datetime import date, datetime, time, timedelta

from booking.core import config
from booking.core.exceptions import BranchClosedError, InvalidSlotError, OutsideOperatingHoursError
from booking.scheduling.operating_hours import OperatingWindow


def intervals_overlap(first_start: time, first_end: time, second_start: time, second_end: time) -> bool:
    return first_start < second_end and second_start < first_end


def is_on_slot_grid(start_time: time) -> bool:
    return (
        start_time.minute % config.SLOT_INCREMENT_MINUTES == 0
        and start_time.second == 0
        and start_time.microsecond == 0
    )


def validate_slot_increment(start_time: time) -> None:
    if not is_on_slot_grid(start_time):
        raise InvalidSlotError(
            f'Appointment time must be on {config.SLOT_INCREMENT_MINUTES}-minute increments '
            '(e.g., 09:00, 09:15, 09:30, 09:45).'
        )


def compute_end_time(on_date: date, start_time: time, duration_minutes: int) -> time:
    start = datetime.combine(on_date, start_time)
    end = start + timedelta(minutes=duration_minutes)

    if end.date() != on_date:
        raise OutsideOperatingHoursError('Appointments cannot run past midnight.')

    return end.time()


def validate_operating_hours(window: OperatingWindow, on_date: date, start_time: time, end_time: time) -> None:
    if window.is_closed:
        raise BranchClosedError(
            f'The branch is closed on {on_date.strftime("%A")}. Please select a different day.'
        )

    if start_time < window.open_time or end_time > window.close_time:
        raise OutsideOperatingHoursError(
            'Appointments are only available during operating hours '
            f'({window.open_time:%H:%M} - {window.close_time:%H:%M}).'
        )


def iterate_display_starts(window: OperatingWindow, on_date: date, duration_minutes: int):
    """Yield ``(start, end)`` pairs across the window in display-interval steps."""
    current = datetime.combine(on_date, window.open_time)
    close = datetime.combine(on_date, window.close_time)
    duration = timedelta(minutes=duration_minutes)
    step = timedelta(minutes=config.DISPLAY_INTERVAL_MINUTES)

    while current + duration <= close:
        yield current.time(), (current + duration).time()
        current += step
