from datetime import date, time
from typing import NamedTuple

from sqlalchemy.orm import Session

from booking.core import config
from booking.models.branch import OperatingHours


class OperatingWindow(NamedTuple):
    open_time: time
    close_time: time
    is_closed: bool


def default_operating_window() -> OperatingWindow:
    return OperatingWindow(config.DEFAULT_OPEN_TIME, config.DEFAULT_CLOSE_TIME, False)


def resolve_operating_hours(db: Session, branch_id: int, on_date: date) -> OperatingWindow:
    """Return the branch's opening window for the weekday of ``on_date``.

    Weekdays without a stored row fall back to the default window. A row
    flagged closed wins over whatever times it stores.
    """
    hours = db.query(OperatingHours).filter(
        OperatingHours.branch_id == branch_id,
        OperatingHours.day_of_week == on_date.weekday(),
    ).first()

    if hours is None:
        return default_operating_window()

    return OperatingWindow(hours.open_time, hours.close_time, bool(hours.is_closed))
