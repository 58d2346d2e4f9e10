import logging
from datetime import date, time

from sqlalchemy.orm import Session

from booking.core.exceptions import NoConsultantAvailableError
from booking.models.consultant import Consultant
from booking.scheduling.availability import consultant_is_free, list_active_consultants, load_booked_intervals

logger = logging.getLogger(__name__)


def assign_consultant(db: Session, branch_id: int, on_date: date, start_time: time, end_time: time) -> Consultant:
    """Pick the first active consultant, by ascending id, with no overlapping booking.

    Two concurrent callers can both get the same consultant back; the unique
    (consultant_id, appointment_date, start_time) index rejects the loser's insert.
    """
    consultants = list_active_consultants(db, branch_id)
    if not consultants:
        logger.warning('No consultants found for branch %s', branch_id)
        raise NoConsultantAvailableError(
            'No consultants are available at the selected time. Please choose another time.'
        )

    booked = load_booked_intervals(db, [consultant.id for consultant in consultants], on_date, before=end_time)

    for consultant in consultants:
        if consultant_is_free(booked.get(consultant.id, []), start_time, end_time):
            logger.debug('Assigned consultant %s for branch %s on %s at %s', consultant.id, branch_id, on_date, start_time)
            return consultant

    logger.debug(
        'No available consultants for branch %s on %s %s-%s', branch_id, on_date, start_time, end_time,
    )
    raise NoConsultantAvailableError(
        'No consultants are available at the selected time. Please choose another time.'
    )
