import logging
import secrets
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from booking.core import config
from booking.core.exceptions import CodeGenerationExhaustedError
from booking.models.appointment import Appointment

logger = logging.getLogger(__name__)


def build_confirmation_code(today: date) -> str:
    random_part = ''.join(
        secrets.choice(config.CONFIRMATION_CODE_ALPHABET)
        for _ in range(config.CONFIRMATION_CODE_RANDOM_LENGTH)
    )
    return f'{config.CONFIRMATION_CODE_PREFIX}-{today:%Y%m%d}-{random_part}'


def confirmation_code_exists(db: Session, code: str) -> bool:
    return db.query(Appointment.id).filter(Appointment.confirmation_code == code).first() is not None


def generate_confirmation_code(db: Session, today: date | None = None) -> str:
    """Return an ``APT-YYYYMMDD-XXXXX`` code that no stored appointment uses yet."""
    today = today or datetime.now(timezone.utc).date()
    max_attempts = config.CONFIRMATION_CODE_MAX_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        code = build_confirmation_code(today)
        if not confirmation_code_exists(db, code):
            logger.debug('Generated confirmation code %s on attempt %d', code, attempt)
            return code

        logger.debug('Confirmation code collision for %s (attempt %d/%d)', code, attempt, max_attempts)

    logger.error('Failed to generate unique confirmation code after %d attempts', max_attempts)
    raise CodeGenerationExhaustedError(
        f'Unable to generate unique confirmation code after {max_attempts} attempts. Please try again.'
    )
