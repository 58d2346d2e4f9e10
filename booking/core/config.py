import os
from datetime import time

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_time(value: str | None, default: time) -> time:
    if not value:
        return default
    return time.fromisoformat(value.strip())


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking.db")
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:4200"])

SLOT_INCREMENT_MINUTES = int(os.getenv("SLOT_INCREMENT_MINUTES", "15"))
DISPLAY_INTERVAL_MINUTES = int(os.getenv("DISPLAY_INTERVAL_MINUTES", "30"))
MIN_LEAD_TIME_MINUTES = int(os.getenv("MIN_LEAD_TIME_MINUTES", "60"))

DEFAULT_OPEN_TIME = _get_time(os.getenv("DEFAULT_OPEN_TIME"), time(8, 0))
DEFAULT_CLOSE_TIME = _get_time(os.getenv("DEFAULT_CLOSE_TIME"), time(17, 0))

DEFAULT_AVAILABLE_DAYS_AHEAD = int(os.getenv("DEFAULT_AVAILABLE_DAYS_AHEAD", "30"))
MAX_AVAILABLE_DAYS_AHEAD = 60

CONFIRMATION_CODE_PREFIX = "APT"
CONFIRMATION_CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CONFIRMATION_CODE_RANDOM_LENGTH = 5
CONFIRMATION_CODE_MAX_ATTEMPTS = int(os.getenv("CONFIRMATION_CODE_MAX_ATTEMPTS", "10"))

# Set to 1 to surface a lost insert race as "slot taken" without reassigning.
BOOKING_MAX_ATTEMPTS = int(os.getenv("BOOKING_MAX_ATTEMPTS", "3"))

MAX_NAME_LENGTH = 50
MAX_EMAIL_LENGTH = 100
MAX_PHONE_LENGTH = 20
MAX_NOTES_LENGTH = 500


def validate_runtime_config() -> None:
    if SLOT_INCREMENT_MINUTES <= 0 or 60 % SLOT_INCREMENT_MINUTES != 0:
        raise RuntimeError("SLOT_INCREMENT_MINUTES must be a positive divisor of 60.")
    if DISPLAY_INTERVAL_MINUTES <= 0:
        raise RuntimeError("DISPLAY_INTERVAL_MINUTES must be positive.")
    if DEFAULT_CLOSE_TIME <= DEFAULT_OPEN_TIME:
        raise RuntimeError("DEFAULT_CLOSE_TIME must be later than DEFAULT_OPEN_TIME.")
    if CONFIRMATION_CODE_MAX_ATTEMPTS < 1:
        raise RuntimeError("CONFIRMATION_CODE_MAX_ATTEMPTS must be at least 1.")
    if BOOKING_MAX_ATTEMPTS < 1:
        raise RuntimeError("BOOKING_MAX_ATTEMPTS must be at least 1.")
    if APP_ENV.lower() == "production" and DATABASE_URL.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must point at a database server in production.")
