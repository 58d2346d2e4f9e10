from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from booking.core.exceptions import (
    BookingConflictError,
    BookingError,
    BookingValidationError,
    CodeGenerationExhaustedError,
    NotFoundError,
)
from booking.database import ensure_appointment_schema

DATABASE_UNAVAILABLE_DETAIL = 'Database unavailable. Verify DATABASE_URL and database credentials.'


def ensure_database_ready() -> None:
    try:
        ensure_appointment_schema()
    except SQLAlchemyError as exc:
        raise database_unavailable(exc) from exc


def database_unavailable(_exc: SQLAlchemyError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=DATABASE_UNAVAILABLE_DETAIL,
    )


def to_http_exception(exc: BookingError) -> HTTPException:
    if isinstance(exc, BookingValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, BookingConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, CodeGenerationExhaustedError):
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    else:
        status_code = status.HTTP_400_BAD_REQUEST

    return HTTPException(status_code=status_code, detail=exc.message)
