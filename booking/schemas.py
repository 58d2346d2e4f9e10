"""Request and response models shared by the booking engine and its routes."""

import re
from datetime import date, datetime, time

from pydantic import BaseModel, field_validator

from booking.core import config
from booking.models.appointment import AppointmentStatus

PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{1,14}$')


def _normalize_optional_text(value: str | None, field_name: str) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > config.MAX_NOTES_LENGTH:
        raise ValueError(f'{field_name} must be {config.MAX_NOTES_LENGTH} characters or fewer.')

    return normalized


class CustomerDetails(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        if len(normalized) > config.MAX_NAME_LENGTH:
            raise ValueError(f'Name cannot exceed {config.MAX_NAME_LENGTH} characters.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Email is required.')
        if len(normalized) > config.MAX_EMAIL_LENGTH:
            raise ValueError(f'Email cannot exceed {config.MAX_EMAIL_LENGTH} characters.')
        local_part, _, domain = normalized.partition('@')
        if not local_part or '.' not in domain:
            raise ValueError('Invalid email format.')
        return normalized

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str) -> str:
        normalized = value.strip().replace(' ', '')
        if not PHONE_PATTERN.match(normalized):
            raise ValueError('Invalid phone number format. Use international format (e.g., +1234567890).')
        return normalized


class CreateAppointmentRequest(BaseModel):
    branch_id: int
    service_id: int
    appointment_date: date
    start_time: time
    customer: CustomerDetails
    notes: str | None = None

    @field_validator('branch_id', 'service_id')
    @classmethod
    def validate_positive_id(cls, value: int) -> int:
        if value <= 0:
            raise ValueError('Branch and service are required.')
        return value

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Notes')


class CancelAppointmentRequest(BaseModel):
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        return _normalize_optional_text(value, 'Cancellation reason')


class UpdateStatusRequest(BaseModel):
    status: AppointmentStatus


class SlotAvailability(BaseModel):
    date: date
    start_time: time
    end_time: time
    is_available: bool
    available_consultant_count: int
    total_consultant_count: int


class BranchSummary(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ServiceSummary(BaseModel):
    id: int
    name: str
    duration_minutes: int

    class Config:
        from_attributes = True


class CustomerSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str

    class Config:
        from_attributes = True


class ConsultantSummary(BaseModel):
    id: int
    full_name: str

    class Config:
        from_attributes = True


class AppointmentResponse(BaseModel):
    id: int
    confirmation_code: str
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    notes: str | None = None
    cancellation_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    branch: BranchSummary
    service: ServiceSummary
    customer: CustomerSummary
    consultant: ConsultantSummary | None = None

    class Config:
        from_attributes = True
