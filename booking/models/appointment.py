"""Appointment model definitions."""

import enum

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Index, Integer, String, Time, func, text
from sqlalchemy.orm import relationship

from booking.database import Base
from booking.models.branch import Branch
from booking.models.consultant import Consultant
from booking.models.customer import Customer
from booking.models.service import Service


class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no_show"


class Appointment(Base):
    """Represents a booked appointment held by one consultant."""
    __tablename__ = "appointments"
    __table_args__ = (
        # Only blocks a second live booking with the same consultant and start time.
        # Overlaps with different starts are kept out by the availability check.
        Index(
            "ix_appointments_consultant_date_start",
            "consultant_id",
            "appointment_date",
            "start_time",
            unique=True,
            postgresql_where=text("consultant_id IS NOT NULL AND status <> 'cancelled'"),
            sqlite_where=text("consultant_id IS NOT NULL AND status <> 'cancelled'"),
        ),
        Index("ix_appointments_branch_date", "branch_id", "appointment_date"),
    )

    id = Column(Integer, primary_key=True)
    confirmation_code = Column(String(50), unique=True, nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    consultant_id = Column(Integer, ForeignKey("consultants.id"), nullable=True)
    appointment_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(
        Enum(
            AppointmentStatus,
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=AppointmentStatus.CONFIRMED,
    )
    notes = Column(String(500))
    cancellation_reason = Column(String(500))
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime)

    customer = relationship(Customer)
    branch = relationship(Branch)
    service = relationship(Service)
    consultant = relationship(Consultant)
