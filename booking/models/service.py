"""Service model definitions."""

from sqlalchemy import Boolean, Column, Integer, String

from booking.database import Base


class Service(Base):
    """A bookable service; its duration fixes every appointment's end time."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
