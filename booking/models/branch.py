"""Branch and operating-hours model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Time, UniqueConstraint, func
from sqlalchemy.orm import relationship

from booking.database import Base
from booking.models.consultant import Consultant


class Branch(Base):
    """A physical location with its own weekly schedule and consultant pool."""
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    city = Column(String(100))
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    operating_hours = relationship("OperatingHours", back_populates="branch", order_by="OperatingHours.day_of_week")
    consultants = relationship(Consultant, back_populates="branch", order_by=Consultant.id)


class OperatingHours(Base):
    """Opening hours of a branch for one weekday (Monday is 0)."""
    __tablename__ = "branch_operating_hours"
    __table_args__ = (
        UniqueConstraint("branch_id", "day_of_week", name="uq_branch_operating_hours_day"),
    )

    id = Column(Integer, primary_key=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    open_time = Column(Time, nullable=False)
    close_time = Column(Time, nullable=False)
    is_closed = Column(Boolean, nullable=False, default=False)

    branch = relationship("Branch", back_populates="operating_hours")
