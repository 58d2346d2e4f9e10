"""Consultant model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from booking.database import Base


class Consultant(Base):
    """A staff member at a branch who can hold one appointment at a time."""
    __tablename__ = "consultants"

    id = Column(Integer, primary_key=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=False, index=True)
    first_name = Column(String(50), nullable=False, default="")
    last_name = Column(String(50), nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, server_default=func.now())

    branch = relationship("Branch", back_populates="consultants")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
