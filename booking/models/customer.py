"""Customer model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, func

from booking.database import Base


class Customer(Base):
    """A person who books appointments, identified by email."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    email = Column(String(100), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
