"""Doctor model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from backend.database import Base


class Doctor(Base):
    """A practitioner patients can book with."""
    __tablename__ = "doctors"

    id = Column(String(36), primary_key=True)
    full_name = Column(String, nullable=False, default='')
    specialty_id = Column(Integer, nullable=True)
    approved = Column(Boolean, nullable=False, default=False)
    accepting_new_patients = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
