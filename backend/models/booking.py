"""Booking model definitions."""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text

from backend.database import ACTIVE_STATUS_SQL, Base


class Booking(Base):
    """An appointment; rows are never deleted, cancellation is a status."""
    __tablename__ = "bookings"
    __table_args__ = (
        Index(
            "uq_bookings_active_slot",
            "doctor_id",
            "appointment_time",
            unique=True,
            sqlite_where=text(ACTIVE_STATUS_SQL),
            postgresql_where=text(ACTIVE_STATUS_SQL),
        ),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(String(36), nullable=False)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    specialty_id = Column(Integer, nullable=True)
    appointment_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    status = Column(String(32), nullable=False, default="pending")
    channel = Column(String(16), nullable=False, default="app")
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
