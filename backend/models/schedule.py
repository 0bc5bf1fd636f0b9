"""Doctor schedule model definitions."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Time, UniqueConstraint, func

from backend.database import Base


class WeeklyAvailability(Base):
    """Recurring weekly working hours; day_of_week 0=Sunday..6=Saturday."""
    __tablename__ = "weekly_availability"

    id = Column(Integer, primary_key=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    slot_duration_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class BlockedDate(Base):
    """A full calendar day on which the doctor takes no bookings."""
    __tablename__ = "blocked_dates"
    __table_args__ = (UniqueConstraint("doctor_id", "date", name="uq_blocked_dates_doctor_date"),)

    id = Column(Integer, primary_key=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
