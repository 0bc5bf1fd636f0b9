import os
from dataclasses import replace
from datetime import date, datetime, timezone
from threading import Lock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from backend.database import Base, ensure_booking_schema  # noqa: E402
from backend.models.booking import Booking as BookingRow  # noqa: E402
from backend.models.doctor import Doctor  # noqa: E402
from backend.models.schedule import BlockedDate as BlockedDateRow  # noqa: E402
from backend.models.schedule import WeeklyAvailability  # noqa: E402
from backend.scheduling.conflicts import find_conflict  # noqa: E402
from backend.scheduling.errors import BookingConflict, ResourceNotFound  # noqa: E402
from backend.scheduling.types import (  # noqa: E402
    ACTIVE_STATUSES,
    BlockedDate,
    Booking,
    BookingFilters,
    BookingStatus,
    DoctorProfile,
    WeeklyAvailabilityWindow,
)

FIXED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryDoctorDirectory:
    def __init__(self):
        self.doctors: dict[str, DoctorProfile] = {}

    def add(self, doctor_id: str, approved: bool = True, accepting_new_patients: bool = True, specialty_id: int | None = 1):
        profile = DoctorProfile(
            id=doctor_id,
            approved=approved,
            accepting_new_patients=accepting_new_patients,
            specialty_id=specialty_id,
        )
        self.doctors[doctor_id] = profile
        return profile

    def get(self, doctor_id: str) -> DoctorProfile | None:
        return self.doctors.get(doctor_id)


class InMemoryScheduleStore:
    def __init__(self):
        self.windows: list[WeeklyAvailabilityWindow] = []
        self.blocked: dict[tuple[str, date], BlockedDate] = {}

    def get_weekly_windows(self, doctor_id: str, day_of_week: int) -> list[WeeklyAvailabilityWindow]:
        return [w for w in self.windows if w.doctor_id == doctor_id and w.day_of_week == day_of_week]

    def get_blocked_date(self, doctor_id: str, on_date: date) -> BlockedDate | None:
        return self.blocked.get((doctor_id, on_date))

    def list_windows(self, doctor_id: str) -> list[WeeklyAvailabilityWindow]:
        return sorted(
            (w for w in self.windows if w.doctor_id == doctor_id),
            key=lambda w: (w.day_of_week, w.start_time),
        )

    def add_window(self, window: WeeklyAvailabilityWindow) -> WeeklyAvailabilityWindow:
        self.windows.append(window)
        return window

    def list_blocked_dates(self, doctor_id: str, start: date | None = None) -> list[BlockedDate]:
        return sorted(
            (b for (owner, day), b in self.blocked.items() if owner == doctor_id and (start is None or day >= start)),
            key=lambda b: b.date,
        )

    def add_blocked_date(self, blocked: BlockedDate) -> BlockedDate:
        key = (blocked.doctor_id, blocked.date)
        if key in self.blocked:
            raise BookingConflict('This date is already blocked.')
        self.blocked[key] = blocked
        return blocked

    def remove_blocked_date(self, doctor_id: str, on_date: date) -> bool:
        return self.blocked.pop((doctor_id, on_date), None) is not None


class InMemoryBookingRepository:
    """Enforces non-overlap on insert the way the SQL store does."""

    def __init__(self):
        self.bookings: dict[int, Booking] = {}
        self._next_id = 1
        self._lock = Lock()
        self.insert_calls = 0

    def seed(self, booking: Booking) -> Booking:
        with self._lock:
            stored = replace(booking, id=self._next_id)
            self.bookings[stored.id] = stored
            self._next_id += 1
            return stored

    def get_active_bookings(self, doctor_id: str, start: datetime, end: datetime) -> list[Booking]:
        return sorted(
            (
                b for b in self.bookings.values()
                if b.doctor_id == doctor_id and b.is_active and b.appointment_time < end and b.end_time > start
            ),
            key=lambda b: b.appointment_time,
        )

    def insert(self, booking: Booking) -> Booking:
        self.insert_calls += 1
        with self._lock:
            active = [b for b in self.bookings.values() if b.doctor_id == booking.doctor_id]
            if find_conflict(active, booking.appointment_time, booking.duration_minutes) is not None:
                raise BookingConflict('Time slot conflicts with existing booking.')
            stored = replace(booking, id=self._next_id)
            self.bookings[stored.id] = stored
            self._next_id += 1
            return stored

    def get(self, booking_id: int) -> Booking | None:
        return self.bookings.get(booking_id)

    def find_active_booking(self, doctor_id: str, patient_id: str, appointment_time: datetime) -> Booking | None:
        for booking in self.bookings.values():
            if (
                booking.doctor_id == doctor_id
                and booking.patient_id == patient_id
                and booking.appointment_time == appointment_time
                and booking.status in ACTIVE_STATUSES
            ):
                return booking
        return None

    def update_status(self, booking_id: int, status: BookingStatus, updated_at: datetime) -> Booking:
        if booking_id not in self.bookings:
            raise ResourceNotFound('Booking not found.')
        updated = replace(self.bookings[booking_id], status=status, updated_at=updated_at)
        self.bookings[booking_id] = updated
        return updated

    def search(self, filters: BookingFilters) -> list[Booking]:
        matches = [
            b for b in self.bookings.values()
            if (not filters.patient_id or b.patient_id == filters.patient_id)
            and (not filters.doctor_id or b.doctor_id == filters.doctor_id)
            and (not filters.statuses or b.status in filters.statuses)
            and (not filters.start or b.appointment_time >= filters.start)
            and (not filters.end or b.appointment_time < filters.end)
        ]
        matches.sort(key=lambda b: (b.appointment_time, b.id))
        return matches[filters.offset:filters.offset + filters.limit]

    def count_by_status(self, start: datetime | None, end: datetime | None) -> dict[BookingStatus, int]:
        counts: dict[BookingStatus, int] = {}
        for b in self.bookings.values():
            if (start and b.appointment_time < start) or (end and b.appointment_time >= end):
                continue
            counts[b.status] = counts.get(b.status, 0) + 1
        return counts


@pytest.fixture
def doctors() -> InMemoryDoctorDirectory:
    return InMemoryDoctorDirectory()


@pytest.fixture
def schedules() -> InMemoryScheduleStore:
    return InMemoryScheduleStore()


@pytest.fixture
def bookings() -> InMemoryBookingRepository:
    return InMemoryBookingRepository()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(
        bind=engine,
        tables=[Doctor.__table__, WeeklyAvailability.__table__, BlockedDateRow.__table__, BookingRow.__table__],
    )
    ensure_booking_schema(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db_session(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
