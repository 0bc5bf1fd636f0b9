from datetime import date, datetime
from typing import Protocol, Sequence, runtime_checkable

from backend.scheduling.types import BlockedDate, Booking, BookingFilters, BookingStatus, DoctorProfile, WeeklyAvailabilityWindow


@runtime_checkable
class ScheduleRepository(Protocol):
    def get_weekly_windows(self, doctor_id: str, day_of_week: int) -> Sequence[WeeklyAvailabilityWindow]: ...

    def get_blocked_date(self, doctor_id: str, on_date: date) -> BlockedDate | None: ...


@runtime_checkable
class BookingRepository(Protocol):
    def get_active_bookings(self, doctor_id: str, start: datetime, end: datetime) -> Sequence[Booking]: ...

    def insert(self, booking: Booking) -> Booking: ...

    def get(self, booking_id: int) -> Booking | None: ...

    def find_active_booking(self, doctor_id: str, patient_id: str, appointment_time: datetime) -> Booking | None: ...

    def update_status(self, booking_id: int, status: BookingStatus, updated_at: datetime) -> Booking: ...

    def search(self, filters: BookingFilters) -> Sequence[Booking]: ...

    def count_by_status(self, start: datetime | None, end: datetime | None) -> dict[BookingStatus, int]: ...


@runtime_checkable
class DoctorDirectory(Protocol):
    def get(self, doctor_id: str) -> DoctorProfile | None: ...


@runtime_checkable
class ScheduleStore(ScheduleRepository, Protocol):
    def list_windows(self, doctor_id: str) -> Sequence[WeeklyAvailabilityWindow]: ...

    def add_window(self, window: WeeklyAvailabilityWindow) -> WeeklyAvailabilityWindow: ...

    def list_blocked_dates(self, doctor_id: str, start: date | None = None) -> Sequence[BlockedDate]: ...

    def add_blocked_date(self, blocked: BlockedDate) -> BlockedDate: ...

    def remove_blocked_date(self, doctor_id: str, on_date: date) -> bool: ...
