from datetime import datetime, timedelta
from typing import Iterable

from backend.scheduling.errors import InvalidInput
from backend.scheduling.ports import BookingRepository
from backend.scheduling.types import Booking, as_utc


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    # Half-open intervals: touching boundaries do not overlap.
    return a_start < b_end and b_start < a_end


def find_conflict(
    bookings: Iterable[Booking],
    start: datetime,
    duration_minutes: int,
    exclude_booking_id: int | None = None,
) -> Booking | None:
    end = start + timedelta(minutes=duration_minutes)
    for booking in bookings:
        if not booking.is_active:
            continue
        if exclude_booking_id is not None and booking.id == exclude_booking_id:
            continue
        if intervals_overlap(start, end, booking.appointment_time, booking.end_time):
            return booking
    return None


class ConflictChecker:
    """Answers whether a proposed interval collides with live booking data."""

    def __init__(self, bookings: BookingRepository):
        self.bookings = bookings

    def find(
        self,
        doctor_id: str,
        proposed_start: datetime,
        duration_minutes: int,
        exclude_booking_id: int | None = None,
    ) -> Booking | None:
        if duration_minutes <= 0:
            raise InvalidInput('duration_minutes must be positive.')

        start = as_utc(proposed_start)
        end = start + timedelta(minutes=duration_minutes)
        active = self.bookings.get_active_bookings(doctor_id, start, end)
        return find_conflict(active, start, duration_minutes, exclude_booking_id)

    def conflicts(
        self,
        doctor_id: str,
        proposed_start: datetime,
        duration_minutes: int,
        exclude_booking_id: int | None = None,
    ) -> bool:
        return self.find(doctor_id, proposed_start, duration_minutes, exclude_booking_id) is not None
