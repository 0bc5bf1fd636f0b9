import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable

from backend.core import config
from backend.scheduling import slots
from backend.scheduling.conflicts import find_conflict
from backend.scheduling.errors import InvalidInput
from backend.scheduling.ports import BookingRepository, ScheduleRepository
from backend.scheduling.types import TimeSlot, day_bounds, day_of_week_index, utc_now, validate_identifier

logger = logging.getLogger(__name__)


def parse_query_date(value: date | str) -> date:
    if isinstance(value, datetime):
        raise InvalidInput('date must be a calendar date without a time of day.')
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat((value or '').strip())
    except ValueError as exc:
        raise InvalidInput('Invalid date format. Use YYYY-MM-DD.') from exc


class AvailabilityResolver:
    """Turns a doctor's weekly windows into the bookable slots of one date."""

    def __init__(
        self,
        schedules: ScheduleRepository,
        bookings: BookingRepository,
        clock: Callable[[], datetime] = utc_now,
        default_slot_duration_minutes: int | None = None,
    ):
        self.schedules = schedules
        self.bookings = bookings
        self.clock = clock
        self.default_slot_duration_minutes = default_slot_duration_minutes or config.DEFAULT_SLOT_DURATION_MINUTES

    def resolve(self, doctor_id: str, on_date: date | str) -> list[TimeSlot]:
        try:
            doctor_id = validate_identifier(doctor_id, 'doctor_id')
        except ValueError as exc:
            raise InvalidInput(str(exc)) from exc
        target_date = parse_query_date(on_date)

        windows = self.schedules.get_weekly_windows(doctor_id, day_of_week_index(target_date))
        if not windows:
            logger.debug('No weekly windows for doctor %s on %s', doctor_id, target_date)
            return []

        if self.schedules.get_blocked_date(doctor_id, target_date) is not None:
            logger.debug('Doctor %s has %s blocked', doctor_id, target_date)
            return []

        candidates: list[tuple[datetime, int]] = []
        seen: set[tuple[datetime, int]] = set()
        for window in windows:
            duration = window.slot_duration_minutes or self.default_slot_duration_minutes
            for slot_start in slots.generate(window, duration):
                key = (datetime.combine(target_date, slot_start, tzinfo=timezone.utc), duration)
                if key in seen:
                    continue
                seen.add(key)
                candidates.append(key)

        # sorted() is stable, so equal start times keep window then generation order.
        candidates = sorted(candidates, key=lambda candidate: candidate[0])

        day_start, day_end = day_bounds(target_date)
        active_bookings = list(self.bookings.get_active_bookings(doctor_id, day_start, day_end))
        now = self.clock()

        resolved: list[TimeSlot] = []
        for start, duration in candidates:
            if start <= now:
                continue
            conflict = find_conflict(active_bookings, start, duration)
            resolved.append(
                TimeSlot(
                    start_time=start,
                    duration_minutes=duration,
                    available=conflict is None,
                    conflicting_booking_id=conflict.id if conflict else None,
                )
            )

        return resolved

    def covering_slots(self, doctor_id: str, start: datetime, duration_minutes: int) -> list[TimeSlot] | None:
        """Return the back-to-back slots spanning ``[start, start + duration)``.

        ``None`` means some part of the interval is not covered by a slot on
        that date, so the booking would fall outside the doctor's hours.
        """
        by_start: dict[datetime, TimeSlot] = {}
        for slot in self.resolve(doctor_id, start.date()):
            by_start.setdefault(slot.start_time, slot)

        end = start + timedelta(minutes=duration_minutes)
        covered: list[TimeSlot] = []
        cursor = start
        while cursor < end:
            slot = by_start.get(cursor)
            if slot is None:
                return None
            covered.append(slot)
            cursor = slot.end_time
        return covered
