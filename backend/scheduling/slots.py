from datetime import time

from backend.core import config
from backend.scheduling.errors import InvalidWindow
from backend.scheduling.types import WeeklyAvailabilityWindow


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def _as_time(total_minutes: int) -> time:
    return time(total_minutes // 60, total_minutes % 60)


def resolve_slot_duration(window: WeeklyAvailabilityWindow, slot_duration_minutes: int | None = None) -> int:
    duration = slot_duration_minutes or window.slot_duration_minutes or config.DEFAULT_SLOT_DURATION_MINUTES
    if duration <= 0:
        raise InvalidWindow('Slot duration must be a positive number of minutes.')
    return duration


def generate(window: WeeklyAvailabilityWindow, slot_duration_minutes: int | None = None) -> list[time]:
    """Return the slot start times covering [start_time, end_time) of a window.

    Steps are ``slot_duration_minutes`` wide; a trailing remainder shorter than
    one slot is dropped, so no slot crosses the window's end.
    """
    start = _minutes(window.start_time)
    end = _minutes(window.end_time)
    if start >= end:
        raise InvalidWindow('Availability window start time must be before its end time.')

    duration = resolve_slot_duration(window, slot_duration_minutes)

    starts: list[time] = []
    current = start
    while current + duration <= end:
        starts.append(_as_time(current))
        current += duration

    return starts
