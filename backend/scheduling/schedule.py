import logging
from datetime import date, time

from backend.scheduling import slots
from backend.scheduling.errors import InvalidInput, InvalidWindow, ResourceNotFound
from backend.scheduling.ports import DoctorDirectory, ScheduleStore
from backend.scheduling.types import BlockedDate, WeeklyAvailabilityWindow, validate_identifier

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 300
MIN_SLOT_MINUTES = 5
MAX_SLOT_MINUTES = 240


class ScheduleService:
    """Maintains the weekly windows and blocked dates availability is built from."""

    def __init__(self, doctors: DoctorDirectory, schedules: ScheduleStore):
        self.doctors = doctors
        self.schedules = schedules

    def _require_doctor(self, doctor_id: str) -> str:
        try:
            doctor_id = validate_identifier(doctor_id, 'doctor_id')
        except ValueError as exc:
            raise InvalidInput(str(exc)) from exc
        if self.doctors.get(doctor_id) is None:
            raise ResourceNotFound('Doctor not found.')
        return doctor_id

    def add_window(
        self,
        doctor_id: str,
        day_of_week: int,
        start_time: time,
        end_time: time,
        slot_duration_minutes: int | None = None,
    ) -> WeeklyAvailabilityWindow:
        doctor_id = self._require_doctor(doctor_id)
        if not 0 <= day_of_week <= 6:
            raise InvalidInput('day_of_week must be between 0 (Sunday) and 6 (Saturday).')
        if slot_duration_minutes is not None and not MIN_SLOT_MINUTES <= slot_duration_minutes <= MAX_SLOT_MINUTES:
            raise InvalidInput(f'slot_duration_minutes must be between {MIN_SLOT_MINUTES} and {MAX_SLOT_MINUTES}.')

        window = WeeklyAvailabilityWindow(
            doctor_id=doctor_id,
            day_of_week=day_of_week,
            start_time=start_time.replace(second=0, microsecond=0),
            end_time=end_time.replace(second=0, microsecond=0),
            slot_duration_minutes=slot_duration_minutes,
        )
        if not slots.generate(window):
            raise InvalidWindow('Availability window is shorter than one slot.')

        saved = self.schedules.add_window(window)
        logger.info('Added %s-%s window on day %s for doctor %s', saved.start_time, saved.end_time, day_of_week, doctor_id)
        return saved

    def list_windows(self, doctor_id: str) -> list[WeeklyAvailabilityWindow]:
        return list(self.schedules.list_windows(self._require_doctor(doctor_id)))

    def block_date(self, doctor_id: str, on_date: date, reason: str | None = None) -> BlockedDate:
        doctor_id = self._require_doctor(doctor_id)
        normalized_reason = (reason or '').strip() or None
        if normalized_reason and len(normalized_reason) > MAX_REASON_LENGTH:
            raise InvalidInput(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')

        blocked = self.schedules.add_blocked_date(BlockedDate(doctor_id=doctor_id, date=on_date, reason=normalized_reason))
        logger.info('Blocked %s for doctor %s', on_date, doctor_id)
        return blocked

    def list_blocked_dates(self, doctor_id: str, start: date | None = None) -> list[BlockedDate]:
        return list(self.schedules.list_blocked_dates(self._require_doctor(doctor_id), start))

    def unblock_date(self, doctor_id: str, on_date: date) -> None:
        doctor_id = self._require_doctor(doctor_id)
        if not self.schedules.remove_blocked_date(doctor_id, on_date):
            raise ResourceNotFound('Blocked date not found.')
        logger.info('Unblocked %s for doctor %s', on_date, doctor_id)
