import logging
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.schedule import BlockedDate as BlockedDateRow
from backend.models.schedule import WeeklyAvailability
from backend.repositories.retry import read_operation
from backend.scheduling.errors import BookingConflict, RepositoryError
from backend.scheduling.types import BlockedDate, WeeklyAvailabilityWindow

logger = logging.getLogger(__name__)


def _to_window(row: WeeklyAvailability) -> WeeklyAvailabilityWindow:
    return WeeklyAvailabilityWindow(
        doctor_id=row.doctor_id,
        day_of_week=row.day_of_week,
        start_time=row.start_time,
        end_time=row.end_time,
        slot_duration_minutes=row.slot_duration_minutes,
    )


def _to_blocked_date(row: BlockedDateRow) -> BlockedDate:
    return BlockedDate(doctor_id=row.doctor_id, date=row.date, reason=row.reason)


class SqlScheduleRepository:
    def __init__(self, session: Session):
        self.session = session

    @read_operation('weekly window lookup')
    def get_weekly_windows(self, doctor_id: str, day_of_week: int) -> list[WeeklyAvailabilityWindow]:
        rows = self.session.query(WeeklyAvailability).filter(
            WeeklyAvailability.doctor_id == doctor_id,
            WeeklyAvailability.day_of_week == day_of_week,
        ).order_by(WeeklyAvailability.id.asc()).all()
        return [_to_window(row) for row in rows]

    @read_operation('blocked date lookup')
    def get_blocked_date(self, doctor_id: str, on_date: date) -> BlockedDate | None:
        row = self.session.query(BlockedDateRow).filter(
            BlockedDateRow.doctor_id == doctor_id,
            BlockedDateRow.date == on_date,
        ).first()
        return _to_blocked_date(row) if row else None

    @read_operation('weekly window listing')
    def list_windows(self, doctor_id: str) -> list[WeeklyAvailabilityWindow]:
        rows = self.session.query(WeeklyAvailability).filter(
            WeeklyAvailability.doctor_id == doctor_id,
        ).order_by(
            WeeklyAvailability.day_of_week.asc(),
            WeeklyAvailability.start_time.asc(),
            WeeklyAvailability.id.asc(),
        ).all()
        return [_to_window(row) for row in rows]

    @read_operation('blocked date listing')
    def list_blocked_dates(self, doctor_id: str, start: date | None = None) -> list[BlockedDate]:
        query = self.session.query(BlockedDateRow).filter(BlockedDateRow.doctor_id == doctor_id)
        if start is not None:
            query = query.filter(BlockedDateRow.date >= start)
        return [_to_blocked_date(row) for row in query.order_by(BlockedDateRow.date.asc()).all()]

    def add_window(self, window: WeeklyAvailabilityWindow) -> WeeklyAvailabilityWindow:
        row = WeeklyAvailability(
            doctor_id=window.doctor_id,
            day_of_week=window.day_of_week,
            start_time=window.start_time,
            end_time=window.end_time,
            slot_duration_minutes=window.slot_duration_minutes,
        )
        try:
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception('Saving weekly window for doctor %s failed', window.doctor_id)
            raise RepositoryError('Database unavailable while saving the availability window.') from exc
        return _to_window(row)

    def add_blocked_date(self, blocked: BlockedDate) -> BlockedDate:
        row = BlockedDateRow(doctor_id=blocked.doctor_id, date=blocked.date, reason=blocked.reason)
        try:
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        except IntegrityError as exc:
            self.session.rollback()
            raise BookingConflict('This date is already blocked.') from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception('Blocking %s for doctor %s failed', blocked.date, blocked.doctor_id)
            raise RepositoryError('Database unavailable while blocking the date.') from exc
        return _to_blocked_date(row)

    def remove_blocked_date(self, doctor_id: str, on_date: date) -> bool:
        try:
            row = self.session.query(BlockedDateRow).filter(
                BlockedDateRow.doctor_id == doctor_id,
                BlockedDateRow.date == on_date,
            ).first()
            if row is None:
                return False
            self.session.delete(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception('Unblocking %s for doctor %s failed', on_date, doctor_id)
            raise RepositoryError('Database unavailable while unblocking the date.') from exc
        return True
