import logging
from datetime import datetime
from threading import Lock

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.models.booking import Booking as BookingRow
from backend.models.doctor import Doctor
from backend.repositories.retry import read_operation
from backend.scheduling.errors import BookingConflict, RepositoryError, ResourceNotFound
from backend.scheduling.types import ACTIVE_STATUSES, Booking, BookingFilters, BookingStatus, as_utc

logger = logging.getLogger(__name__)

ACTIVE_STATUS_VALUES = sorted(status.value for status in ACTIVE_STATUSES)

_doctor_locks: dict[str, Lock] = {}
_doctor_locks_guard = Lock()


def doctor_lock(doctor_id: str) -> Lock:
    """Process-wide lock serializing check-then-insert for one doctor."""
    with _doctor_locks_guard:
        return _doctor_locks.setdefault(doctor_id, Lock())


def _to_booking(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        patient_id=row.patient_id,
        doctor_id=row.doctor_id,
        specialty_id=row.specialty_id,
        appointment_time=as_utc(row.appointment_time),
        duration_minutes=row.duration_minutes,
        status=BookingStatus(row.status),
        channel=row.channel,
        created_at=as_utc(row.created_at) if row.created_at else None,
        updated_at=as_utc(row.updated_at) if row.updated_at else None,
    )


class SqlBookingRepository:
    def __init__(self, session: Session):
        self.session = session

    def _overlapping_active(self, doctor_id: str, start: datetime, end: datetime):
        return self.session.query(BookingRow).filter(
            BookingRow.doctor_id == doctor_id,
            BookingRow.status.in_(ACTIVE_STATUS_VALUES),
            BookingRow.appointment_time < end,
            BookingRow.end_time > start,
        )

    @read_operation('active booking lookup')
    def get_active_bookings(self, doctor_id: str, start: datetime, end: datetime) -> list[Booking]:
        rows = self._overlapping_active(doctor_id, start, end).order_by(BookingRow.appointment_time.asc()).all()
        return [_to_booking(row) for row in rows]

    @read_operation('booking lookup')
    def get(self, booking_id: int) -> Booking | None:
        row = self.session.get(BookingRow, booking_id)
        return _to_booking(row) if row else None

    @read_operation('booking existence check')
    def find_active_booking(self, doctor_id: str, patient_id: str, appointment_time: datetime) -> Booking | None:
        row = self.session.query(BookingRow).filter(
            BookingRow.doctor_id == doctor_id,
            BookingRow.patient_id == patient_id,
            BookingRow.appointment_time == appointment_time,
            BookingRow.status.in_(ACTIVE_STATUS_VALUES),
        ).first()
        return _to_booking(row) if row else None

    @read_operation('booking search')
    def search(self, filters: BookingFilters) -> list[Booking]:
        query = self.session.query(BookingRow)
        if filters.patient_id:
            query = query.filter(BookingRow.patient_id == filters.patient_id)
        if filters.doctor_id:
            query = query.filter(BookingRow.doctor_id == filters.doctor_id)
        if filters.statuses:
            query = query.filter(BookingRow.status.in_([status.value for status in filters.statuses]))
        if filters.start:
            query = query.filter(BookingRow.appointment_time >= filters.start)
        if filters.end:
            query = query.filter(BookingRow.appointment_time < filters.end)

        rows = query.order_by(
            BookingRow.appointment_time.asc(),
            BookingRow.id.asc(),
        ).limit(filters.limit).offset(filters.offset).all()
        return [_to_booking(row) for row in rows]

    @read_operation('booking statistics')
    def count_by_status(self, start: datetime | None, end: datetime | None) -> dict[BookingStatus, int]:
        query = self.session.query(BookingRow.status, func.count(BookingRow.id))
        if start:
            query = query.filter(BookingRow.appointment_time >= start)
        if end:
            query = query.filter(BookingRow.appointment_time < end)
        return {BookingStatus(status): count for status, count in query.group_by(BookingRow.status).all()}

    def insert(self, booking: Booking) -> Booking:
        """Persist a booking unless it overlaps an active one.

        The overlap check and insert run under the doctor's lock and a row lock
        on the doctor (``FOR UPDATE`` where the dialect supports it). The
        database constraints remain the last word: a violation at commit is
        reported as ``BookingConflict``. Once the commit has been issued, any
        failure (including reading the saved row back) is ambiguous.
        """
        start = booking.appointment_time
        end = booking.end_time
        committing = False

        with doctor_lock(booking.doctor_id):
            try:
                self.session.execute(select(Doctor.id).where(Doctor.id == booking.doctor_id).with_for_update())

                if self._overlapping_active(booking.doctor_id, start, end).first() is not None:
                    self.session.rollback()
                    raise BookingConflict('Time slot conflicts with existing booking.')

                row = BookingRow(
                    patient_id=booking.patient_id,
                    doctor_id=booking.doctor_id,
                    specialty_id=booking.specialty_id,
                    appointment_time=start,
                    end_time=end,
                    duration_minutes=booking.duration_minutes,
                    status=booking.status.value,
                    channel=booking.channel,
                    created_at=booking.created_at,
                    updated_at=booking.updated_at,
                )
                self.session.add(row)
                committing = True
                self.session.commit()
                saved = _to_booking(row)
            except IntegrityError as exc:
                self.session.rollback()
                logger.info('Store refused overlapping booking for doctor %s at %s', booking.doctor_id, start.isoformat())
                raise BookingConflict('Time slot conflicts with existing booking.') from exc
            except SQLAlchemyError as exc:
                self.session.rollback()
                logger.exception('Saving booking for doctor %s failed', booking.doctor_id)
                raise RepositoryError('Database unavailable while saving the booking.', ambiguous=committing) from exc

        return saved

    def update_status(self, booking_id: int, status: BookingStatus, updated_at: datetime) -> Booking:
        try:
            row = self.session.get(BookingRow, booking_id)
            if row is None:
                raise ResourceNotFound('Booking not found.')
            row.status = status.value
            row.updated_at = updated_at
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            raise BookingConflict('Time slot conflicts with existing booking.') from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception('Updating status of booking %s failed', booking_id)
            raise RepositoryError('Database unavailable while updating the booking.') from exc

        return self.get(booking_id)
