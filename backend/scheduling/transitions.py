import logging
from datetime import datetime
from typing import Callable

from backend.scheduling.errors import Forbidden, InvalidInput, ResourceNotFound
from backend.scheduling.ports import BookingRepository
from backend.scheduling.types import Booking, BookingStatus, utc_now, validate_identifier

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({
        BookingStatus.CONFIRMED,
        BookingStatus.CANCELLED_BY_PATIENT,
        BookingStatus.CANCELLED_BY_DOCTOR,
    }),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.CANCELLED_BY_PATIENT,
        BookingStatus.CANCELLED_BY_DOCTOR,
        BookingStatus.COMPLETED,
        BookingStatus.NO_SHOW,
    }),
}


def is_terminal(status: BookingStatus) -> bool:
    return not ALLOWED_TRANSITIONS.get(status)


def parse_status(value: BookingStatus | str) -> BookingStatus:
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus((value or '').strip().lower())
    except ValueError as exc:
        raise InvalidInput('Invalid status value.') from exc


def parse_booking_id(value: int | str) -> int:
    try:
        booking_id = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInput('booking_id must be a positive integer.') from exc
    if booking_id <= 0:
        raise InvalidInput('booking_id must be a positive integer.')
    return booking_id


def normalize_requester(requester_id: str | None) -> str | None:
    if requester_id is None:
        return None
    try:
        return validate_identifier(requester_id, 'requester_id')
    except ValueError as exc:
        raise InvalidInput(str(exc)) from exc


def ensure_participant(booking: Booking, requester_id: str | None) -> None:
    # No requester means an internal/administrative caller.
    if requester_id is not None and requester_id not in {booking.patient_id, booking.doctor_id}:
        raise Forbidden('Not authorized to access this booking.')


class BookingStatusService:
    def __init__(self, bookings: BookingRepository, clock: Callable[[], datetime] = utc_now):
        self.bookings = bookings
        self.clock = clock

    def change_status(self, booking_id: int | str, new_status: BookingStatus | str, requester_id: str | None = None) -> Booking:
        booking_id = parse_booking_id(booking_id)
        target = parse_status(new_status)
        requester_id = normalize_requester(requester_id)

        booking = self.bookings.get(booking_id)
        if booking is None:
            raise ResourceNotFound('Booking not found.')
        ensure_participant(booking, requester_id)

        if booking.status == target:
            raise InvalidInput('Booking is already in the requested status.')
        if is_terminal(booking.status):
            raise InvalidInput(f'Booking is {booking.status.value} and can no longer change status.')
        if target not in ALLOWED_TRANSITIONS[booking.status]:
            raise InvalidInput(f'Cannot change booking status from {booking.status.value} to {target.value}.')

        now = self.clock()
        if target == BookingStatus.CONFIRMED and booking.appointment_time < now:
            raise InvalidInput('Cannot confirm past appointments.')

        updated = self.bookings.update_status(booking_id, target, now)
        logger.info('Booking %s moved from %s to %s', booking_id, booking.status.value, target.value)
        return updated
