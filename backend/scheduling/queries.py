from datetime import datetime

from backend.scheduling.errors import Forbidden, InvalidInput, ResourceNotFound
from backend.scheduling.ports import BookingRepository
from backend.scheduling.transitions import ensure_participant, normalize_requester, parse_booking_id, parse_status
from backend.scheduling.types import Booking, BookingFilters, BookingStatus, as_utc, validate_identifier

MAX_PAGE_SIZE = 200


class BookingQueryService:
    """Read-side views over bookings for patients, doctors and admins."""

    def __init__(self, bookings: BookingRepository):
        self.bookings = bookings

    def get_booking(self, booking_id: int | str, requester_id: str | None = None) -> Booking:
        booking = self.bookings.get(parse_booking_id(booking_id))
        if booking is None:
            raise ResourceNotFound('Booking not found.')
        ensure_participant(booking, normalize_requester(requester_id))
        return booking

    def list_bookings(
        self,
        *,
        requester_id: str | None = None,
        patient_id: str | None = None,
        doctor_id: str | None = None,
        statuses: list[str] | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[Booking]:
        if not patient_id and not doctor_id:
            raise InvalidInput('patient_id or doctor_id is required.')
        if limit <= 0 or limit > MAX_PAGE_SIZE:
            raise InvalidInput(f'limit must be between 1 and {MAX_PAGE_SIZE}.')
        if offset < 0:
            raise InvalidInput('offset must not be negative.')

        start, end = _normalize_range(start, end)
        try:
            filters = BookingFilters(
                patient_id=validate_identifier(patient_id, 'patient_id') if patient_id else None,
                doctor_id=validate_identifier(doctor_id, 'doctor_id') if doctor_id else None,
                statuses=tuple(parse_status(status) for status in statuses or ()),
                start=start,
                end=end,
                limit=limit,
                offset=offset,
            )
        except ValueError as exc:
            raise InvalidInput(str(exc)) from exc

        requester_id = normalize_requester(requester_id)
        if requester_id is not None and requester_id not in {filters.patient_id, filters.doctor_id}:
            raise Forbidden('Not authorized to list these bookings.')

        return list(self.bookings.search(filters))

    def statistics(self, start: datetime | None = None, end: datetime | None = None) -> dict[str, int]:
        start, end = _normalize_range(start, end)
        counts = self.bookings.count_by_status(start, end)
        return {
            'total_bookings': sum(counts.values()),
            'confirmed_bookings': counts.get(BookingStatus.CONFIRMED, 0),
            'pending_bookings': counts.get(BookingStatus.PENDING, 0),
            'cancelled_bookings': (
                counts.get(BookingStatus.CANCELLED_BY_PATIENT, 0) + counts.get(BookingStatus.CANCELLED_BY_DOCTOR, 0)
            ),
            'completed_bookings': counts.get(BookingStatus.COMPLETED, 0),
            'no_show_bookings': counts.get(BookingStatus.NO_SHOW, 0),
        }


def _normalize_range(start: datetime | None, end: datetime | None) -> tuple[datetime | None, datetime | None]:
    start = as_utc(start) if start else None
    end = as_utc(end) if end else None
    if start and end and end <= start:
        raise InvalidInput('end must be after start.')
    return start, end
