from datetime import datetime, timezone

import pytest

from backend.scheduling.errors import Forbidden, InvalidInput, ResourceNotFound
from backend.scheduling.transitions import ALLOWED_TRANSITIONS, BookingStatusService, is_terminal
from backend.scheduling.types import Booking, BookingStatus

DOCTOR_ID = '6f1c2a3e-0000-4000-8000-000000000001'
PATIENT_ID = '9a7b5c3d-0000-4000-8000-000000000002'
STRANGER_ID = '11111111-0000-4000-8000-000000000004'
FUTURE = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
PAST = datetime(2025, 12, 29, 9, 0, tzinfo=timezone.utc)


def seed(bookings, status: BookingStatus, start: datetime = FUTURE) -> Booking:
    return bookings.seed(
        Booking(
            id=None,
            patient_id=PATIENT_ID,
            doctor_id=DOCTOR_ID,
            specialty_id=1,
            appointment_time=start,
            duration_minutes=30,
            status=status,
            channel='app',
        )
    )


@pytest.fixture
def service(bookings, fixed_clock) -> BookingStatusService:
    return BookingStatusService(bookings, clock=fixed_clock)


def test_terminal_statuses_have_no_successors() -> None:
    assert not is_terminal(BookingStatus.PENDING)
    assert not is_terminal(BookingStatus.CONFIRMED)
    for status in set(BookingStatus) - set(ALLOWED_TRANSITIONS):
        assert is_terminal(status)


def test_patient_cancels_confirmed_booking(service, bookings, fixed_clock) -> None:
    booking = seed(bookings, BookingStatus.CONFIRMED)

    updated = service.change_status(booking.id, 'cancelled_by_patient', requester_id=PATIENT_ID)

    assert updated.status == BookingStatus.CANCELLED_BY_PATIENT
    assert updated.updated_at == fixed_clock()


def test_doctor_confirms_pending_booking(service, bookings) -> None:
    booking = seed(bookings, BookingStatus.PENDING)

    assert service.change_status(str(booking.id), BookingStatus.CONFIRMED, requester_id=DOCTOR_ID).status == BookingStatus.CONFIRMED


def test_stranger_is_forbidden(service, bookings) -> None:
    booking = seed(bookings, BookingStatus.CONFIRMED)

    with pytest.raises(Forbidden):
        service.change_status(booking.id, 'cancelled_by_patient', requester_id=STRANGER_ID)


def test_same_status_is_rejected(service, bookings) -> None:
    booking = seed(bookings, BookingStatus.CONFIRMED)

    with pytest.raises(InvalidInput) as exception_info:
        service.change_status(booking.id, 'confirmed')

    assert exception_info.value.message == 'Booking is already in the requested status.'


@pytest.mark.parametrize('status', [BookingStatus.CANCELLED_BY_DOCTOR, BookingStatus.COMPLETED, BookingStatus.NO_SHOW])
def test_terminal_booking_cannot_move(service, bookings, status: BookingStatus) -> None:
    booking = seed(bookings, status)

    with pytest.raises(InvalidInput):
        service.change_status(booking.id, 'confirmed')


def test_pending_cannot_jump_to_completed(service, bookings) -> None:
    booking = seed(bookings, BookingStatus.PENDING)

    with pytest.raises(InvalidInput):
        service.change_status(booking.id, 'completed')


def test_cannot_confirm_past_appointment(service, bookings) -> None:
    booking = seed(bookings, BookingStatus.PENDING, start=PAST)

    with pytest.raises(InvalidInput) as exception_info:
        service.change_status(booking.id, 'confirmed')

    assert exception_info.value.message == 'Cannot confirm past appointments.'


def test_past_confirmed_booking_can_be_completed(service, bookings) -> None:
    booking = seed(bookings, BookingStatus.CONFIRMED, start=PAST)

    assert service.change_status(booking.id, 'completed').status == BookingStatus.COMPLETED


def test_unknown_booking_is_not_found(service) -> None:
    with pytest.raises(ResourceNotFound):
        service.change_status(404, 'confirmed')


@pytest.mark.parametrize(('booking_id', 'status'), [('abc', 'confirmed'), (0, 'confirmed'), (1, 'archived')])
def test_malformed_arguments_are_invalid_input(service, bookings, booking_id, status) -> None:
    seed(bookings, BookingStatus.PENDING)

    with pytest.raises(InvalidInput):
        service.change_status(booking_id, status)
