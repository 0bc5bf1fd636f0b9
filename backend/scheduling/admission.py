"""Booking admission: the validated path from a request to a persisted booking."""

import logging
from datetime import datetime, timedelta
from threading import Event
from typing import Any, Callable, Mapping

from pydantic import ValidationError

from backend.core import config
from backend.scheduling.availability import AvailabilityResolver
from backend.scheduling.conflicts import ConflictChecker
from backend.scheduling.errors import (
    AdmissionCancelled,
    BookingConflict,
    DoctorUnavailable,
    InvalidInput,
    RepositoryError,
    ResourceNotFound,
)
from backend.scheduling.policy import ConfirmationPolicy, get_policy
from backend.scheduling.ports import BookingRepository, DoctorDirectory, ScheduleRepository
from backend.scheduling.types import Booking, BookingRequest, DoctorProfile, utc_now

logger = logging.getLogger(__name__)


def describe_validation_error(exc: ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = '.'.join(str(part) for part in error.get('loc', ()))
        message = error.get('msg', 'Invalid value')
        messages.append(f'{location}: {message}' if location else message)
    return '; '.join(messages) or 'Invalid booking request.'


def parse_booking_request(request: BookingRequest | Mapping[str, Any]) -> BookingRequest:
    if isinstance(request, BookingRequest):
        return request
    if not isinstance(request, Mapping):
        raise InvalidInput('Booking request must be an object.')
    try:
        return BookingRequest.model_validate(dict(request))
    except ValidationError as exc:
        raise InvalidInput(describe_validation_error(exc)) from exc


class BookingAdmissionService:
    """Admits booking requests, guaranteeing one winner per contested slot.

    The availability and conflict checks here are a fast-path rejection on a
    snapshot; the repository insert is the final authority and reports a
    concurrently inserted overlap as ``BookingConflict``.
    """

    def __init__(
        self,
        doctors: DoctorDirectory,
        schedules: ScheduleRepository,
        bookings: BookingRepository,
        policy: ConfirmationPolicy | None = None,
        clock: Callable[[], datetime] = utc_now,
        max_advance_days: int | None = None,
    ):
        self.doctors = doctors
        self.bookings = bookings
        self.policy = policy or get_policy(config.CONFIRMATION_POLICY)
        self.clock = clock
        self.max_advance_days = config.MAX_ADVANCE_BOOKING_DAYS if max_advance_days is None else max_advance_days
        self.resolver = AvailabilityResolver(schedules, bookings, clock=clock)
        self.conflict_checker = ConflictChecker(bookings)

    def admit(self, request: BookingRequest | Mapping[str, Any], cancel_event: Event | None = None) -> Booking:
        data = parse_booking_request(request)
        logger.info(
            'Admitting booking for doctor %s at %s (%s min) via %s',
            data.doctor_id, data.appointment_time.isoformat(), data.duration_minutes, data.channel,
        )

        now = self.clock()
        self._validate_timing(data, now)
        self._ensure_not_cancelled(cancel_event)

        doctor = self.doctors.get(data.doctor_id)
        if doctor is None:
            raise ResourceNotFound('Doctor not found.')
        self._ensure_eligible(doctor)
        self._ensure_not_cancelled(cancel_event)

        covered = self.resolver.covering_slots(data.doctor_id, data.appointment_time, data.duration_minutes)
        if not covered:
            raise DoctorUnavailable('Requested time slot is not available.')
        if not all(slot.available for slot in covered):
            raise BookingConflict('Time slot conflicts with existing booking.')
        self._ensure_not_cancelled(cancel_event)

        # Authoritative pre-write check against live data, not the slot snapshot.
        if self.conflict_checker.conflicts(data.doctor_id, data.appointment_time, data.duration_minutes):
            raise BookingConflict('Time slot conflicts with existing booking.')

        status = self.policy.decide(doctor)
        booking = Booking(
            id=None,
            patient_id=data.patient_id,
            doctor_id=data.doctor_id,
            specialty_id=data.specialty_id or doctor.specialty_id,
            appointment_time=data.appointment_time,
            duration_minutes=data.duration_minutes,
            status=status,
            channel=data.channel,
            created_at=now,
            updated_at=now,
        )
        self._ensure_not_cancelled(cancel_event)

        persisted = self._persist(booking)
        logger.info(
            'Booking %s admitted for doctor %s at %s with status %s (policy=%s)',
            persisted.id, persisted.doctor_id, persisted.appointment_time.isoformat(),
            persisted.status.value, self.policy.name,
        )
        return persisted

    def _validate_timing(self, data: BookingRequest, now: datetime) -> None:
        if data.appointment_time <= now:
            raise InvalidInput('Appointment time must be in the future.')

        if self.max_advance_days and data.appointment_time > now + timedelta(days=self.max_advance_days):
            raise InvalidInput(f'Appointments can only be booked within the next {self.max_advance_days} days.')

    @staticmethod
    def _ensure_eligible(doctor: DoctorProfile) -> None:
        if not doctor.approved:
            raise DoctorUnavailable('Doctor is not approved.')
        if not doctor.accepting_new_patients:
            raise DoctorUnavailable('Doctor is not accepting new patients.')

    @staticmethod
    def _ensure_not_cancelled(cancel_event: Event | None) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise AdmissionCancelled('Booking request was cancelled before it was saved.')

    def _persist(self, booking: Booking) -> Booking:
        try:
            return self.bookings.insert(booking)
        except RepositoryError as exc:
            if not exc.ambiguous:
                raise
            # The write may have landed; never retry blindly, look first.
            existing = self.bookings.find_active_booking(booking.doctor_id, booking.patient_id, booking.appointment_time)
            if existing is not None:
                logger.warning('Insert outcome was unknown but booking %s exists; returning it', existing.id)
                return existing
            raise
