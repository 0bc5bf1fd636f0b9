"""Value types shared by the scheduling components."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from backend.core import config


class BookingStatus(str, Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CANCELLED_BY_PATIENT = 'cancelled_by_patient'
    CANCELLED_BY_DOCTOR = 'cancelled_by_doctor'
    COMPLETED = 'completed'
    NO_SHOW = 'no_show'


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})

BOOKING_CHANNELS = ('app', 'whatsapp', 'phone', 'admin')

MAX_DURATION_MINUTES = 24 * 60


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def day_of_week_index(value: date) -> int:
    """0 = Sunday .. 6 = Saturday, matching the stored schedule convention."""
    return (value.weekday() + 1) % 7


def day_bounds(value: date) -> tuple[datetime, datetime]:
    start = datetime.combine(value, time.min, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def validate_identifier(value: str, field_name: str) -> str:
    normalized = (value or '').strip().lower()
    if not normalized:
        raise ValueError(f'{field_name} is required.')
    try:
        uuid.UUID(normalized)
    except ValueError as exc:
        raise ValueError(f'{field_name} must be a valid UUID.') from exc
    return normalized


@dataclass(frozen=True)
class WeeklyAvailabilityWindow:
    doctor_id: str
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int | None = None


@dataclass(frozen=True)
class BlockedDate:
    doctor_id: str
    date: date
    reason: str | None = None


@dataclass(frozen=True)
class DoctorProfile:
    id: str
    approved: bool
    accepting_new_patients: bool
    specialty_id: int | None = None


@dataclass(frozen=True)
class TimeSlot:
    start_time: datetime
    duration_minutes: int
    available: bool
    conflicting_booking_id: int | None = None

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class Booking:
    id: int | None
    patient_id: str
    doctor_id: str
    specialty_id: int | None
    appointment_time: datetime
    duration_minutes: int
    status: BookingStatus
    channel: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def end_time(self) -> datetime:
        return self.appointment_time + timedelta(minutes=self.duration_minutes)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


@dataclass(frozen=True)
class BookingFilters:
    patient_id: str | None = None
    doctor_id: str | None = None
    statuses: tuple[BookingStatus, ...] = ()
    start: datetime | None = None
    end: datetime | None = None
    limit: int = 50
    offset: int = 0


class BookingRequest(BaseModel):
    """An admission request; accepts snake_case or camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    patient_id: str
    doctor_id: str
    specialty_id: int | None = Field(default=None, gt=0)
    appointment_time: datetime
    duration_minutes: int = Field(default=config.DEFAULT_SLOT_DURATION_MINUTES, gt=0, le=MAX_DURATION_MINUTES)
    channel: str = config.DEFAULT_BOOKING_CHANNEL

    @field_validator('patient_id')
    @classmethod
    def validate_patient_id(cls, value: str) -> str:
        return validate_identifier(value, 'patient_id')

    @field_validator('doctor_id')
    @classmethod
    def validate_doctor_id(cls, value: str) -> str:
        return validate_identifier(value, 'doctor_id')

    @field_validator('appointment_time')
    @classmethod
    def normalize_appointment_time(cls, value: datetime) -> datetime:
        return as_utc(value)

    @field_validator('channel')
    @classmethod
    def validate_channel(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in BOOKING_CHANNELS:
            raise ValueError('Invalid booking channel.')
        return normalized
