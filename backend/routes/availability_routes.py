from datetime import date, datetime, time

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator

from backend.routes.dependencies import get_availability_resolver, get_schedule_service
from backend.scheduling.availability import AvailabilityResolver
from backend.scheduling.schedule import MAX_REASON_LENGTH, ScheduleService

router = APIRouter(tags=['availability'])


class TimeSlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    available: bool
    conflicting_booking_id: int | None = None

    class Config:
        from_attributes = True


class CreateWindowRequest(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    slot_duration_minutes: int | None = None


class WindowResponse(BaseModel):
    doctor_id: str
    day_of_week: int
    start_time: time
    end_time: time
    slot_duration_minutes: int | None = None

    class Config:
        from_attributes = True


class CreateBlockedDateRequest(BaseModel):
    date: date
    reason: str | None = None

    @field_validator('reason')
    @classmethod
    def validate_reason(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if not normalized:
            return None

        if len(normalized) > MAX_REASON_LENGTH:
            raise ValueError(f'Reason must be {MAX_REASON_LENGTH} characters or fewer.')

        return normalized


class BlockedDateResponse(BaseModel):
    doctor_id: str
    date: date
    reason: str | None = None

    class Config:
        from_attributes = True


@router.get('/{doctor_id}', response_model=list[TimeSlotResponse])
def get_available_slots(
    doctor_id: str,
    date: str = Query(..., description='Calendar date in YYYY-MM-DD format'),
    resolver: AvailabilityResolver = Depends(get_availability_resolver),
):
    return [TimeSlotResponse.model_validate(slot) for slot in resolver.resolve(doctor_id, date)]


@router.post('/{doctor_id}/windows', response_model=WindowResponse, status_code=status.HTTP_201_CREATED)
def create_window(
    doctor_id: str,
    payload: CreateWindowRequest,
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.add_window(
        doctor_id,
        payload.day_of_week,
        payload.start_time,
        payload.end_time,
        payload.slot_duration_minutes,
    )


@router.get('/{doctor_id}/windows', response_model=list[WindowResponse])
def list_windows(doctor_id: str, service: ScheduleService = Depends(get_schedule_service)):
    return service.list_windows(doctor_id)


@router.post('/{doctor_id}/blocked-dates', response_model=BlockedDateResponse, status_code=status.HTTP_201_CREATED)
def block_date(
    doctor_id: str,
    payload: CreateBlockedDateRequest,
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.block_date(doctor_id, payload.date, payload.reason)


@router.get('/{doctor_id}/blocked-dates', response_model=list[BlockedDateResponse])
def list_blocked_dates(
    doctor_id: str,
    start: date | None = Query(default=None),
    service: ScheduleService = Depends(get_schedule_service),
):
    return service.list_blocked_dates(doctor_id, start)


@router.delete('/{doctor_id}/blocked-dates/{blocked_date}', status_code=status.HTTP_204_NO_CONTENT)
def unblock_date(
    doctor_id: str,
    blocked_date: date,
    service: ScheduleService = Depends(get_schedule_service),
):
    service.unblock_date(doctor_id, blocked_date)
    return None
