from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from backend.auth.dependencies import get_requester_id, require_admin
from backend.routes.dependencies import get_admission_service, get_query_service, get_status_service
from backend.scheduling.admission import BookingAdmissionService
from backend.scheduling.queries import BookingQueryService
from backend.scheduling.transitions import BookingStatusService
from backend.scheduling.types import BookingRequest, BookingStatus

router = APIRouter(tags=['bookings'])


class BookingResponse(BaseModel):
    id: int
    patient_id: str
    doctor_id: str
    specialty_id: int | None = None
    appointment_time: datetime
    end_time: datetime
    duration_minutes: int
    status: BookingStatus
    channel: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UpdateBookingStatusRequest(BaseModel):
    status: str


class BookingStatisticsResponse(BaseModel):
    total_bookings: int
    confirmed_bookings: int
    pending_bookings: int
    cancelled_bookings: int
    completed_bookings: int
    no_show_bookings: int


@router.post('', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingRequest,
    service: BookingAdmissionService = Depends(get_admission_service),
):
    return BookingResponse.model_validate(service.admit(payload))


@router.get('', response_model=list[BookingResponse])
def list_bookings(
    patient_id: str | None = Query(default=None),
    doctor_id: str | None = Query(default=None),
    booking_status: list[str] | None = Query(default=None, alias='status'),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    limit: int = Query(default=50),
    offset: int = Query(default=0),
    requester_id: str = Depends(get_requester_id),
    service: BookingQueryService = Depends(get_query_service),
):
    bookings = service.list_bookings(
        requester_id=requester_id,
        patient_id=patient_id,
        doctor_id=doctor_id,
        statuses=booking_status,
        start=start,
        end=end,
        limit=limit,
        offset=offset,
    )
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.get('/statistics', response_model=BookingStatisticsResponse)
def get_statistics(
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    admin_id: str = Depends(require_admin),
    service: BookingQueryService = Depends(get_query_service),
):
    return service.statistics(start, end)


@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: str,
    requester_id: str = Depends(get_requester_id),
    service: BookingQueryService = Depends(get_query_service),
):
    return BookingResponse.model_validate(service.get_booking(booking_id, requester_id))


@router.patch('/{booking_id}/status', response_model=BookingResponse)
def update_booking_status(
    booking_id: str,
    payload: UpdateBookingStatusRequest,
    requester_id: str = Depends(get_requester_id),
    service: BookingStatusService = Depends(get_status_service),
):
    return BookingResponse.model_validate(service.change_status(booking_id, payload.status, requester_id))
