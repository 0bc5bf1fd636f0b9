from fastapi import Depends
from sqlalchemy.orm import Session

from backend.database import SessionLocal
from backend.repositories.booking_repository import SqlBookingRepository
from backend.repositories.doctor_repository import SqlDoctorDirectory
from backend.repositories.schedule_repository import SqlScheduleRepository
from backend.scheduling.admission import BookingAdmissionService
from backend.scheduling.availability import AvailabilityResolver
from backend.scheduling.queries import BookingQueryService
from backend.scheduling.schedule import ScheduleService
from backend.scheduling.transitions import BookingStatusService


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_availability_resolver(db: Session = Depends(get_db)) -> AvailabilityResolver:
    return AvailabilityResolver(SqlScheduleRepository(db), SqlBookingRepository(db))


def get_schedule_service(db: Session = Depends(get_db)) -> ScheduleService:
    return ScheduleService(SqlDoctorDirectory(db), SqlScheduleRepository(db))


def get_admission_service(db: Session = Depends(get_db)) -> BookingAdmissionService:
    return BookingAdmissionService(SqlDoctorDirectory(db), SqlScheduleRepository(db), SqlBookingRepository(db))


def get_status_service(db: Session = Depends(get_db)) -> BookingStatusService:
    return BookingStatusService(SqlBookingRepository(db))


def get_query_service(db: Session = Depends(get_db)) -> BookingQueryService:
    return BookingQueryService(SqlBookingRepository(db))
