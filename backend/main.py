import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from backend.core import config
from backend.core.logging import setup_logging
from backend.database import Base, engine, ensure_booking_schema
from backend.models import booking, doctor, schedule  # noqa: F401
from backend.routes import availability_routes, booking_routes
from backend.scheduling.admission import describe_validation_error
from backend.scheduling.errors import BookingError, InvalidInput

setup_logging()
config.validate_runtime_config()

app = FastAPI()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    'InvalidInput': status.HTTP_400_BAD_REQUEST,
    'Forbidden': status.HTTP_403_FORBIDDEN,
    'ResourceNotFound': status.HTTP_404_NOT_FOUND,
    'BookingConflict': status.HTTP_409_CONFLICT,
    'DoctorUnavailable': status.HTTP_422_UNPROCESSABLE_ENTITY,
    'RequestCancelled': 499,
    'RepositoryError': status.HTTP_503_SERVICE_UNAVAILABLE,
}


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(BookingError)
def handle_booking_error(request: Request, exc: BookingError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=InvalidInput(describe_validation_error(exc)).to_dict(),
    )


@app.get('/')
def root():
    return {'status': 'Doctor Booking API Running'}


app.include_router(availability_routes.router, prefix='/availability')
app.include_router(booking_routes.router, prefix='/bookings')
