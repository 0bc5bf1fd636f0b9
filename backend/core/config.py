import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def _get_float(value: str | None, default: float) -> float:
    if value is None or not value.strip():
        return default
    return float(value)

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SQL_ECHO = _get_bool(os.getenv("SQL_ECHO"), default=False)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking.db")

DEFAULT_SLOT_DURATION_MINUTES = _get_int(os.getenv("DEFAULT_SLOT_DURATION_MINUTES"), 30)
DEFAULT_BOOKING_CHANNEL = os.getenv("DEFAULT_BOOKING_CHANNEL", "app")
MAX_ADVANCE_BOOKING_DAYS = _get_int(os.getenv("MAX_ADVANCE_BOOKING_DAYS"), 60)
CONFIRMATION_POLICY = os.getenv("CONFIRMATION_POLICY", "auto")

READ_RETRY_ATTEMPTS = _get_int(os.getenv("READ_RETRY_ATTEMPTS"), 3)
READ_RETRY_MIN_SECONDS = _get_float(os.getenv("READ_RETRY_MIN_SECONDS"), 0.1)
READ_RETRY_MAX_SECONDS = _get_float(os.getenv("READ_RETRY_MAX_SECONDS"), 2.0)

DEV_JWT_SECRET_KEY = "change-me-local-development-signing-key"
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", DEV_JWT_SECRET_KEY)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = _get_int(os.getenv("JWT_EXPIRES_MINUTES"), 60)

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == DEV_JWT_SECRET_KEY:
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if DEFAULT_SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("DEFAULT_SLOT_DURATION_MINUTES must be positive.")
