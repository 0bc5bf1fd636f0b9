from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    return create_engine(database_url, echo=config.SQL_ECHO, pool_pre_ping=True, connect_args=connect_args)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

ACTIVE_STATUS_SQL = "status IN ('pending', 'confirmed')"

_schema_lock = Lock()
_booking_schema_checked: set[str] = set()


def ensure_booking_schema(bind: Engine | None = None) -> None:
    """Add the database-level guards against double booking.

    Every dialect gets the partial unique index declared on the model. PostgreSQL
    additionally gets an exclusion constraint over the booked interval, so
    overlapping active rows for one doctor are refused even when their start
    times differ.
    """
    target = bind or engine
    key = str(target.url)

    if key in _booking_schema_checked:
        return

    with _schema_lock:
        if key in _booking_schema_checked:
            return

        inspector = inspect(target)

        if 'bookings' not in inspector.get_table_names():
            _booking_schema_checked.add(key)
            return

        with target.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_bookings_doctor_range ON bookings(doctor_id, appointment_time, end_time)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_bookings_patient_time ON bookings(patient_id, appointment_time)')
            )

            if target.dialect.name == 'postgresql':
                connection.execute(text('CREATE EXTENSION IF NOT EXISTS btree_gist'))
                existing = connection.execute(
                    text("SELECT 1 FROM pg_constraint WHERE conname = 'bookings_no_overlap'")
                ).first()
                if existing is None:
                    connection.execute(
                        text(
                            'ALTER TABLE bookings ADD CONSTRAINT bookings_no_overlap '
                            'EXCLUDE USING gist (doctor_id WITH =, tstzrange(appointment_time, end_time) WITH &&) '
                            f'WHERE ({ACTIVE_STATUS_SQL})'
                        )
                    )

        _booking_schema_checked.add(key)
