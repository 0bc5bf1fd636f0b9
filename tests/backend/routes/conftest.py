from datetime import date, datetime, time, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from backend.auth.jwt_handler import create_access_token
from backend.main import app
from backend.models.doctor import Doctor
from backend.routes.dependencies import get_db


@pytest.fixture
def upcoming_monday() -> date:
    today = datetime.now(timezone.utc).date()
    return today + timedelta(days=(7 - today.weekday()) % 7 + 7)


@pytest.fixture
def slot_time(upcoming_monday):
    def build(hour: int, minute: int = 0) -> datetime:
        return datetime.combine(upcoming_monday, time(hour, minute), tzinfo=timezone.utc)

    return build


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def add_doctor(db_session):
    def add(doctor_id: str, approved: bool = True, accepting_new_patients: bool = True) -> Doctor:
        row = Doctor(
            id=doctor_id,
            full_name='Dr. Ada Okafor',
            specialty_id=3,
            approved=approved,
            accepting_new_patients=accepting_new_patients,
        )
        db_session.add(row)
        db_session.commit()
        return row

    return add


@pytest.fixture
def auth_headers():
    def build(subject: str, role: str | None = None) -> dict:
        return {'Authorization': f'Bearer {create_access_token(subject, role=role)}'}

    return build
