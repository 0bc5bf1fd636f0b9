from sqlalchemy.orm import Session

from backend.models.doctor import Doctor
from backend.repositories.retry import read_operation
from backend.scheduling.types import DoctorProfile


class SqlDoctorDirectory:
    def __init__(self, session: Session):
        self.session = session

    @read_operation('doctor lookup')
    def get(self, doctor_id: str) -> DoctorProfile | None:
        doctor = self.session.get(Doctor, doctor_id)
        if doctor is None:
            return None
        return DoctorProfile(
            id=doctor.id,
            approved=bool(doctor.approved),
            accepting_new_patients=bool(doctor.accepting_new_patients),
            specialty_id=doctor.specialty_id,
        )
