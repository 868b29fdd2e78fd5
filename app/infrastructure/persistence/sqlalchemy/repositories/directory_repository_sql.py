from typing import Optional
from sqlmodel import Session, select

from .....db.models import Doctor, Patient, User
from .....application.ports.directory import Directory, DoctorDto, IdentityProvider, PatientDto


class SqlDirectory(Directory):
    def __init__(self, session: Session):
        self.session = session

    def _doctor_to_dto(self, d: Doctor) -> DoctorDto:
        return DoctorDto(
            id=d.id,
            user_id=d.user_id,
            clinic_id=d.clinic_id,
            is_approved=bool(d.is_approved),
            average_rating=d.average_rating,
        )

    def get_patient_by_user(self, user_id: str) -> Optional[PatientDto]:
        p = self.session.exec(
            select(Patient).where(Patient.user_id == user_id).where(Patient.is_deleted == False)  # noqa: E712
        ).first()
        return PatientDto(id=p.id, user_id=p.user_id) if p else None

    def get_doctor_by_id(self, doctor_id: int) -> Optional[DoctorDto]:
        d = self.session.exec(
            select(Doctor).where(Doctor.id == doctor_id).where(Doctor.is_deleted == False)  # noqa: E712
        ).first()
        return self._doctor_to_dto(d) if d else None

    def get_doctor_by_user(self, user_id: str) -> Optional[DoctorDto]:
        d = self.session.exec(
            select(Doctor).where(Doctor.user_id == user_id).where(Doctor.is_deleted == False)  # noqa: E712
        ).first()
        return self._doctor_to_dto(d) if d else None


class SqlIdentityProvider(IdentityProvider):
    def __init__(self, session: Session):
        self.session = session

    def _user(self, user_id: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.id == user_id)).first()

    def is_email_verified(self, user_id: str) -> bool:
        user = self._user(user_id)
        return bool(user and user.is_active and user.is_verified)

    def has_role(self, user_id: str, role: str) -> bool:
        user = self._user(user_id)
        return bool(user and user.is_active and (user.role or "").lower() == role.lower())
