from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class PatientDto:
    id: int
    user_id: str


@dataclass
class DoctorDto:
    id: int
    user_id: str
    clinic_id: int
    is_approved: bool
    average_rating: float = 0.0


class Directory(Protocol):
    def get_patient_by_user(self, user_id: str) -> Optional[PatientDto]:
        ...

    def get_doctor_by_id(self, doctor_id: int) -> Optional[DoctorDto]:
        ...

    def get_doctor_by_user(self, user_id: str) -> Optional[DoctorDto]:
        ...


class IdentityProvider(Protocol):
    def is_email_verified(self, user_id: str) -> bool:
        ...

    def has_role(self, user_id: str, role: str) -> bool:
        ...
