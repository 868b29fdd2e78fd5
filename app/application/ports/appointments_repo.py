from dataclasses import dataclass
from typing import List, Optional, Protocol
from datetime import datetime, date, time

from ..status import AppointmentStatus


@dataclass
class AppointmentDto:
    id: int
    patient_id: int
    doctor_id: int
    clinic_id: int
    slot_id: int
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    reason_for_visit: Optional[str]
    notes: Optional[str]
    cancellation_reason: Optional[str]
    cancelled_at: Optional[datetime]
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    # identity of the two parties, filled in on single-appointment reads
    patient_user_id: Optional[str] = None
    doctor_user_id: Optional[str] = None


@dataclass
class NewAppointment:
    patient_id: int
    doctor_id: int
    clinic_id: int
    slot_id: int
    appointment_date: date
    start_time: time
    end_time: time
    reason_for_visit: Optional[str] = None


class AppointmentsRepository(Protocol):
    def get(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def add(self, appointment: NewAppointment) -> AppointmentDto:
        ...

    def update(self, appointment: AppointmentDto, **changes) -> AppointmentDto:
        """Write ``changes`` if the stored version still equals ``appointment.version``.

        Raises StaleVersionError otherwise. The returned DTO carries the bumped version.
        """
        ...

    def list_for_patient(self, patient_id: int, status: Optional[AppointmentStatus] = None) -> List[AppointmentDto]:
        ...

    def list_for_doctor(self, doctor_id: int, status: Optional[AppointmentStatus] = None) -> List[AppointmentDto]:
        ...
