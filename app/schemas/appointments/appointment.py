# app/schemas/appointments/appointment.py
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime, time

from ...application.ports.appointments_repo import AppointmentDto
from ...application.status import AppointmentStatus

# Accepted spellings beyond the enum names themselves
STATUS_ALIASES = {
    "cancelled": AppointmentStatus.CANCELED,
    "no_show": AppointmentStatus.NO_SHOW,
}


def parse_status(value) -> AppointmentStatus:
    """Case-insensitive status parsing; "Cancelled" is read as Canceled."""
    if isinstance(value, AppointmentStatus):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Status is required.")
    key = value.strip().lower()
    for status in AppointmentStatus:
        if status.value.lower() == key:
            return status
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    raise ValueError(f"Invalid status '{value}'. Allowed: Pending, Confirmed, Completed, Cancelled, NoShow.")


class AppointmentCreate(BaseModel):
    doctor_id: int = Field(gt=0)
    time_slot_id: int = Field(gt=0)
    reason_for_visit: Optional[str] = Field(None, max_length=500)


class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
    notes: Optional[str] = Field(None, max_length=2000)
    cancellation_reason: Optional[str] = Field(None, max_length=500)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return parse_status(v)


class AppointmentCancel(BaseModel):
    cancellation_reason: Optional[str] = Field(None, max_length=500)


class AppointmentReschedule(BaseModel):
    new_time_slot_id: int = Field(gt=0)
    reason: Optional[str] = Field(None, max_length=500)


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    clinic_id: int
    slot_id: int
    appointment_date: date
    start_time: time
    end_time: time
    status: AppointmentStatus
    reason_for_visit: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dto(cls, a: AppointmentDto) -> "AppointmentResponse":
        return cls(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            clinic_id=a.clinic_id,
            slot_id=a.slot_id,
            appointment_date=a.appointment_date,
            start_time=a.start_time,
            end_time=a.end_time,
            status=a.status,
            reason_for_visit=a.reason_for_visit,
            notes=a.notes,
            cancellation_reason=a.cancellation_reason,
            cancelled_at=a.cancelled_at,
            created_at=a.created_at,
            updated_at=a.updated_at,
        )
