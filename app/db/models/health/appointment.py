# app/db/models/health/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index, text
from datetime import date, datetime, time

from ....utils import utc_now

# Canceled appointments keep their slot_id but no longer hold the slot
_ACTIVE_SQLITE = text("status != 'Canceled'")
_ACTIVE_PG = text("status <> 'Canceled'")

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "ux_appointments_active_slot",
            "slot_id",
            unique=True,
            sqlite_where=_ACTIVE_SQLITE,
            postgresql_where=_ACTIVE_PG,
        ),
        Index(
            "ux_appointments_active_doctor_date_start",
            "doctor_id", "appointment_date", "start_time",
            unique=True,
            sqlite_where=_ACTIVE_SQLITE,
            postgresql_where=_ACTIVE_PG,
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    patient_id: int = Field(foreign_key="patients.id", index=True)
    doctor_id: int = Field(foreign_key="doctors.id", index=True)
    clinic_id: int = Field(index=True)
    slot_id: int = Field(foreign_key="time_slots.id")
    appointment_date: date = Field(index=True)
    start_time: time
    end_time: time
    status: str = Field(default="Pending", max_length=20, index=True)  # Pending, Confirmed, Completed, Canceled, NoShow
    reason_for_visit: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=2000)
    cancellation_reason: Optional[str] = Field(default=None, max_length=500)
    cancelled_at: Optional[datetime] = None
    version: int = Field(default=1)
    is_deleted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
