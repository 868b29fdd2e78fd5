# app/db/models/scheduling/time_slot.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index, text
from datetime import date, datetime, time

from ....utils import utc_now

class TimeSlot(SQLModel, table=True):
    __tablename__ = "time_slots"
    __table_args__ = (
        # One live slot per doctor start time; deleted slots free the start time again
        Index(
            "ux_time_slots_doctor_date_start",
            "doctor_id", "slot_date", "start_time",
            unique=True,
            sqlite_where=text("is_deleted = 0"),
            postgresql_where=text("is_deleted = false"),
        ),
        Index("ix_time_slots_doctor_date", "doctor_id", "slot_date"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: int = Field(foreign_key="doctors.id")
    slot_date: date
    start_time: time
    end_time: time  # exclusive
    is_booked: bool = Field(default=False, index=True)
    version: int = Field(default=1)
    is_deleted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
