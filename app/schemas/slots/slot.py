# app/schemas/slots/slot.py
import datetime as dt
from pydantic import BaseModel, Field
from typing import List

from ...application.ports.slot_repo import SlotWindow, TimeSlotDto


class SlotInput(BaseModel):
    date: dt.date
    start_time: dt.time
    end_time: dt.time

    def to_window(self) -> SlotWindow:
        return SlotWindow(self.date, self.start_time, self.end_time)


class AddSlotsRequest(BaseModel):
    slots: List[SlotInput] = Field(min_length=1)


class TimeSlotResponse(BaseModel):
    id: int
    doctor_id: int
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    is_booked: bool
    created_at: dt.datetime

    @classmethod
    def from_dto(cls, s: TimeSlotDto) -> "TimeSlotResponse":
        return cls(
            id=s.id,
            doctor_id=s.doctor_id,
            date=s.date,
            start_time=s.start_time,
            end_time=s.end_time,
            is_booked=s.is_booked,
            created_at=s.created_at,
        )
