from dataclasses import dataclass
from typing import List, Optional, Protocol
from datetime import datetime, date, time


@dataclass(frozen=True)
class SlotWindow:
    date: date
    start_time: time
    end_time: time

    def overlaps(self, start_time: time, end_time: time) -> bool:
        # half-open intervals [start, end)
        return self.start_time < end_time and start_time < self.end_time


@dataclass
class TimeSlotDto:
    id: int
    doctor_id: int
    date: date
    start_time: time
    end_time: time
    is_booked: bool
    version: int
    created_at: datetime
    is_deleted: bool = False

    def has_started(self, now: datetime) -> bool:
        """True once ``now`` (UTC) has reached the slot's start."""
        return (self.date, self.start_time) <= (now.date(), now.time())


class SlotRepository(Protocol):
    def get(self, slot_id: int) -> Optional[TimeSlotDto]:
        """Return the slot unless it is missing or soft-deleted."""
        ...

    def lock_doctor_schedule(self, doctor_id: int) -> bool:
        """Serialize slot changes for one doctor until the unit ends.

        Returns False when the doctor row does not exist.
        """
        ...

    def list_for_doctor(self, doctor_id: int, start_date: date, end_date: date, only_free: bool = False) -> List[TimeSlotDto]:
        ...

    def find_overlapping(self, doctor_id: int, window: SlotWindow) -> List[TimeSlotDto]:
        ...

    def add_many(self, doctor_id: int, windows: List[SlotWindow]) -> List[TimeSlotDto]:
        ...

    def set_booked(self, slot: TimeSlotDto, is_booked: bool) -> TimeSlotDto:
        """Version-checked flip of ``is_booked``; raises StaleVersionError on mismatch."""
        ...

    def soft_delete(self, slot: TimeSlotDto) -> None:
        ...
