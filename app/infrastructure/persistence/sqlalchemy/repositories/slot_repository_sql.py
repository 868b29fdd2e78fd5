from dataclasses import replace
from datetime import date
from typing import List, Optional
from sqlalchemy import update
from sqlmodel import Session, select

from .....db.models import Doctor, TimeSlot
from .....utils import utc_now
from .....application.ports.slot_repo import SlotRepository, SlotWindow, TimeSlotDto
from .....application.ports.unit_of_work import StaleVersionError


class SqlSlotRepository(SlotRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, s: TimeSlot) -> TimeSlotDto:
        return TimeSlotDto(
            id=s.id,
            doctor_id=s.doctor_id,
            date=s.slot_date,
            start_time=s.start_time,
            end_time=s.end_time,
            is_booked=bool(s.is_booked),
            version=s.version,
            created_at=s.created_at,
            is_deleted=bool(s.is_deleted),
        )

    def get(self, slot_id: int) -> Optional[TimeSlotDto]:
        s = self.session.exec(
            select(TimeSlot)
            .where(TimeSlot.id == slot_id)
            .where(TimeSlot.is_deleted == False)  # noqa: E712
            .execution_options(populate_existing=True)
        ).first()
        return self._to_dto(s) if s else None

    def lock_doctor_schedule(self, doctor_id: int) -> bool:
        # Writing the doctor row takes the SQLite write lock / the Postgres row lock until commit
        result = self.session.exec(
            update(Doctor)
            .where(Doctor.id == doctor_id)
            .values(schedule_version=Doctor.schedule_version + 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_for_doctor(self, doctor_id: int, start_date: date, end_date: date, only_free: bool = False) -> List[TimeSlotDto]:
        query = (
            select(TimeSlot)
            .where(TimeSlot.doctor_id == doctor_id)
            .where(TimeSlot.is_deleted == False)  # noqa: E712
            .where(TimeSlot.slot_date >= start_date)
            .where(TimeSlot.slot_date <= end_date)
        )
        if only_free:
            query = query.where(TimeSlot.is_booked == False)  # noqa: E712
        rows = self.session.exec(query.order_by(TimeSlot.slot_date, TimeSlot.start_time)).all()
        return [self._to_dto(r) for r in rows]

    def find_overlapping(self, doctor_id: int, window: SlotWindow) -> List[TimeSlotDto]:
        rows = self.session.exec(
            select(TimeSlot)
            .where(TimeSlot.doctor_id == doctor_id)
            .where(TimeSlot.slot_date == window.date)
            .where(TimeSlot.is_deleted == False)  # noqa: E712
            .where(TimeSlot.start_time < window.end_time)
            .where(TimeSlot.end_time > window.start_time)
        ).all()
        return [self._to_dto(r) for r in rows]

    def add_many(self, doctor_id: int, windows: List[SlotWindow]) -> List[TimeSlotDto]:
        slots = [
            TimeSlot(doctor_id=doctor_id, slot_date=w.date, start_time=w.start_time, end_time=w.end_time)
            for w in windows
        ]
        self.session.add_all(slots)
        self.session.flush()
        return [self._to_dto(s) for s in slots]

    def _compare_and_set(self, slot: TimeSlotDto, **values) -> int:
        result = self.session.exec(
            update(TimeSlot)
            .where(TimeSlot.id == slot.id)
            .where(TimeSlot.version == slot.version)
            .where(TimeSlot.is_deleted == False)  # noqa: E712
            .values(version=TimeSlot.version + 1, updated_at=utc_now(), **values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def set_booked(self, slot: TimeSlotDto, is_booked: bool) -> TimeSlotDto:
        if self._compare_and_set(slot, is_booked=is_booked) != 1:
            raise StaleVersionError("time_slot", slot.id, slot.version, claiming=is_booked)
        return replace(slot, is_booked=is_booked, version=slot.version + 1)

    def soft_delete(self, slot: TimeSlotDto) -> None:
        if self._compare_and_set(slot, is_deleted=True) != 1:
            raise StaleVersionError("time_slot", slot.id, slot.version)
