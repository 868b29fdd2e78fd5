from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, List, Optional
import logging

from ...exceptions import (
    BusinessRuleError,
    NotFoundError,
    UnauthorizedError,
    ValidationFailedError,
)
from ...utils import utc_now
from ..ports.audit_logger import AuditLogger
from ..ports.directory import Directory, DoctorDto
from ..ports.slot_repo import SlotWindow, TimeSlotDto
from ..ports.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)


@dataclass
class SlotService:
    uow_factory: UnitOfWorkFactory
    directory: Directory
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = field(default=utc_now)

    def _owned_doctor(self, doctor_id: int, owner_user_id: str) -> DoctorDto:
        doctor = self.directory.get_doctor_by_id(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")
        if doctor.user_id != owner_user_id:
            logger.warning(f"Slot change rejected: user {owner_user_id} does not own doctor {doctor_id}")
            raise UnauthorizedError("Only the doctor can manage their own time slots")
        return doctor

    def _validate_windows(self, windows: List[SlotWindow]) -> None:
        if not windows:
            raise ValidationFailedError("At least one time slot is required")
        today = self.clock().date()
        for w in windows:
            if w.date < today:
                raise ValidationFailedError("Cannot create slots in the past")
            if w.start_time >= w.end_time:
                raise ValidationFailedError("Start time must be before end time")

    def add_slots(self, doctor_id: int, owner_user_id: str, windows: List[SlotWindow]) -> List[TimeSlotDto]:
        """Create a batch of slots for a doctor; either every slot is stored or none is."""
        self._validate_windows(windows)
        self._owned_doctor(doctor_id, owner_user_id)

        with self.uow_factory() as uow:
            # Concurrent batches for this doctor wait here, so the overlap read below is current
            if not uow.slots.lock_doctor_schedule(doctor_id):
                raise NotFoundError("Doctor not found")
            accepted: List[SlotWindow] = []
            for w in windows:
                clash = any(a.date == w.date and a.overlaps(w.start_time, w.end_time) for a in accepted)
                if clash or uow.slots.find_overlapping(doctor_id, w):
                    logger.warning(f"Overlapping slot rejected for doctor {doctor_id} on {w.date} {w.start_time}-{w.end_time}")
                    raise BusinessRuleError(
                        f"Time slot overlaps with an existing slot on {w.date:%Y-%m-%d} "
                        f"between {w.start_time:%H:%M} and {w.end_time:%H:%M}"
                    )
                accepted.append(w)

            created = uow.slots.add_many(doctor_id, accepted)
            uow.commit()

        logger.info(f"Added {len(created)} time slots for doctor {doctor_id}")
        if self.audit:
            self.audit.log("slots.added", owner_user_id, details={
                "doctor_id": doctor_id,
                "slot_ids": [s.id for s in created],
            })
        return created

    def delete_slot(self, doctor_id: int, slot_id: int, owner_user_id: str) -> None:
        self._owned_doctor(doctor_id, owner_user_id)

        with self.uow_factory() as uow:
            slot = uow.slots.get(slot_id)
            if not slot or slot.doctor_id != doctor_id:
                raise NotFoundError("Time slot not found")
            if slot.is_booked:
                raise BusinessRuleError("Cannot delete a time slot that is already booked.")
            uow.slots.soft_delete(slot)
            uow.commit()

        logger.info(f"Deleted time slot {slot_id} of doctor {doctor_id}")
        if self.audit:
            self.audit.log("slot.deleted", owner_user_id, details={"doctor_id": doctor_id, "slot_id": slot_id})

    def get_availability(self, doctor_id: int, start_date: date, end_date: date, only_free: bool = False) -> List[TimeSlotDto]:
        if start_date > end_date:
            raise ValidationFailedError("start_date must not be after end_date")
        if not self.directory.get_doctor_by_id(doctor_id):
            raise NotFoundError("Doctor not found")
        with self.uow_factory() as uow:
            return uow.slots.list_for_doctor(doctor_id, start_date, end_date, only_free=only_free)
