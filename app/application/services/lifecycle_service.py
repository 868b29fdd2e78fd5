from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional
import logging

from ...exceptions import (
    BusinessRuleError,
    InvalidTransitionError,
    NotFoundError,
    SlotDoctorMismatchError,
    SlotUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)
from ...utils import utc_now
from ..ports.appointments_repo import AppointmentDto
from ..ports.audit_logger import AuditLogger
from ..ports.directory import Directory, IdentityProvider
from ..ports.unit_of_work import UnitOfWork, UnitOfWorkFactory
from ..status import AppointmentStatus, is_terminal, validate_transition

logger = logging.getLogger(__name__)

MAX_NOTES_LENGTH = 2000
MAX_REASON_LENGTH = 500

DOCTOR_ONLY_TARGETS = {
    AppointmentStatus.CONFIRMED: "confirm appointments",
    AppointmentStatus.COMPLETED: "complete appointments",
    AppointmentStatus.NO_SHOW: "mark appointment as NoShow",
}


@dataclass
class LifecycleService:
    uow_factory: UnitOfWorkFactory
    directory: Directory
    identity: IdentityProvider
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = field(default=utc_now)
    admin_role: str = "Admin"

    def _is_admin(self, user_id: str) -> bool:
        return self.identity.has_role(user_id, self.admin_role)

    def _load(self, uow: UnitOfWork, appointment_id: int) -> AppointmentDto:
        appt = uow.appointments.get(appointment_id)
        if not appt:
            raise NotFoundError("Appointment not found")
        return appt

    def _authorize(self, appt: AppointmentDto, caller_user_id: str, target: AppointmentStatus) -> None:
        is_doctor = appt.doctor_user_id == caller_user_id
        if target in DOCTOR_ONLY_TARGETS:
            if not is_doctor:
                raise UnauthorizedError(f"Only the assigned doctor can {DOCTOR_ONLY_TARGETS[target]}.")
            return
        is_party = is_doctor or appt.patient_user_id == caller_user_id
        if not is_party and not self._is_admin(caller_user_id):
            if target == AppointmentStatus.CANCELED:
                raise UnauthorizedError("Unauthorized to cancel this appointment.")
            raise UnauthorizedError("Unauthorized access to appointment")

    @staticmethod
    def _validate_payload(notes: Optional[str], cancellation_reason: Optional[str]) -> None:
        if notes and len(notes) > MAX_NOTES_LENGTH:
            raise ValidationFailedError(f"Notes cannot exceed {MAX_NOTES_LENGTH} characters")
        if cancellation_reason and len(cancellation_reason) > MAX_REASON_LENGTH:
            raise ValidationFailedError(f"Cancellation reason cannot exceed {MAX_REASON_LENGTH} characters")

    def transition(
        self,
        appointment_id: int,
        caller_user_id: str,
        target: AppointmentStatus,
        notes: Optional[str] = None,
        cancellation_reason: Optional[str] = None,
    ) -> AppointmentDto:
        """Move an appointment to ``target`` and apply that status's side effects atomically.

        Requesting the current status is a no-op that writes nothing. A concurrent
        modification is reported as ConcurrencyConflictError and is not retried here.
        """
        self._validate_payload(notes, cancellation_reason)

        with self.uow_factory() as uow:
            appt = self._load(uow, appointment_id)
            try:
                validate_transition(appt.status, target)
            except InvalidTransitionError:
                logger.warning(
                    f"Invalid status transition: AppointmentId: {appointment_id}, "
                    f"CurrentStatus: {appt.status}, AttemptedStatus: {target}"
                )
                raise
            self._authorize(appt, caller_user_id, target)

            if target == AppointmentStatus.CANCELED and appt.appointment_date < self.clock().date():
                raise BusinessRuleError("Cannot cancel past appointments.")

            if appt.status == target:
                return appt

            changes = {"status": target}
            if target == AppointmentStatus.COMPLETED:
                changes["notes"] = notes
            elif target == AppointmentStatus.CANCELED:
                changes["cancellation_reason"] = cancellation_reason
                changes["cancelled_at"] = self.clock()

            updated = uow.appointments.update(appt, **changes)

            if target == AppointmentStatus.CANCELED:
                slot = uow.slots.get(appt.slot_id)
                if slot and slot.is_booked:
                    uow.slots.set_booked(slot, False)

            uow.commit()

        logger.info(
            f"Appointment {appointment_id} moved from {appt.status} to {target} by user {caller_user_id}"
        )
        if self.audit:
            details = {
                "appointment_id": appointment_id,
                "from_status": str(appt.status),
                "to_status": str(target),
            }
            if target == AppointmentStatus.CANCELED:
                details["slot_id"] = appt.slot_id
                details["reason"] = cancellation_reason
            self.audit.log("appointment.status_changed", caller_user_id, details=details)
        return updated

    def confirm(self, appointment_id: int, caller_user_id: str) -> AppointmentDto:
        return self.transition(appointment_id, caller_user_id, AppointmentStatus.CONFIRMED)

    def complete(self, appointment_id: int, caller_user_id: str, notes: Optional[str] = None) -> AppointmentDto:
        return self.transition(appointment_id, caller_user_id, AppointmentStatus.COMPLETED, notes=notes)

    def mark_no_show(self, appointment_id: int, caller_user_id: str) -> AppointmentDto:
        return self.transition(appointment_id, caller_user_id, AppointmentStatus.NO_SHOW)

    def cancel(self, appointment_id: int, caller_user_id: str, cancellation_reason: Optional[str] = None) -> AppointmentDto:
        return self.transition(
            appointment_id, caller_user_id, AppointmentStatus.CANCELED, cancellation_reason=cancellation_reason
        )

    def reschedule(self, appointment_id: int, patient_user_id: str, new_slot_id: int, reason: Optional[str] = None) -> AppointmentDto:
        """Swap the appointment onto ``new_slot_id``.

        Old-slot release, new-slot claim and the appointment update commit together;
        on any failure the appointment keeps pointing at its original, still booked slot.
        """
        if new_slot_id <= 0:
            raise ValidationFailedError("New time slot ID must be greater than 0")
        if reason and len(reason) > MAX_REASON_LENGTH:
            raise ValidationFailedError(f"Reschedule reason cannot exceed {MAX_REASON_LENGTH} characters")

        with self.uow_factory() as uow:
            appt = self._load(uow, appointment_id)
            if appt.patient_user_id != patient_user_id:
                raise UnauthorizedError("Only the patient can reschedule appointments")
            if is_terminal(appt.status):
                raise BusinessRuleError(f"Cannot reschedule an appointment that is {appt.status}")

            new_slot = uow.slots.get(new_slot_id)
            if not new_slot or new_slot.is_booked or new_slot.has_started(self.clock()):
                raise SlotUnavailableError(
                    "The selected time slot is not available or has already been booked. Please choose another slot."
                )
            if new_slot.doctor_id != appt.doctor_id:
                raise SlotDoctorMismatchError("New time slot must belong to the same doctor")

            old_slot = uow.slots.get(appt.slot_id)
            if old_slot and old_slot.is_booked:
                uow.slots.set_booked(old_slot, False)
            uow.slots.set_booked(new_slot, True)

            updated = uow.appointments.update(
                appt,
                slot_id=new_slot.id,
                appointment_date=new_slot.date,
                start_time=new_slot.start_time,
                end_time=new_slot.end_time,
            )
            uow.commit()

        logger.info(f"Appointment {appointment_id} rescheduled from slot {appt.slot_id} to slot {new_slot_id}")
        if self.audit:
            self.audit.log("appointment.rescheduled", patient_user_id, details={
                "appointment_id": appointment_id,
                "old_slot_id": appt.slot_id,
                "new_slot_id": new_slot_id,
                "reason": reason,
            })
        return updated

    def get_appointment(self, appointment_id: int, caller_user_id: str) -> AppointmentDto:
        with self.uow_factory() as uow:
            appt = self._load(uow, appointment_id)
        is_party = caller_user_id in (appt.patient_user_id, appt.doctor_user_id)
        if not is_party and not self._is_admin(caller_user_id):
            raise UnauthorizedError("Unauthorized access to appointment")
        return appt

    def list_my_appointments(self, caller_user_id: str, status: Optional[AppointmentStatus] = None) -> List[AppointmentDto]:
        patient = self.directory.get_patient_by_user(caller_user_id)
        doctor = None if patient else self.directory.get_doctor_by_user(caller_user_id)
        if not patient and not doctor:
            raise BusinessRuleError("No patient or doctor profile found")
        with self.uow_factory() as uow:
            if patient:
                return uow.appointments.list_for_patient(patient.id, status=status)
            return uow.appointments.list_for_doctor(doctor.id, status=status)
