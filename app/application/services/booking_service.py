from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional
import logging

from ...exceptions import (
    BusinessRuleError,
    NotFoundError,
    SlotDoctorMismatchError,
    SlotUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)
from ...utils import utc_now
from ..ports.appointments_repo import AppointmentDto, NewAppointment
from ..ports.audit_logger import AuditLogger
from ..ports.directory import Directory, IdentityProvider
from ..ports.unit_of_work import UnitOfWorkFactory

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 500


@dataclass
class BookingService:
    uow_factory: UnitOfWorkFactory
    directory: Directory
    identity: IdentityProvider
    audit: Optional[AuditLogger] = None
    clock: Callable[[], datetime] = field(default=utc_now)

    def book(self, patient_user_id: str, doctor_id: int, time_slot_id: int, reason_for_visit: Optional[str] = None) -> AppointmentDto:
        """Claim ``time_slot_id`` and create a Pending appointment in one unit of work.

        The free-slot check below only turns most races into fast rejections; the
        version-checked claim and the unique indexes decide the winner at commit,
        and a lost race surfaces as SlotUnavailableError with nothing persisted.
        """
        if doctor_id <= 0:
            raise ValidationFailedError("Doctor ID must be greater than 0")
        if time_slot_id <= 0:
            raise ValidationFailedError("Time slot ID must be greater than 0")
        if reason_for_visit and len(reason_for_visit) > MAX_REASON_LENGTH:
            raise ValidationFailedError(f"Reason for visit cannot exceed {MAX_REASON_LENGTH} characters")

        if not self.identity.is_email_verified(patient_user_id):
            logger.warning(f"Booking attempt failed: email not verified. UserId: {patient_user_id}")
            raise UnauthorizedError("Email must be verified to book appointments")

        patient = self.directory.get_patient_by_user(patient_user_id)
        if not patient:
            logger.warning(f"Booking attempt failed: no patient profile. UserId: {patient_user_id}")
            raise BusinessRuleError("Please create a patient profile first")

        doctor = self.directory.get_doctor_by_id(doctor_id)
        if not doctor:
            raise NotFoundError("Doctor not found")
        if not doctor.is_approved:
            raise BusinessRuleError("Doctor is not accepting appointments")

        with self.uow_factory() as uow:
            slot = uow.slots.get(time_slot_id)
            if not slot or slot.is_booked or slot.has_started(self.clock()):
                logger.warning(
                    f"Booking failed: time slot unavailable. TimeSlotId: {time_slot_id}, "
                    f"PatientId: {patient.id}, DoctorId: {doctor_id}"
                )
                raise SlotUnavailableError()
            if slot.doctor_id != doctor_id:
                logger.warning(
                    f"Booking failed: time slot doctor mismatch. TimeSlotId: {time_slot_id}, "
                    f"Expected DoctorId: {doctor_id}, Actual DoctorId: {slot.doctor_id}"
                )
                raise SlotDoctorMismatchError()

            uow.slots.set_booked(slot, True)
            appointment = uow.appointments.add(NewAppointment(
                patient_id=patient.id,
                doctor_id=doctor_id,
                clinic_id=doctor.clinic_id,
                slot_id=slot.id,
                appointment_date=slot.date,
                start_time=slot.start_time,
                end_time=slot.end_time,
                reason_for_visit=reason_for_visit,
            ))
            uow.commit()

        logger.info(
            f"Appointment booked successfully. AppointmentId: {appointment.id}, PatientId: {patient.id}, "
            f"DoctorId: {doctor_id}, TimeSlotId: {time_slot_id}"
        )
        if self.audit:
            self.audit.log("appointment.booked", patient_user_id, details={
                "appointment_id": appointment.id,
                "doctor_id": doctor_id,
                "slot_id": time_slot_id,
                "status": str(appointment.status),
            })
        return appointment
