from dataclasses import replace
from typing import List, Optional
from sqlalchemy import update
from sqlmodel import Session, select

from .....db.models import Appointment, Doctor, Patient
from .....utils import utc_now
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
    NewAppointment,
)
from .....application.ports.unit_of_work import StaleVersionError
from .....application.status import AppointmentStatus


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment, patient_user_id: Optional[str] = None, doctor_user_id: Optional[str] = None) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            patient_id=a.patient_id,
            doctor_id=a.doctor_id,
            clinic_id=a.clinic_id,
            slot_id=a.slot_id,
            appointment_date=a.appointment_date,
            start_time=a.start_time,
            end_time=a.end_time,
            status=AppointmentStatus(a.status),
            reason_for_visit=a.reason_for_visit,
            notes=a.notes,
            cancellation_reason=a.cancellation_reason,
            cancelled_at=a.cancelled_at,
            version=a.version,
            created_at=a.created_at,
            updated_at=a.updated_at,
            patient_user_id=patient_user_id,
            doctor_user_id=doctor_user_id,
        )

    def get(self, appointment_id: int) -> Optional[AppointmentDto]:
        row = self.session.exec(
            select(Appointment, Patient.user_id, Doctor.user_id)
            .join(Patient, Patient.id == Appointment.patient_id)
            .join(Doctor, Doctor.id == Appointment.doctor_id)
            .where(Appointment.id == appointment_id)
            .where(Appointment.is_deleted == False)  # noqa: E712
            .execution_options(populate_existing=True)
        ).first()
        if not row:
            return None
        appt, patient_user_id, doctor_user_id = row
        return self._appt_to_dto(appt, patient_user_id, doctor_user_id)

    def add(self, appointment: NewAppointment) -> AppointmentDto:
        appt = Appointment(
            patient_id=appointment.patient_id,
            doctor_id=appointment.doctor_id,
            clinic_id=appointment.clinic_id,
            slot_id=appointment.slot_id,
            appointment_date=appointment.appointment_date,
            start_time=appointment.start_time,
            end_time=appointment.end_time,
            status=AppointmentStatus.PENDING.value,
            reason_for_visit=appointment.reason_for_visit,
        )
        self.session.add(appt)
        self.session.flush()
        return self._appt_to_dto(appt)

    def update(self, appointment: AppointmentDto, **changes) -> AppointmentDto:
        values = dict(changes)
        if "status" in values:
            values["status"] = AppointmentStatus(values["status"]).value
        now = utc_now()
        result = self.session.exec(
            update(Appointment)
            .where(Appointment.id == appointment.id)
            .where(Appointment.version == appointment.version)
            .values(version=Appointment.version + 1, updated_at=now, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StaleVersionError("appointment", appointment.id, appointment.version)
        return replace(appointment, version=appointment.version + 1, updated_at=now, **changes)

    def _list(self, *criteria, status: Optional[AppointmentStatus] = None) -> List[AppointmentDto]:
        query = select(Appointment).where(Appointment.is_deleted == False)  # noqa: E712
        for c in criteria:
            query = query.where(c)
        if status is not None:
            query = query.where(Appointment.status == AppointmentStatus(status).value)
        rows = self.session.exec(
            query.order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
        ).all()
        return [self._appt_to_dto(r) for r in rows]

    def list_for_patient(self, patient_id: int, status: Optional[AppointmentStatus] = None) -> List[AppointmentDto]:
        return self._list(Appointment.patient_id == patient_id, status=status)

    def list_for_doctor(self, doctor_id: int, status: Optional[AppointmentStatus] = None) -> List[AppointmentDto]:
        return self._list(Appointment.doctor_id == doctor_id, status=status)
