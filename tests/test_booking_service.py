from datetime import datetime, time, timedelta, timezone

import pytest
from sqlmodel import Session, select

from app.application.status import AppointmentStatus
from app.db.models import Appointment, TimeSlot
from app.exceptions import (
    BusinessRuleError,
    NotFoundError,
    SlotDoctorMismatchError,
    SlotUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)
from app.utils import utc_now


def slot_row(engine, slot_id):
    with Session(engine) as s:
        return s.get(TimeSlot, slot_id)


def appointment_count(engine):
    with Session(engine) as s:
        return len(s.exec(select(Appointment)).all())


def test_book_success(engine, services, clinic, open_slots):
    appt = services.booking.book("u-patient", clinic.doctor_id, open_slots.first.id, reason_for_visit="toothache")

    assert appt.id is not None
    assert appt.status == AppointmentStatus.PENDING
    assert appt.patient_id == clinic.patient_id
    assert appt.doctor_id == clinic.doctor_id
    assert appt.clinic_id == 7
    assert appt.slot_id == open_slots.first.id
    assert appt.appointment_date == open_slots.first.date
    assert (appt.start_time, appt.end_time) == (time(9), time(10))
    assert appt.reason_for_visit == "toothache"

    row = slot_row(engine, open_slots.first.id)
    assert row.is_booked is True
    assert row.version == 2
    assert "appointment.booked" in services.audit.actions()


def test_booked_slot_cannot_be_booked_again(engine, services, clinic, open_slots):
    services.booking.book("u-patient", clinic.doctor_id, open_slots.first.id)
    with pytest.raises(SlotUnavailableError) as ei:
        services.booking.book("u-patient2", clinic.doctor_id, open_slots.first.id)
    assert ei.value.status_code == 409
    assert appointment_count(engine) == 1


def test_slot_of_another_doctor_is_rejected(engine, services, clinic, open_slots):
    with pytest.raises(SlotDoctorMismatchError):
        services.booking.book("u-patient", clinic.doctor_id, open_slots.other_doctor.id)
    assert slot_row(engine, open_slots.other_doctor.id).is_booked is False
    assert appointment_count(engine) == 0


def test_unverified_user_cannot_book(services, clinic, open_slots):
    with pytest.raises(UnauthorizedError) as ei:
        services.booking.book("u-unverified", clinic.doctor_id, open_slots.first.id)
    assert ei.value.message == "Email must be verified to book appointments"


def test_user_without_patient_profile_cannot_book(services, clinic, open_slots):
    with pytest.raises(BusinessRuleError) as ei:
        services.booking.book("u-noprofile", clinic.doctor_id, open_slots.first.id)
    assert ei.value.message == "Please create a patient profile first"


def test_unknown_or_unapproved_doctor(services, clinic, open_slots):
    with pytest.raises(NotFoundError):
        services.booking.book("u-patient", 9999, open_slots.first.id)
    with pytest.raises(BusinessRuleError):
        services.booking.book("u-patient", clinic.pending_doctor_id, open_slots.first.id)


def test_missing_deleted_or_past_slot_is_unavailable(engine, services, clinic, open_slots):
    with pytest.raises(SlotUnavailableError):
        services.booking.book("u-patient", clinic.doctor_id, 9999)

    services.slots.delete_slot(clinic.doctor_id, open_slots.third.id, "u-doctor")
    with pytest.raises(SlotUnavailableError):
        services.booking.book("u-patient", clinic.doctor_id, open_slots.third.id)

    with Session(engine) as s:
        past = TimeSlot(
            doctor_id=clinic.doctor_id,
            slot_date=utc_now().date() - timedelta(days=1),
            start_time=time(9),
            end_time=time(10),
        )
        s.add(past)
        s.commit()
        past_id = past.id
    with pytest.raises(SlotUnavailableError):
        services.booking.book("u-patient", clinic.doctor_id, past_id)
    assert appointment_count(engine) == 0


def test_invalid_input_rejected_before_any_lookup(services):
    with pytest.raises(ValidationFailedError):
        services.booking.book("u-patient", 0, 1)
    with pytest.raises(ValidationFailedError):
        services.booking.book("u-patient", 1, -5)
    with pytest.raises(ValidationFailedError):
        services.booking.book("u-patient", 1, 1, reason_for_visit="x" * 501)


def test_slot_freed_by_cancel_can_be_booked_again(engine, services, clinic, open_slots):
    first = services.booking.book("u-patient", clinic.doctor_id, open_slots.second.id)
    services.lifecycle.cancel(first.id, "u-patient", cancellation_reason="conflict")

    second = services.booking.book("u-patient2", clinic.doctor_id, open_slots.second.id)
    assert second.patient_id == clinic.patient2_id
    assert slot_row(engine, open_slots.second.id).is_booked is True
    assert appointment_count(engine) == 2


def test_timestamps_are_timezone_aware_and_stored(engine, services, clinic, open_slots):
    assert utc_now().tzinfo is not None

    appt = services.booking.book("u-patient", clinic.doctor_id, open_slots.first.id)
    services.lifecycle.cancel(appt.id, "u-patient")

    with Session(engine) as s:
        slot = s.get(TimeSlot, open_slots.first.id)
        stored = s.get(Appointment, appt.id)
        assert slot.created_at is not None
        assert slot.updated_at is not None
        assert slot.updated_at >= slot.created_at
        assert stored.created_at is not None
        assert stored.updated_at >= stored.created_at
        assert stored.cancelled_at is not None


def test_slot_that_already_started_today_is_unavailable(make_services, services, clinic, open_slots, day):
    mid_morning = make_services(clock=lambda: datetime.combine(day, time(10, 30), tzinfo=timezone.utc))

    with pytest.raises(SlotUnavailableError):
        mid_morning.booking.book("u-patient", clinic.doctor_id, open_slots.first.id)
    with pytest.raises(SlotUnavailableError):
        mid_morning.booking.book("u-patient", clinic.doctor_id, open_slots.second.id)
    appt = mid_morning.booking.book("u-patient", clinic.doctor_id, open_slots.third.id)
    assert appt.start_time == time(11)

    with pytest.raises(SlotUnavailableError):
        mid_morning.lifecycle.reschedule(appt.id, "u-patient", open_slots.second.id)
