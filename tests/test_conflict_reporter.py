import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from app.application.ports.unit_of_work import StaleVersionError
from app.exceptions import (
    BusinessRuleError,
    ConcurrencyConflictError,
    DuplicateConstraintError,
    SlotUnavailableError,
    StorageUnavailableError,
)
from app.infrastructure.persistence.sqlalchemy.conflict_reporter import (
    LOST_RACE_MESSAGE,
    is_persistence_error,
    report_conflict,
)


def integrity(message: str) -> IntegrityError:
    return IntegrityError("INSERT INTO appointments ...", {}, Exception(message))


def test_lost_slot_claim_is_slot_unavailable():
    err = report_conflict(StaleVersionError("time_slot", 3, 1, claiming=True))
    assert type(err) is SlotUnavailableError
    assert err.message == LOST_RACE_MESSAGE


def test_other_stale_writes_are_concurrency_conflicts():
    assert type(report_conflict(StaleVersionError("appointment", 3, 2))) is ConcurrencyConflictError
    assert type(report_conflict(StaleVersionError("time_slot", 3, 2, claiming=False))) is ConcurrencyConflictError


@pytest.mark.parametrize("message", [
    "UNIQUE constraint failed: appointments.slot_id",
    "UNIQUE constraint failed: appointments.doctor_id, appointments.appointment_date, appointments.start_time",
    'duplicate key value violates unique constraint "ux_appointments_active_slot"',
])
def test_active_booking_constraints_are_slot_unavailable(message):
    assert type(report_conflict(integrity(message))) is SlotUnavailableError


def test_other_unique_violations_are_duplicates():
    err = report_conflict(integrity("UNIQUE constraint failed: time_slots.doctor_id, time_slots.slot_date, time_slots.start_time"))
    assert type(err) is DuplicateConstraintError
    assert err.status_code == 400


def test_other_integrity_errors_are_business_rules():
    err = report_conflict(integrity("NOT NULL constraint failed: appointments.clinic_id"))
    assert type(err) is BusinessRuleError


def test_storage_failures_are_unavailable():
    err = report_conflict(OperationalError("UPDATE time_slots ...", {}, Exception("database is locked")))
    assert type(err) is StorageUnavailableError
    assert err.status_code == 503


def test_is_persistence_error():
    assert is_persistence_error(StaleVersionError("time_slot", 1, 1))
    assert is_persistence_error(OperationalError("x", {}, Exception("boom")))
    assert not is_persistence_error(ValueError("nope"))


def test_unit_of_work_translates_errors_raised_inside_it(engine, services):
    with pytest.raises(StorageUnavailableError):
        with services.uow_factory():
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    with pytest.raises(ValueError):
        with services.uow_factory():
            raise ValueError("not a storage error")
