from datetime import time, timedelta
from types import SimpleNamespace
from typing import List

import pytest
from sqlmodel import Session

from app.application.ports.slot_repo import SlotWindow
from app.application.services.booking_service import BookingService
from app.application.services.lifecycle_service import LifecycleService
from app.application.services.slot_service import SlotService
from app.database import build_engine, create_db_and_tables
from app.db.models import Doctor, Patient, User
from app.infrastructure.persistence.sqlalchemy.repositories.directory_repository_sql import (
    SqlDirectory,
    SqlIdentityProvider,
)
from app.infrastructure.persistence.sqlalchemy.unit_of_work import SqlUnitOfWorkFactory
from app.utils import utc_now


class FakeAudit:
    def __init__(self):
        self.entries = []

    def log(self, action, user_id=None, success=True, details=None):
        self.entries.append((action, user_id, details or {}))

    def actions(self) -> List[str]:
        return [a for a, _, _ in self.entries]


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'booking.db'}", lock_timeout_seconds=30)
    create_db_and_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def clinic(engine):
    """Users, patient profiles and doctors shared by the SQL-backed tests."""
    with Session(engine) as s:
        s.add_all([
            User(id="u-patient", name="Pat", email="pat@example.com", is_verified=True),
            User(id="u-patient2", name="Sam", email="sam@example.com", is_verified=True),
            User(id="u-unverified", name="Una", email="una@example.com", is_verified=False),
            User(id="u-noprofile", name="Nor", email="nor@example.com", is_verified=True),
            User(id="u-doctor", name="Dr. Lee", role="Doctor", is_verified=True),
            User(id="u-other-doctor", name="Dr. Kim", role="Doctor", is_verified=True),
            User(id="u-pending-doctor", name="Dr. New", role="Doctor", is_verified=True),
            User(id="u-admin", name="Ada", role="Admin", is_verified=True),
        ])
        s.commit()
        patient = Patient(user_id="u-patient")
        patient2 = Patient(user_id="u-patient2")
        unverified = Patient(user_id="u-unverified")
        doctor = Doctor(user_id="u-doctor", clinic_id=7, specialization="Dentistry", is_approved=True)
        other = Doctor(user_id="u-other-doctor", clinic_id=9, is_approved=True)
        pending = Doctor(user_id="u-pending-doctor", clinic_id=7, is_approved=False)
        s.add_all([patient, patient2, unverified, doctor, other, pending])
        s.commit()
        return SimpleNamespace(
            patient_id=patient.id,
            patient2_id=patient2.id,
            doctor_id=doctor.id,
            other_doctor_id=other.id,
            pending_doctor_id=pending.id,
        )


@pytest.fixture
def make_services(engine):
    """Build an independent set of services; each call gets its own directory session."""
    sessions = []

    def _make(clock=utc_now):
        session = Session(engine)
        sessions.append(session)
        directory = SqlDirectory(session)
        identity = SqlIdentityProvider(session)
        uow_factory = SqlUnitOfWorkFactory(engine)
        audit = FakeAudit()
        return SimpleNamespace(
            slots=SlotService(uow_factory, directory, audit=audit, clock=clock),
            booking=BookingService(uow_factory, directory, identity, audit=audit, clock=clock),
            lifecycle=LifecycleService(uow_factory, directory, identity, audit=audit, clock=clock),
            uow_factory=uow_factory,
            audit=audit,
        )

    yield _make
    for session in sessions:
        session.close()


@pytest.fixture
def services(make_services):
    return make_services()


@pytest.fixture
def day():
    return utc_now().date() + timedelta(days=3)


def _window(d, start_hour, end_hour, start_minute=0, end_minute=0) -> SlotWindow:
    return SlotWindow(d, time(start_hour, start_minute), time(end_hour, end_minute))


@pytest.fixture
def open_slots(services, clinic, day):
    """Three free one-hour slots for the main doctor and one for the other doctor."""
    mine = services.slots.add_slots(clinic.doctor_id, "u-doctor", [
        _window(day, 9, 10),
        _window(day, 10, 11),
        _window(day, 11, 12),
    ])
    theirs = services.slots.add_slots(clinic.other_doctor_id, "u-other-doctor", [_window(day, 9, 10)])
    return SimpleNamespace(first=mine[0], second=mine[1], third=mine[2], other_doctor=theirs[0])
