"""Translate storage failures into the errors callers are allowed to see."""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ....application.ports.unit_of_work import StaleVersionError
from ....exceptions import (
    BookingError,
    BusinessRuleError,
    ConcurrencyConflictError,
    DuplicateConstraintError,
    SlotUnavailableError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)

LOST_RACE_MESSAGE = "This time slot was just booked by another user. Please select a different time slot."

# Index names (Postgres) and column lists (SQLite) of the constraints that guard an active booking
SLOT_RACE_MARKERS = (
    "ux_appointments_active_slot",
    "ux_appointments_active_doctor_date_start",
    "appointments.slot_id",
    "appointments.doctor_id, appointments.appointment_date, appointments.start_time",
)
UNIQUE_MARKERS = ("unique", "duplicate")


def is_persistence_error(exc: BaseException) -> bool:
    return isinstance(exc, (StaleVersionError, SQLAlchemyError))


def report_conflict(exc: BaseException) -> BookingError:
    if isinstance(exc, StaleVersionError):
        if exc.claiming:
            logger.warning(f"Booking race lost on time slot {exc.entity_id} (version {exc.expected_version})")
            return SlotUnavailableError(LOST_RACE_MESSAGE)
        logger.warning(f"Stale {exc.entity} {exc.entity_id} at version {exc.expected_version}")
        return ConcurrencyConflictError()

    if isinstance(exc, IntegrityError):
        message = str(exc.orig)
        if any(marker in message for marker in SLOT_RACE_MARKERS):
            logger.warning(f"Double booking prevented by database constraint: {message}")
            return SlotUnavailableError(LOST_RACE_MESSAGE)
        if any(marker in message.lower() for marker in UNIQUE_MARKERS):
            logger.warning(f"Duplicate record rejected: {message}")
            return DuplicateConstraintError()
        logger.warning(f"Integrity rule violated: {message}")
        return BusinessRuleError("The operation violates a data integrity rule.")

    # lock wait timeouts, dropped connections, pool exhaustion
    logger.error(f"Storage failure during unit of work: {exc}")
    return StorageUnavailableError()
