"""Appointment status values and the table of allowed status transitions.

The table is plain immutable data; every status mutation in the lifecycle
service consults it before touching storage.
"""
from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Mapping

from ..exceptions import InvalidTransitionError


class AppointmentStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELED = "Canceled"
    NO_SHOW = "NoShow"

    def __str__(self) -> str:
        return self.value


ALLOWED_TRANSITIONS: Mapping[AppointmentStatus, FrozenSet[AppointmentStatus]] = MappingProxyType({
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELED}),
    AppointmentStatus.CONFIRMED: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELED,
        AppointmentStatus.NO_SHOW,
    }),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
})

TERMINAL_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def allowed_targets(current: AppointmentStatus) -> FrozenSet[AppointmentStatus]:
    return ALLOWED_TRANSITIONS.get(current, frozenset())


def is_transition_allowed(current: AppointmentStatus, requested: AppointmentStatus) -> bool:
    if current == requested:
        return True  # no-op
    return requested in allowed_targets(current)


def validate_transition(current: AppointmentStatus, requested: AppointmentStatus) -> None:
    if not is_transition_allowed(current, requested):
        raise InvalidTransitionError(current, requested, allowed_targets(current))


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES
