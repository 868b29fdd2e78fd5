import pytest

from app.application.status import (
    ALLOWED_TRANSITIONS,
    AppointmentStatus,
    TERMINAL_STATUSES,
    is_terminal,
    is_transition_allowed,
    validate_transition,
)
from app.exceptions import InvalidTransitionError
from app.schemas.appointments.appointment import AppointmentStatusUpdate, parse_status

S = AppointmentStatus


def test_allowed_pairs_are_exactly_the_lifecycle_edges():
    allowed = {
        (current, target)
        for current in S
        for target in S
        if current != target and is_transition_allowed(current, target)
    }
    assert allowed == {
        (S.PENDING, S.CONFIRMED),
        (S.PENDING, S.CANCELED),
        (S.CONFIRMED, S.COMPLETED),
        (S.CONFIRMED, S.CANCELED),
        (S.CONFIRMED, S.NO_SHOW),
    }


def test_terminal_statuses_have_no_outgoing_edges():
    assert TERMINAL_STATUSES == {S.COMPLETED, S.CANCELED, S.NO_SHOW}
    for status in TERMINAL_STATUSES:
        assert ALLOWED_TRANSITIONS[status] == frozenset()
        assert is_terminal(status)
    assert not is_terminal(S.PENDING)


def test_same_status_is_allowed_as_noop():
    for status in S:
        assert is_transition_allowed(status, status)
        validate_transition(status, status)


def test_table_cannot_be_mutated():
    with pytest.raises(TypeError):
        ALLOWED_TRANSITIONS[S.COMPLETED] = frozenset({S.PENDING})


def test_invalid_transition_lists_allowed_targets():
    with pytest.raises(InvalidTransitionError) as ei:
        validate_transition(S.PENDING, S.COMPLETED)
    err = ei.value
    assert err.current == S.PENDING
    assert err.requested == S.COMPLETED
    assert err.allowed == {S.CONFIRMED, S.CANCELED}
    assert err.message == (
        "Invalid status transition from Pending to Completed. "
        "Allowed transitions from Pending: Canceled, Confirmed"
    )
    assert err.status_code == 400


def test_invalid_transition_from_terminal_state():
    with pytest.raises(InvalidTransitionError) as ei:
        validate_transition(S.CANCELED, S.CONFIRMED)
    assert "none (terminal state)" in ei.value.message


def test_parse_status_accepts_british_spelling_and_any_case():
    assert parse_status("Cancelled") == S.CANCELED
    assert parse_status("canceled") == S.CANCELED
    assert parse_status("CONFIRMED") == S.CONFIRMED
    assert parse_status("noshow") == S.NO_SHOW
    assert parse_status(S.PENDING) == S.PENDING


def test_parse_status_rejects_unknown_values():
    with pytest.raises(ValueError) as ei:
        parse_status("Done")
    assert "Invalid status 'Done'" in str(ei.value)


def test_status_update_schema_normalizes_status():
    body = AppointmentStatusUpdate(status="cancelled", cancellation_reason="travel")
    assert body.status == S.CANCELED
