import pytest

from apps.api.services.errors import IllegalTransitionError
from apps.api.services.status import (
    TicketStateMachine,
    TicketStatus,
    is_valid_transition,
    valid_next_statuses,
)


def test_state_machine_allows_linear_chain():
    assert is_valid_transition(TicketStatus.OPEN, TicketStatus.IN_PROGRESS)
    assert is_valid_transition(TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED)
    assert is_valid_transition(TicketStatus.RESOLVED, TicketStatus.CLOSED)


@pytest.mark.parametrize("status", list(TicketStatus))
def test_state_machine_rejects_self_loop(status):
    assert not is_valid_transition(status, status)


@pytest.mark.parametrize("target", list(TicketStatus))
def test_closed_is_terminal(target):
    assert not is_valid_transition(TicketStatus.CLOSED, target)
    assert valid_next_statuses(TicketStatus.CLOSED) == frozenset()


def test_state_machine_rejects_skips_and_backward_moves():
    assert not is_valid_transition(TicketStatus.OPEN, TicketStatus.RESOLVED)
    assert not is_valid_transition(TicketStatus.IN_PROGRESS, TicketStatus.CLOSED)
    assert not is_valid_transition(TicketStatus.RESOLVED, TicketStatus.OPEN)
    assert not is_valid_transition(TicketStatus.IN_PROGRESS, TicketStatus.OPEN)


def test_each_status_has_at_most_one_successor():
    for status in TicketStatus:
        assert len(valid_next_statuses(status)) <= 1
    assert valid_next_statuses("OPEN") == frozenset({TicketStatus.IN_PROGRESS})


def test_missing_current_status_is_accepted():
    assert is_valid_transition(None, TicketStatus.OPEN)
    assert is_valid_transition(None, TicketStatus.CLOSED)


def test_unknown_values_are_rejected_without_raising():
    assert not is_valid_transition("REOPENED", TicketStatus.OPEN)
    assert not is_valid_transition(TicketStatus.OPEN, "DONE")
    assert valid_next_statuses("DONE") == frozenset()


def test_assert_transition_raises_with_both_statuses():
    machine = TicketStateMachine()
    with pytest.raises(IllegalTransitionError) as exc:
        machine.assert_transition(TicketStatus.IN_PROGRESS, TicketStatus.CLOSED)

    assert exc.value.old_status == TicketStatus.IN_PROGRESS
    assert exc.value.new_status == TicketStatus.CLOSED
    assert "IN_PROGRESS" in exc.value.message
    assert "CLOSED" in exc.value.message
    assert exc.value.status_code == 400


def test_initial_state_is_open():
    assert TicketStateMachine.initial_state() is TicketStatus.OPEN
