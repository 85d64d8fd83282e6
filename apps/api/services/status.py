from __future__ import annotations

from enum import Enum
from typing import Mapping

from .errors import IllegalTransitionError


class TicketStatus(str, Enum):
    """Canonical states of the ticket lifecycle."""

    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class TicketPriority(str, Enum):
    """Priority levels a ticket can carry."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TicketStateMachine:
    """Validate ticket status transitions along a forward-only chain."""

    _DEFAULT_TRANSITIONS: Mapping[TicketStatus, frozenset[TicketStatus]] = {
        TicketStatus.OPEN: frozenset({TicketStatus.IN_PROGRESS}),
        TicketStatus.IN_PROGRESS: frozenset({TicketStatus.RESOLVED}),
        TicketStatus.RESOLVED: frozenset({TicketStatus.CLOSED}),
        TicketStatus.CLOSED: frozenset(),
    }

    def __init__(self, transitions: Mapping[TicketStatus, frozenset[TicketStatus]] | None = None) -> None:
        self._transitions = transitions or self._DEFAULT_TRANSITIONS

    @staticmethod
    def initial_state() -> TicketStatus:
        return TicketStatus.OPEN

    def next_statuses(self, current: TicketStatus | str | None) -> frozenset[TicketStatus]:
        status = _coerce(current)
        if status is None:
            return frozenset()
        return self._transitions.get(status, frozenset())

    def can_transition(self, current: TicketStatus | str | None, target: TicketStatus | str) -> bool:
        if current is None:
            return True
        if _coerce(current) is None:
            return False
        new = _coerce(target)
        if new is None:
            return False
        return new in self.next_statuses(current)

    def assert_transition(self, current: TicketStatus | str | None, target: TicketStatus | str) -> None:
        if not self.can_transition(current, target):
            raise IllegalTransitionError(current, target)


def _coerce(value: TicketStatus | str | None) -> TicketStatus | None:
    if value is None or isinstance(value, TicketStatus):
        return value
    try:
        return TicketStatus(value)
    except ValueError:
        return None


_default_machine = TicketStateMachine()


def is_valid_transition(old_status: TicketStatus | str | None, new_status: TicketStatus | str) -> bool:
    """Return whether ``new_status`` is the designated successor of ``old_status``.

    A missing ``old_status`` is treated as "not yet set" and always accepted.
    Values outside :class:`TicketStatus` are rejected rather than raising.
    """

    return _default_machine.can_transition(old_status, new_status)


def valid_next_statuses(status: TicketStatus | str | None) -> frozenset[TicketStatus]:
    """Return the legal next state (at most one), empty for CLOSED."""

    return _default_machine.next_statuses(status)
