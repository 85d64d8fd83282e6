"""Role based access rules for tickets and comments.

Every function is pure: callers pass the actor's role and id together with the
identities recorded on the resource. MANAGER is allowed everything; unknown
roles are allowed nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Fixed set of account roles."""

    MANAGER = "MANAGER"
    SUPPORT = "SUPPORT"
    USER = "USER"


ASSIGNABLE_ROLES: frozenset[Role] = frozenset({Role.SUPPORT, Role.MANAGER})
TICKET_CREATOR_ROLES: frozenset[Role] = frozenset({Role.USER, Role.MANAGER})
TICKET_STAFF_ROLES: frozenset[Role] = frozenset({Role.SUPPORT, Role.MANAGER})
PROVISIONABLE_ROLES: frozenset[Role] = frozenset({Role.USER, Role.SUPPORT})


@dataclass(frozen=True, slots=True)
class Actor:
    """Authenticated caller as seen by the services."""

    id: str
    role: Role


@dataclass(frozen=True, slots=True)
class TicketScope:
    """Store level filter restricting which tickets an actor may list.

    ``None`` on both fields means no restriction; ``empty`` matches no ticket.
    """

    created_by: str | None = None
    assigned_to: str | None = None
    empty: bool = False

    @property
    def unrestricted(self) -> bool:
        return not self.empty and self.created_by is None and self.assigned_to is None


def _role(value: Role | str) -> Role | None:
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def _is_participant(role: Role | str, actor_id: str, owner_id: str | None, assignee_id: str | None) -> bool:
    resolved = _role(role)
    if resolved is Role.MANAGER:
        return True
    if resolved is Role.SUPPORT:
        return assignee_id is not None and assignee_id == actor_id
    if resolved is Role.USER:
        return owner_id is not None and owner_id == actor_id
    return False


def can_view_ticket(role: Role | str, actor_id: str, owner_id: str | None, assignee_id: str | None) -> bool:
    return _is_participant(role, actor_id, owner_id, assignee_id)


def ticket_scope(role: Role | str, actor_id: str) -> TicketScope:
    resolved = _role(role)
    if resolved is Role.MANAGER:
        return TicketScope()
    if resolved is Role.SUPPORT:
        return TicketScope(assigned_to=actor_id)
    if resolved is Role.USER:
        return TicketScope(created_by=actor_id)
    return TicketScope(empty=True)


def can_create_ticket(role: Role | str) -> bool:
    return _role(role) in TICKET_CREATOR_ROLES


def can_assign_ticket(role: Role | str) -> bool:
    return _role(role) in TICKET_STAFF_ROLES


def can_change_status(role: Role | str) -> bool:
    return _role(role) in TICKET_STAFF_ROLES


def can_delete_ticket(role: Role | str) -> bool:
    return _role(role) is Role.MANAGER


def can_edit_ticket(role: Role | str, actor_id: str, owner_id: str | None) -> bool:
    resolved = _role(role)
    if resolved is Role.MANAGER:
        return True
    return resolved is Role.USER and owner_id is not None and owner_id == actor_id


def can_comment_on_ticket(
    role: Role | str, actor_id: str, owner_id: str | None, assignee_id: str | None
) -> bool:
    return _is_participant(role, actor_id, owner_id, assignee_id)


def can_view_comments(role: Role | str, actor_id: str, owner_id: str | None, assignee_id: str | None) -> bool:
    return _is_participant(role, actor_id, owner_id, assignee_id)


def can_modify_comment(role: Role | str, actor_id: str, author_id: str | None) -> bool:
    resolved = _role(role)
    if resolved is Role.MANAGER:
        return True
    if resolved is None:
        return False
    return author_id is not None and author_id == actor_id


def can_manage_users(role: Role | str) -> bool:
    return _role(role) is Role.MANAGER


def is_assignable_role(role: Role | str | None) -> bool:
    """The assignee, not the actor, must hold SUPPORT or MANAGER."""

    if role is None:
        return False
    return _role(role) in ASSIGNABLE_ROLES
