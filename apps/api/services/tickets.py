from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence

from opentelemetry.trace import Tracer
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from apps.api.core.logging import get_tracer
from apps.api.metrics import ACCESS_DENIED, STATUS_TRANSITIONS, TICKETS_CREATED, MetricsRegistry, metrics_registry
from packages.db.models import TicketStatusLogTable, TicketTable

from .access import (
    Actor,
    TicketScope,
    can_assign_ticket,
    can_change_status,
    can_create_ticket,
    can_delete_ticket,
    can_edit_ticket,
    can_view_ticket,
    is_assignable_role,
    ticket_scope,
)
from .errors import (
    AccessDeniedError,
    AssigneeNotFoundError,
    IllegalAssigneeError,
    TicketNotFoundError,
)
from .status import TicketPriority, TicketStateMachine, TicketStatus
from .users import UserRepository, UserSummary, load_user_summaries, placeholder_summary

logger = logging.getLogger(__name__)

_HIDDEN_TICKET_MESSAGE = "Ticket not found or access denied"


@dataclass(slots=True)
class Ticket:
    """Ticket with creator and assignee resolved to display fragments."""

    id: str
    title: str
    description: str
    status: TicketStatus
    priority: TicketPriority
    created_by: UserSummary
    assigned_to: UserSummary | None
    created_at: datetime

    @property
    def owner_id(self) -> str:
        return self.created_by.id

    @property
    def assignee_id(self) -> str | None:
        return self.assigned_to.id if self.assigned_to is not None else None


@dataclass(slots=True)
class TicketStatusLog:
    """Audit entry recorded for every accepted status transition."""

    id: str
    ticket_id: str
    old_status: TicketStatus | None
    new_status: TicketStatus
    changed_by: UserSummary | None
    changed_at: datetime


class TicketRepository:
    """Persistence helper wrapping `tickets` and `ticket_status_logs`."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine: AsyncEngine | None = engine

    async def ensure_schema(self) -> None:
        if self._engine is None:
            raise RuntimeError("Session factory is not bound to an async engine")
        async with self._engine.begin() as connection:
            await connection.run_sync(SQLModel.metadata.create_all)

    async def create_ticket(
        self,
        *,
        title: str,
        description: str,
        priority: TicketPriority,
        status: TicketStatus,
        created_by: str,
    ) -> Ticket:
        row = TicketTable(
            id=str(uuid.uuid4()),
            title=title,
            description=description,
            status=status.value,
            priority=priority.value,
            created_by=created_by,
            assigned_to=None,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return await self._resolve_one(session, row)

    async def get_ticket(self, ticket_id: str) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None:
                return None
            return await self._resolve_one(session, row)

    async def list_tickets(self, scope: TicketScope | None = None) -> Sequence[Ticket]:
        if scope is not None and scope.empty:
            return []
        statement = select(TicketTable)
        if scope is not None and scope.created_by is not None:
            statement = statement.where(TicketTable.created_by == scope.created_by)
        if scope is not None and scope.assigned_to is not None:
            statement = statement.where(TicketTable.assigned_to == scope.assigned_to)
        statement = statement.order_by(TicketTable.created_at.desc())

        async with self._session_factory() as session:
            result = await session.execute(statement)
            rows = list(result.scalars().all())
            users = await load_user_summaries(session, _ticket_user_ids(rows))
        return [self._table_to_ticket(row, users) for row in rows]

    async def update_ticket(self, ticket_id: str, **fields: Any) -> Ticket | None:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None:
                return None
            for name, value in fields.items():
                setattr(row, name, getattr(value, "value", value))
            await session.commit()
            await session.refresh(row)
            return await self._resolve_one(session, row)

    async def update_assignee(self, ticket_id: str, assignee_id: str) -> Ticket | None:
        return await self.update_ticket(ticket_id, assigned_to=assignee_id)

    async def update_status(self, ticket_id: str, status: TicketStatus) -> Ticket | None:
        return await self.update_ticket(ticket_id, status=status)

    async def delete_ticket(self, ticket_id: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(TicketTable, ticket_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    async def add_status_log(
        self,
        *,
        ticket_id: str,
        old_status: TicketStatus | None,
        new_status: TicketStatus,
        changed_by: str,
        changed_at: datetime,
    ) -> TicketStatusLog:
        row = TicketStatusLogTable(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value,
            changed_by=changed_by,
            changed_at=changed_at,
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            users = await load_user_summaries(session, [row.changed_by])
        return self._table_to_log(row, users)

    async def list_status_logs(self, ticket_id: str) -> Sequence[TicketStatusLog]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TicketStatusLogTable)
                .where(TicketStatusLogTable.ticket_id == ticket_id)
                .order_by(TicketStatusLogTable.changed_at.asc())
            )
            rows = list(result.scalars().all())
            users = await load_user_summaries(session, [row.changed_by for row in rows])
        return [self._table_to_log(row, users) for row in rows]

    async def _resolve_one(self, session: AsyncSession, row: TicketTable) -> Ticket:
        users = await load_user_summaries(session, _ticket_user_ids([row]))
        return self._table_to_ticket(row, users)

    @staticmethod
    def _table_to_ticket(row: TicketTable, users: Mapping[str, UserSummary]) -> Ticket:
        return Ticket(
            id=row.id,
            title=row.title,
            description=row.description,
            status=TicketStatus(row.status),
            priority=TicketPriority(row.priority),
            created_by=users.get(row.created_by) or placeholder_summary(row.created_by),
            assigned_to=_assignee_summary(row.assigned_to, users),
            created_at=ensure_datetime(row.created_at),
        )

    @staticmethod
    def _table_to_log(row: TicketStatusLogTable, users: Mapping[str, UserSummary]) -> TicketStatusLog:
        return TicketStatusLog(
            id=row.id,
            ticket_id=row.ticket_id,
            old_status=TicketStatus(row.old_status) if row.old_status else None,
            new_status=TicketStatus(row.new_status),
            changed_by=users.get(row.changed_by),
            changed_at=ensure_datetime(row.changed_at),
        )


def _assignee_summary(assignee_id: str | None, users: Mapping[str, UserSummary]) -> UserSummary | None:
    if assignee_id is None:
        return None
    return users.get(assignee_id) or placeholder_summary(assignee_id)


def _ticket_user_ids(rows: Iterable[TicketTable]) -> set[str]:
    ids: set[str] = set()
    for row in rows:
        ids.add(row.created_by)
        if row.assigned_to:
            ids.add(row.assigned_to)
    return ids


def _label(value: object) -> str:
    return str(getattr(value, "value", value))


def ensure_datetime(value: datetime | None) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    raise TypeError("Expected datetime value from database")


class TicketService:
    """Ticket lifecycle: creation, scoped reads, assignment, status changes, deletion."""

    def __init__(
        self,
        repository: TicketRepository,
        users: UserRepository,
        *,
        state_machine: TicketStateMachine | None = None,
        metrics: MetricsRegistry | None = None,
        tracer: Tracer | None = None,
    ) -> None:
        self._repository = repository
        self._users = users
        self._state_machine = state_machine or TicketStateMachine()
        self._metrics = metrics or metrics_registry
        self._tracer = tracer or get_tracer(__name__)

    def _deny(self, operation: str, message: str, actor: Actor) -> AccessDeniedError:
        self._metrics.counter(ACCESS_DENIED, label_names=("operation",)).inc(labels={"operation": operation})
        logger.warning("Denied %s for %s %s", operation, actor.role.value, actor.id)
        return AccessDeniedError(message)

    def allowed_next_statuses(self, ticket: Ticket) -> list[TicketStatus]:
        return sorted(self._state_machine.next_statuses(ticket.status), key=lambda status: status.value)

    async def create_ticket(
        self,
        *,
        title: str,
        description: str,
        actor: Actor,
        priority: TicketPriority = TicketPriority.MEDIUM,
    ) -> Ticket:
        if not can_create_ticket(actor.role):
            raise self._deny("create_ticket", "Access denied. Only USER or MANAGER can create tickets.", actor)

        ticket = await self._repository.create_ticket(
            title=title,
            description=description,
            priority=TicketPriority(priority),
            status=self._state_machine.initial_state(),
            created_by=actor.id,
        )
        self._metrics.counter(TICKETS_CREATED).inc()
        logger.info("Ticket %s created by %s", ticket.id, actor.id)
        return ticket

    async def list_tickets(self, *, actor: Actor) -> Sequence[Ticket]:
        return await self._repository.list_tickets(ticket_scope(actor.role, actor.id))

    async def get_ticket(self, ticket_id: str, *, actor: Actor) -> Ticket:
        ticket = await self._repository.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError(_HIDDEN_TICKET_MESSAGE)
        if not can_view_ticket(actor.role, actor.id, ticket.owner_id, ticket.assignee_id):
            self._metrics.counter(ACCESS_DENIED, label_names=("operation",)).inc(labels={"operation": "view_ticket"})
            raise TicketNotFoundError(_HIDDEN_TICKET_MESSAGE)
        return ticket

    async def update_ticket(
        self,
        ticket_id: str,
        *,
        actor: Actor,
        title: str | None = None,
        description: str | None = None,
        priority: TicketPriority | None = None,
    ) -> Ticket:
        ticket = await self.get_ticket(ticket_id, actor=actor)
        if not can_edit_ticket(actor.role, actor.id, ticket.owner_id):
            raise self._deny("update_ticket", "Access denied. Only MANAGER or ticket owner can edit.", actor)

        fields: dict[str, Any] = {}
        if title is not None:
            fields["title"] = title
        if description is not None:
            fields["description"] = description
        if priority is not None:
            fields["priority"] = TicketPriority(priority)
        if not fields:
            return ticket

        updated = await self._repository.update_ticket(ticket_id, **fields)
        if updated is None:
            raise TicketNotFoundError("Ticket not found")
        logger.info("Ticket %s updated by %s (%s)", ticket_id, actor.id, ", ".join(sorted(fields)))
        return updated

    async def assign_ticket(self, ticket_id: str, *, assignee_id: str, actor: Actor) -> Ticket:
        with self._tracer.start_as_current_span("ticket.assign") as span:
            span.set_attributes(
                {"ticket.id": ticket_id, "ticket.assignee_id": assignee_id, "actor.role": _label(actor.role)}
            )
            return await self._assign(ticket_id, assignee_id=assignee_id, actor=actor)

    async def change_status(self, ticket_id: str, *, new_status: TicketStatus | str, actor: Actor) -> Ticket:
        with self._tracer.start_as_current_span("ticket.change_status") as span:
            span.set_attributes(
                {"ticket.id": ticket_id, "ticket.new_status": _label(new_status), "actor.role": _label(actor.role)}
            )
            updated = await self._transition(ticket_id, new_status=new_status, actor=actor)
            span.set_attribute("ticket.status", updated.status.value)
            return updated

    async def _assign(self, ticket_id: str, *, assignee_id: str, actor: Actor) -> Ticket:
        if not can_assign_ticket(actor.role):
            raise self._deny("assign_ticket", "Access denied. Only MANAGER or SUPPORT can assign tickets.", actor)

        assignee = await self._users.get_user(assignee_id)
        if assignee is None:
            raise AssigneeNotFoundError("Assignee not found")
        if not is_assignable_role(assignee.role):
            raise IllegalAssigneeError(
                "Cannot assign ticket to USER role. Only SUPPORT or MANAGER can be assigned."
            )

        updated = await self._repository.update_assignee(ticket_id, assignee.id)
        if updated is None:
            raise TicketNotFoundError("Ticket not found")
        logger.info("Ticket %s assigned to %s by %s", ticket_id, assignee.id, actor.id)
        return updated

    async def _transition(self, ticket_id: str, *, new_status: TicketStatus | str, actor: Actor) -> Ticket:
        if not can_change_status(actor.role):
            raise self._deny("change_status", "Access denied. Only MANAGER or SUPPORT can change status.", actor)

        ticket = await self._repository.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError("Ticket not found")

        old_status = ticket.status
        self._state_machine.assert_transition(old_status, new_status)
        target = TicketStatus(new_status)

        updated = await self._repository.update_status(ticket_id, target)
        if updated is None:
            raise TicketNotFoundError("Ticket not found")

        # The log append happens only once the status commit has succeeded.
        await self._repository.add_status_log(
            ticket_id=ticket_id,
            old_status=old_status,
            new_status=target,
            changed_by=actor.id,
            changed_at=datetime.now(timezone.utc),
        )
        self._metrics.counter(STATUS_TRANSITIONS, label_names=("from_status", "to_status")).inc(
            labels={"from_status": old_status.value, "to_status": target.value}
        )
        logger.info("Ticket %s moved %s -> %s by %s", ticket_id, old_status.value, target.value, actor.id)
        return updated

    async def delete_ticket(self, ticket_id: str, *, actor: Actor) -> None:
        if not can_delete_ticket(actor.role):
            raise self._deny("delete_ticket", "Access denied. Only MANAGER can delete tickets.", actor)

        deleted = await self._repository.delete_ticket(ticket_id)
        if not deleted:
            raise TicketNotFoundError("Ticket not found")
        logger.info("Ticket %s deleted by %s", ticket_id, actor.id)

    async def get_status_history(self, ticket_id: str, *, actor: Actor) -> Sequence[TicketStatusLog]:
        await self.get_ticket(ticket_id, actor=actor)
        return await self._repository.list_status_logs(ticket_id)
