from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Sequence

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel, select

from apps.api.metrics import ACCESS_DENIED, COMMENTS_CREATED, MetricsRegistry, metrics_registry
from packages.db.models import TicketCommentTable, TicketTable

from .access import Actor, can_comment_on_ticket, can_modify_comment, can_view_comments
from .errors import AccessDeniedError, CommentNotFoundError, CommentValidationError, TicketNotFoundError
from .tickets import TicketRepository, ensure_datetime
from .users import UserSummary, load_user_summaries, placeholder_summary

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TicketReference:
    """Parent ticket fragment shown alongside a comment."""

    id: str
    title: str | None


@dataclass(slots=True)
class Comment:
    """Comment with its author and parent ticket resolved."""

    id: str
    ticket: TicketReference
    author: UserSummary
    comment: str
    created_at: datetime

    @property
    def author_id(self) -> str:
        return self.author.id


class CommentRepository:
    """Persistence helper wrapping the `ticket_comments` table."""

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

    async def create_comment(self, *, ticket_id: str, user_id: str, comment: str) -> Comment:
        row = TicketCommentTable(
            id=str(uuid.uuid4()),
            ticket_id=ticket_id,
            user_id=user_id,
            comment=comment,
            created_at=datetime.now(timezone.utc),
        )
        async with self._session_factory() as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return await self._resolve_one(session, row)

    async def get_comment(self, comment_id: str) -> Comment | None:
        async with self._session_factory() as session:
            row = await session.get(TicketCommentTable, comment_id)
            if row is None:
                return None
            return await self._resolve_one(session, row)

    async def list_comments(self, ticket_id: str) -> Sequence[Comment]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(TicketCommentTable)
                .where(TicketCommentTable.ticket_id == ticket_id)
                .order_by(TicketCommentTable.created_at.asc())
            )
            rows = list(result.scalars().all())
            users = await load_user_summaries(session, [row.user_id for row in rows])
            ticket = await session.get(TicketTable, ticket_id)
        reference = TicketReference(id=ticket_id, title=ticket.title if ticket is not None else None)
        return [self._table_to_comment(row, users, reference) for row in rows]

    async def update_comment(self, comment_id: str, comment: str) -> Comment | None:
        async with self._session_factory() as session:
            row = await session.get(TicketCommentTable, comment_id)
            if row is None:
                return None
            row.comment = comment
            await session.commit()
            await session.refresh(row)
            return await self._resolve_one(session, row)

    async def delete_comment(self, comment_id: str) -> bool:
        async with self._session_factory() as session:
            row = await session.get(TicketCommentTable, comment_id)
            if row is None:
                return False
            await session.delete(row)
            await session.commit()
            return True

    async def _resolve_one(self, session: AsyncSession, row: TicketCommentTable) -> Comment:
        users = await load_user_summaries(session, [row.user_id])
        ticket = await session.get(TicketTable, row.ticket_id)
        reference = TicketReference(id=row.ticket_id, title=ticket.title if ticket is not None else None)
        return self._table_to_comment(row, users, reference)

    @staticmethod
    def _table_to_comment(
        row: TicketCommentTable, users: Mapping[str, UserSummary], ticket: TicketReference
    ) -> Comment:
        return Comment(
            id=row.id,
            ticket=ticket,
            author=users.get(row.user_id) or placeholder_summary(row.user_id),
            comment=row.comment,
            created_at=ensure_datetime(row.created_at),
        )


def _clean_body(body: str) -> str:
    cleaned = body.strip() if body is not None else ""
    if not cleaned:
        raise CommentValidationError("Comment is required")
    return cleaned


class CommentService:
    """Comment threads scoped to a ticket, guarded by the access policy."""

    def __init__(
        self,
        repository: CommentRepository,
        tickets: TicketRepository,
        *,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self._repository = repository
        self._tickets = tickets
        self._metrics = metrics or metrics_registry

    def _deny(self, operation: str, message: str, actor: Actor) -> AccessDeniedError:
        self._metrics.counter(ACCESS_DENIED, label_names=("operation",)).inc(labels={"operation": operation})
        logger.warning("Denied %s for %s %s", operation, actor.role.value, actor.id)
        return AccessDeniedError(message)

    async def create_comment(self, ticket_id: str, *, body: str, actor: Actor) -> Comment:
        ticket = await self._tickets.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError("Ticket not found")
        if not can_comment_on_ticket(actor.role, actor.id, ticket.owner_id, ticket.assignee_id):
            raise self._deny(
                "create_comment",
                "Access denied. Only the ticket owner, assigned SUPPORT or MANAGER can comment.",
                actor,
            )

        comment = await self._repository.create_comment(
            ticket_id=ticket_id,
            user_id=actor.id,
            comment=_clean_body(body),
        )
        self._metrics.counter(COMMENTS_CREATED).inc()
        logger.info("Comment %s added to ticket %s by %s", comment.id, ticket_id, actor.id)
        return comment

    async def list_comments(self, ticket_id: str, *, actor: Actor) -> Sequence[Comment]:
        ticket = await self._tickets.get_ticket(ticket_id)
        if ticket is None:
            raise TicketNotFoundError("Ticket not found")
        if not can_view_comments(actor.role, actor.id, ticket.owner_id, ticket.assignee_id):
            raise self._deny("list_comments", "Access denied", actor)
        return await self._repository.list_comments(ticket_id)

    async def _load_modifiable(self, comment_id: str, *, operation: str, actor: Actor) -> Comment:
        comment = await self._repository.get_comment(comment_id)
        if comment is None:
            raise CommentNotFoundError("Comment not found")
        if not can_modify_comment(actor.role, actor.id, comment.author_id):
            verb = "update" if operation == "update_comment" else "delete"
            raise self._deny(operation, f"Access denied. Only MANAGER or comment author can {verb}.", actor)
        return comment

    async def update_comment(self, comment_id: str, *, body: str, actor: Actor) -> Comment:
        await self._load_modifiable(comment_id, operation="update_comment", actor=actor)
        updated = await self._repository.update_comment(comment_id, _clean_body(body))
        if updated is None:
            raise CommentNotFoundError("Comment not found")
        logger.info("Comment %s updated by %s", comment_id, actor.id)
        return updated

    async def delete_comment(self, comment_id: str, *, actor: Actor) -> None:
        await self._load_modifiable(comment_id, operation="delete_comment", actor=actor)
        deleted = await self._repository.delete_comment(comment_id)
        if not deleted:
            raise CommentNotFoundError("Comment not found")
        logger.info("Comment %s deleted by %s", comment_id, actor.id)
