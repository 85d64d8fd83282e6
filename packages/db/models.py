"""SQLModel table definitions for the ticket desk data layer."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    """Return a timezone aware UTC timestamp."""

    return datetime.now(timezone.utc)


def _uuid_str() -> str:
    """Generate a random UUID string."""

    return str(uuid.uuid4())


class UserTable(SQLModel, table=True):
    """Accounts able to authenticate against the API, one role each."""

    __tablename__ = "users"

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True))
    hashed_password: str = Field(sa_column=Column(String(255), nullable=False))
    role: str = Field(sa_column=Column(String(20), nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketTable(SQLModel, table=True):
    """Support tickets raised by users."""

    __tablename__ = "tickets"
    __table_args__ = (
        Index("ix_tickets_created_by", "created_by"),
        Index("ix_tickets_assigned_to", "assigned_to"),
    )

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    title: str = Field(sa_column=Column(String(255), nullable=False))
    description: str = Field(sa_column=Column(Text, nullable=False))
    status: str = Field(sa_column=Column(String(20), nullable=False))
    priority: str = Field(sa_column=Column(String(20), nullable=False))
    created_by: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    assigned_to: str | None = Field(
        default=None, sa_column=Column(String(36), ForeignKey("users.id"), nullable=True)
    )
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketCommentTable(SQLModel, table=True):
    """Comments posted on a ticket thread.

    ``ticket_id`` is deliberately not a foreign key: deleting a ticket leaves its
    comments in place.
    """

    __tablename__ = "ticket_comments"
    __table_args__ = (Index("ix_ticket_comments_ticket_id", "ticket_id"),)

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    ticket_id: str = Field(sa_column=Column(String(36), nullable=False))
    user_id: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    comment: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))


class TicketStatusLogTable(SQLModel, table=True):
    """Append-only trail of ticket status transitions."""

    __tablename__ = "ticket_status_logs"
    __table_args__ = (Index("ix_ticket_status_logs_ticket_id", "ticket_id"),)

    id: str = Field(default_factory=_uuid_str, primary_key=True, index=True)
    ticket_id: str = Field(sa_column=Column(String(36), nullable=False))
    old_status: str | None = Field(default=None, sa_column=Column(String(20), nullable=True))
    new_status: str = Field(sa_column=Column(String(20), nullable=False))
    changed_by: str = Field(sa_column=Column(String(36), ForeignKey("users.id"), nullable=False))
    changed_at: datetime = Field(default_factory=_utcnow, sa_column=Column(DateTime(timezone=True), nullable=False))
