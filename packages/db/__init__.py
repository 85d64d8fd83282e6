"""Database models and utilities."""

from .models import (
    TicketCommentTable,
    TicketStatusLogTable,
    TicketTable,
    UserTable,
)

__all__ = [
    "TicketCommentTable",
    "TicketStatusLogTable",
    "TicketTable",
    "UserTable",
]
