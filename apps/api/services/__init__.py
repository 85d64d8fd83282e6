"""Service layer exports."""

from .access import Actor, Role, TicketScope
from .comments import Comment, CommentRepository, CommentService
from .errors import (
    AccessDeniedError,
    AssigneeNotFoundError,
    CommentNotFoundError,
    CommentValidationError,
    DuplicateEmailError,
    IllegalAssigneeError,
    IllegalTransitionError,
    InvalidCredentialsError,
    NotFoundError,
    ServiceError,
    TicketNotFoundError,
    UserValidationError,
    ValidationError,
)
from .status import TicketPriority, TicketStateMachine, TicketStatus, is_valid_transition, valid_next_statuses
from .tickets import Ticket, TicketRepository, TicketService, TicketStatusLog
from .users import User, UserRepository, UserService, UserSummary

__all__ = [
    "AccessDeniedError",
    "Actor",
    "AssigneeNotFoundError",
    "Comment",
    "CommentNotFoundError",
    "CommentRepository",
    "CommentService",
    "CommentValidationError",
    "DuplicateEmailError",
    "IllegalAssigneeError",
    "IllegalTransitionError",
    "InvalidCredentialsError",
    "NotFoundError",
    "Role",
    "ServiceError",
    "Ticket",
    "TicketNotFoundError",
    "TicketPriority",
    "TicketRepository",
    "TicketScope",
    "TicketService",
    "TicketStateMachine",
    "TicketStatus",
    "TicketStatusLog",
    "User",
    "UserRepository",
    "UserService",
    "UserSummary",
    "UserValidationError",
    "ValidationError",
    "is_valid_transition",
    "valid_next_statuses",
]
