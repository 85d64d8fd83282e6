"""Error kinds raised by the ticket desk services."""

from __future__ import annotations


class ServiceError(RuntimeError):
    """Base error for service level failures mapped onto HTTP responses."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class TicketNotFoundError(NotFoundError):
    """Raised when an operation targets a non-existent or hidden ticket."""


class CommentNotFoundError(NotFoundError):
    """Raised when an operation targets a non-existent comment."""


class AssigneeNotFoundError(NotFoundError):
    """Raised when the requested assignee account does not exist."""


class AccessDeniedError(ServiceError):
    """Raised when the access policy rejects the actor."""

    status_code = 403


class IllegalTransitionError(ServiceError):
    """Raised when a status change is not on the legal chain."""

    status_code = 400

    def __init__(self, old_status: object, new_status: object) -> None:
        self.old_status = old_status
        self.new_status = new_status
        super().__init__(
            f"Invalid status transition from {_status_label(old_status)} to {_status_label(new_status)}"
        )


class IllegalAssigneeError(ServiceError):
    """Raised when the assignee does not hold the SUPPORT or MANAGER role."""

    status_code = 400


class ValidationError(ServiceError):
    """Raised when input fails a soft invariant re-checked by a service."""

    status_code = 400


class CommentValidationError(ValidationError):
    """Raised when a comment body is empty after trimming."""


class UserValidationError(ValidationError):
    """Raised when account provisioning input is not acceptable."""


class DuplicateEmailError(ValidationError):
    """Raised when an email address is already registered."""


class InvalidCredentialsError(ServiceError):
    """Raised when a login attempt does not match a known account."""

    status_code = 401


def _status_label(value: object) -> str:
    return str(getattr(value, "value", value))
