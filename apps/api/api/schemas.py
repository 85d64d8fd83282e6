"""Response shapes shared by the route modules."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel

from apps.api.services.access import Role
from apps.api.services.users import User, UserSummary

DataT = TypeVar("DataT")


class Envelope(BaseModel, Generic[DataT]):
    """Success envelope wrapping every non-empty response body."""

    success: bool = True
    data: DataT


class ErrorEnvelope(BaseModel):
    success: bool = False
    message: str


class UserSummaryModel(BaseModel):
    id: str
    name: str
    email: str

    @classmethod
    def from_entity(cls, entity: UserSummary) -> "UserSummaryModel":
        return cls(id=entity.id, name=entity.name, email=entity.email)


class UserModel(UserSummaryModel):
    role: Role
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserModel":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at.isoformat(),
        )


ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    400: {"model": ErrorEnvelope, "description": "Validation error or illegal operation"},
    401: {"model": ErrorEnvelope, "description": "Missing or invalid credentials"},
    403: {"model": ErrorEnvelope, "description": "Access denied"},
    404: {"model": ErrorEnvelope, "description": "Not found"},
}
