from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, status
from pydantic import BaseModel, Field, StringConstraints

from apps.api.api.schemas import ERROR_RESPONSES, Envelope, UserModel
from apps.api.dependencies.auth import ManagerUser, UserServiceDep
from apps.api.services.access import Role

router = APIRouter(prefix="/users", tags=["users"], responses=ERROR_RESPONSES)

EmailAddress = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_lower=True, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$"),
]


class UserCreateRequest(BaseModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    email: EmailAddress
    password: str = Field(..., min_length=8)
    role: Role


@router.post("", response_model=Envelope[UserModel], status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreateRequest, service: UserServiceDep, user: ManagerUser) -> Envelope[UserModel]:
    created = await service.create_user(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        actor=user.actor,
    )
    return Envelope(data=UserModel.from_user(created))


@router.get("", response_model=Envelope[list[UserModel]])
async def list_users(service: UserServiceDep, user: ManagerUser) -> Envelope[list[UserModel]]:
    users = await service.list_users(actor=user.actor)
    return Envelope(data=[UserModel.from_user(item) for item in users])
