from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from apps.api.api.schemas import ERROR_RESPONSES, Envelope, UserModel
from apps.api.dependencies.auth import UserServiceDep

router = APIRouter(prefix="/auth", tags=["auth"], responses=ERROR_RESPONSES)


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    user: UserModel


@router.post("/login", response_model=Envelope[LoginResponse], summary="Exchange credentials for a bearer token")
async def login(payload: LoginRequest, service: UserServiceDep) -> Envelope[LoginResponse]:
    result = await service.authenticate(email=payload.email, password=payload.password)
    return Envelope(data=LoginResponse(token=result.token, user=UserModel.from_user(result.user)))
