from collections.abc import Awaitable, Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from apps.api.core.config import get_settings
from apps.api.core.security import TokenClaims, TokenError, decode_access_token
from apps.api.services.access import Role
from apps.api.services.users import User, UserService

bearer_scheme = HTTPBearer(auto_error=False)

MISSING_TOKEN_MESSAGE = "No token provided. Authorization header must be: Bearer <token>"


async def get_user_service(request: Request) -> UserService:
    service = getattr(request.app.state, "user_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="User service is not available")
    return service


def resolve_claims_from_token(token: str) -> TokenClaims:
    """Decode a bearer token or fail with 401."""

    try:
        return decode_access_token(token, get_settings())
    except TokenError as exc:
        raise HTTPException(status_code=401, detail="Invalid or expired token") from exc


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> User:
    """Resolve the caller and re-read their role from the user record.

    The middleware may already have decoded the token, or recorded why it
    could not; the account is still loaded on every request so role changes
    take effect immediately.
    """

    claims = getattr(request.state, "token_claims", None)
    if not isinstance(claims, TokenClaims):
        token_error = getattr(request.state, "token_error", None)
        if token_error:
            raise HTTPException(status_code=401, detail=token_error)
        if credentials is None:
            raise HTTPException(status_code=401, detail=MISSING_TOKEN_MESSAGE)
        claims = resolve_claims_from_token(credentials.credentials)

    user = await users.get_user(claims.user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user


def role_required(*roles: Role) -> Callable[..., Awaitable[User]]:
    """Dependency factory ensuring the current user holds one of ``roles``."""

    allowed = frozenset(roles)

    async def dependency(user: Annotated[User, Depends(get_current_user)]) -> User:
        if user.role not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return user

    return dependency


require_ticket_creator = role_required(Role.USER, Role.MANAGER)
require_staff = role_required(Role.SUPPORT, Role.MANAGER)
require_manager = role_required(Role.MANAGER)

CurrentUser = Annotated[User, Depends(get_current_user)]
TicketCreatorUser = Annotated[User, Depends(require_ticket_creator)]
StaffUser = Annotated[User, Depends(require_staff)]
ManagerUser = Annotated[User, Depends(require_manager)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
