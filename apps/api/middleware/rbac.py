"""Bearer token middleware populating the request state with token claims."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import HTTPException, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from apps.api.dependencies.auth import MISSING_TOKEN_MESSAGE, resolve_claims_from_token


class RBACMiddleware(BaseHTTPMiddleware):
    """Decode the bearer token, if any, before routing.

    The middleware never rejects a request. A malformed header or an
    undecodable token is recorded on ``request.state.token_error`` and only
    protected routes turn it into a 401 through ``get_current_user``, so
    public routes such as login keep working with a stale header.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        authorization = request.headers.get("Authorization")
        request.state.token_claims = None
        request.state.token_error = None

        if authorization:
            scheme, _, credentials = authorization.partition(" ")
            if scheme.lower() != "bearer" or not credentials.strip():
                request.state.token_error = MISSING_TOKEN_MESSAGE
            else:
                try:
                    request.state.token_claims = resolve_claims_from_token(credentials.strip())
                except HTTPException as exc:
                    request.state.token_error = str(exc.detail)

        return await call_next(request)
