"""Request timing middleware feeding the metrics registry."""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from apps.api.metrics import REQUEST_DURATION, MetricsRegistry, metrics_registry


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Observe the wall-clock duration of every request, labelled by method."""

    def __init__(self, app: ASGIApp, registry: MetricsRegistry | None = None) -> None:
        super().__init__(app)
        self._registry = registry or metrics_registry

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        metric = self._registry.distribution(REQUEST_DURATION, label_names=("method",))
        with metric.time(labels={"method": request.method}):
            return await call_next(request)
