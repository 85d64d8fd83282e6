"""HTTP middleware used by the API."""

from .metrics import RequestMetricsMiddleware
from .rbac import RBACMiddleware

__all__ = ["RBACMiddleware", "RequestMetricsMiddleware"]
