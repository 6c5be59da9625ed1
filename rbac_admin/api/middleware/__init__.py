"""Middleware package."""

from rbac_admin.api.middleware.request_id import RequestIdMiddleware, get_request_id
from rbac_admin.api.middleware.logging import LoggingMiddleware

__all__ = [
    "RequestIdMiddleware",
    "get_request_id",
    "LoggingMiddleware",
]
