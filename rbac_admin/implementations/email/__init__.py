"""
Email backend implementations.
"""

from functools import lru_cache

from rbac_admin.core.config import settings
from rbac_admin.core.interfaces.email import EmailAddress, EmailBackend

from .logging import LoggingEmailBackend

__all__ = ["LoggingEmailBackend", "get_email_backend"]


@lru_cache
def get_email_backend() -> EmailBackend:
    """Email backend selected by EMAIL_BACKEND."""
    if settings.email.backend == "log":
        return LoggingEmailBackend(
            default_from=EmailAddress(
                email=settings.email.from_address,
                name=settings.email.from_name,
            )
        )
    raise ValueError(f"Unknown email backend: {settings.email.backend}")
