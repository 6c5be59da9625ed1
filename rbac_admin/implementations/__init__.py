"""
Backend implementations for core interfaces.
"""

from rbac_admin.implementations.email import LoggingEmailBackend, get_email_backend

__all__ = [
    "LoggingEmailBackend",
    "get_email_backend",
]
