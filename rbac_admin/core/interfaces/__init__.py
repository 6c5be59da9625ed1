"""
Core interfaces (protocols) for extensibility.
All backends must implement these protocols to be swappable.
"""

from .email import EmailAddress, EmailBackend, EmailMessage, EmailResult, EmailStatus

__all__ = [
    "EmailAddress",
    "EmailBackend",
    "EmailMessage",
    "EmailResult",
    "EmailStatus",
]
