"""
Email backend protocol.

Implementations: LoggingEmailBackend (writes messages to the log).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


class EmailStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"


@dataclass
class EmailAddress:
    """Email address with optional name."""
    email: str
    name: str | None = None

    def __str__(self) -> str:
        if self.name:
            return f"{self.name} <{self.email}>"
        return self.email


@dataclass
class EmailMessage:
    """Email message to send."""
    to: list[EmailAddress]
    subject: str

    # Content (at least one required)
    html: str | None = None
    text: str | None = None

    from_address: EmailAddress | None = None  # Uses default if not set
    tags: list[str] = field(default_factory=list)


@dataclass
class EmailResult:
    """Result of sending an email."""
    message_id: str
    status: EmailStatus
    error: str | None = None


class EmailBackend(Protocol):
    """Protocol for email backends."""

    async def send(self, message: EmailMessage) -> EmailResult:
        """Send a single email."""
        ...
