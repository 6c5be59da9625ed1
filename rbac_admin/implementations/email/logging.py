"""
Logging email backend.

Development/testing backend: messages are written to the log instead of
being delivered. Sent messages are kept in memory so tests can read them.
"""

import uuid

import structlog

from rbac_admin.core.interfaces.email import (
    EmailAddress,
    EmailMessage,
    EmailResult,
    EmailStatus,
)

logger = structlog.get_logger()


class LoggingEmailBackend:
    """
    Email backend that logs instead of sending.

    Usage:
        backend = LoggingEmailBackend()
        await backend.send(EmailMessage(to=[EmailAddress("a@b.c")], subject="Hi", text="..."))
        backend.outbox[-1].subject  # "Hi"
    """

    def __init__(self, default_from: EmailAddress | None = None):
        self.default_from = default_from
        self.outbox: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> EmailResult:
        if message.from_address is None:
            message.from_address = self.default_from
        self.outbox.append(message)

        message_id = str(uuid.uuid4())
        logger.info(
            "email_sent",
            message_id=message_id,
            to=[str(addr) for addr in message.to],
            subject=message.subject,
            tags=message.tags,
        )
        return EmailResult(message_id=message_id, status=EmailStatus.SENT)
