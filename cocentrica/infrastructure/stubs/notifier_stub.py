"""Notifier stub.

Records outbound messages in memory instead of delivering them, applying the
same level-based content filter a real notifier applies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from structlog import get_logger

from cocentrica.application.ports.notifier import NotifierProtocol
from cocentrica.domain.errors import NotificationDeliveryError
from cocentrica.domain.models.member import CORE_LEVEL

logger = get_logger(__name__)

# Highest level number scrubbed from messages to non-Core recipients
_SCRUB_CEILING = 10


def sanitize_for_level(text: str, recipient_level: int) -> str:
    """Remove mentions of levels above the recipient's own.

    Args:
        text: Message body.
        recipient_level: Trust level of the recipient.

    Returns:
        The filtered, stripped text.
    """
    if recipient_level >= CORE_LEVEL:
        return text.strip()
    sanitized = text
    for level in range(recipient_level + 1, _SCRUB_CEILING + 1):
        sanitized = re.sub(
            rf"level\s*{level}(?!\d)", "", sanitized, flags=re.IGNORECASE
        )
    return sanitized.strip()


@dataclass(frozen=True)
class SentMessage:
    """Record of a delivered message (for stub tracking)."""

    recipient: str
    subject: str
    body: str
    recipient_level: int


@dataclass
class NotifierStub(NotifierProtocol):
    """In-memory notifier for development and testing.

    Attributes:
        sent: Messages delivered so far, oldest first.
        fail_recipients: Recipients for which delivery fails (testing).
    """

    sent: list[SentMessage] = field(default_factory=list)
    fail_recipients: set[str] = field(default_factory=set)

    async def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        recipient_level: int,
    ) -> None:
        if recipient in self.fail_recipients:
            logger.warning("message_delivery_failed", recipient=recipient)
            raise NotificationDeliveryError(recipient, "simulated failure")

        message = SentMessage(
            recipient=recipient,
            subject=subject,
            body=sanitize_for_level(body, recipient_level),
            recipient_level=recipient_level,
        )
        self.sent.append(message)
        logger.debug("message_delivered", recipient=recipient, subject=subject)

    def messages_to(self, recipient: str) -> list[SentMessage]:
        return [m for m in self.sent if m.recipient == recipient]

    def last_to(self, recipient: str) -> SentMessage | None:
        messages = self.messages_to(recipient)
        return messages[-1] if messages else None

    def clear(self) -> None:
        self.sent.clear()
        self.fail_recipients.clear()
