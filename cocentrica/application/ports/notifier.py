"""Notifier port.

Outbound delivery of command replies and invites. The adapter owns content
filtering for the recipient's level; the engine only composes text.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol


class NotifierProtocol(Protocol):
    """Protocol for delivering a text message to one recipient."""

    @abstractmethod
    async def send(
        self,
        recipient: str,
        subject: str,
        body: str,
        recipient_level: int,
    ) -> None:
        """Deliver a message.

        Args:
            recipient: Recipient address.
            subject: Message subject.
            body: Plain-text body.
            recipient_level: Trust level of the recipient, for filtering.

        Raises:
            NotificationDeliveryError: If delivery failed.
        """
        ...
