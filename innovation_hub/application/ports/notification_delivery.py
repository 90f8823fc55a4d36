"""Notification delivery port.

The outbound channel (email in production) that status-change messages
are handed to. Delivery for one address must never affect another.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol


class NotificationDeliveryProtocol(Protocol):
    """Protocol for sending one message to one address."""

    @abstractmethod
    async def send(self, address: str, subject: str, body: str) -> bool:
        """Send a message.

        Args:
            address: Contact address of the recipient.
            subject: Message subject line.
            body: Plain-text message body.

        Returns:
            True if the channel accepted the message, False otherwise.

        Raises:
            Exception: Channel failures may also surface as exceptions;
                callers treat them the same as a False return.
        """
        ...
