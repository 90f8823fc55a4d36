"""Stub implementation of NotificationDeliveryProtocol for testing.

Captures every message handed to it instead of sending anything.

Usage in tests:
    delivery = NotificationDeliveryStub()
    delivery.reject("bounce@example.com")      # send() returns False
    delivery.raise_for("broken@example.com")   # send() raises

    await notifier.on_status_changed(...)

    assert len(delivery.sent) == 3
    assert delivery.sent[0].subject.startswith("Suggestion Update")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from innovation_hub.application.ports.notification_delivery import (
    NotificationDeliveryProtocol,
)


@dataclass(frozen=True)
class SentMessage:
    """Record of a message accepted by the stub.

    Attributes:
        address: Destination address.
        subject: Message subject line.
        body: Plain-text body.
        sent_at: When the stub accepted the message.
    """

    address: str
    subject: str
    body: str
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationDeliveryStub(NotificationDeliveryProtocol):
    """Records sent messages; can reject or raise for chosen addresses."""

    def __init__(self) -> None:
        self.sent: list[SentMessage] = []
        self.attempts: list[str] = []
        self._rejected: set[str] = set()
        self._raising: set[str] = set()

    async def send(self, address: str, subject: str, body: str) -> bool:
        self.attempts.append(address)
        if address in self._raising:
            raise ConnectionError(f"Mail relay refused connection for {address}")
        if address in self._rejected:
            return False
        self.sent.append(SentMessage(address=address, subject=subject, body=body))
        return True

    def reject(self, *addresses: str) -> None:
        """Make send() return False for these addresses."""
        self._rejected.update(addresses)

    def raise_for(self, *addresses: str) -> None:
        """Make send() raise ConnectionError for these addresses."""
        self._raising.update(addresses)

    @property
    def sent_addresses(self) -> list[str]:
        return [message.address for message in self.sent]

    def reset(self) -> None:
        self.sent.clear()
        self.attempts.clear()
        self._rejected.clear()
        self._raising.clear()
