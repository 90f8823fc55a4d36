"""Notification delivery that writes messages to the log.

Used in development and whenever no mail transport is configured. Every
message is accepted.
"""

from __future__ import annotations

from structlog import get_logger

from innovation_hub.application.ports.notification_delivery import (
    NotificationDeliveryProtocol,
)

logger = get_logger(__name__)


class LoggingNotificationDelivery(NotificationDeliveryProtocol):
    async def send(self, address: str, subject: str, body: str) -> bool:
        logger.info(
            "notification_logged",
            address=address,
            subject=subject,
            body_length=len(body),
        )
        return True
