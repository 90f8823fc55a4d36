"""Notification and diagnostic event payloads.

- StatusNotificationsDispatchedEvent: summary of one notification run
- PermissionDeniedDiagnosticEvent: a datastore call was rejected by the
  security rules; carries what was attempted so the rules can be fixed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from uuid6 import uuid7

STATUS_NOTIFICATIONS_DISPATCHED_EVENT_TYPE: str = "suggestion.notifications.dispatched"
PERMISSION_DENIED_DIAGNOSTIC_EVENT_TYPE: str = "datastore.permission_denied"

NOTIFICATION_EVENT_SCHEMA_VERSION: str = "1.0.0"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class StatusNotificationsDispatchedEvent:
    """Summary of a status-change notification run."""

    suggestion_id: str
    new_status: str
    audience_size: int
    delivered_count: int
    failed_count: int
    skipped_count: int
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return STATUS_NOTIFICATIONS_DISPATCHED_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": STATUS_NOTIFICATIONS_DISPATCHED_EVENT_TYPE,
            "event_id": str(self.event_id),
            "suggestion_id": self.suggestion_id,
            "new_status": self.new_status,
            "audience_size": self.audience_size,
            "delivered_count": self.delivered_count,
            "failed_count": self.failed_count,
            "skipped_count": self.skipped_count,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": NOTIFICATION_EVENT_SCHEMA_VERSION,
        }


@dataclass(frozen=True, eq=True)
class PermissionDeniedDiagnosticEvent:
    """A datastore operation was rejected by the security rules.

    Attributes:
        operation: Logical hub operation (e.g. "cast_vote").
        path: Document path the store rejected, if known.
        store_operation: Store-level operation (get, create, update, ...).
        payload: The attempted write payload, if any.
        message: Error message reported by the store.
    """

    operation: str
    path: str | None
    store_operation: str | None
    payload: dict[str, Any] | None
    message: str
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return PERMISSION_DENIED_DIAGNOSTIC_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": PERMISSION_DENIED_DIAGNOSTIC_EVENT_TYPE,
            "event_id": str(self.event_id),
            "operation": self.operation,
            "path": self.path,
            "store_operation": self.store_operation,
            "payload": self.payload,
            "message": self.message,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": NOTIFICATION_EVENT_SCHEMA_VERSION,
        }
