"""Suggestion lifecycle event payloads.

- SuggestionSubmittedEvent: a new suggestion was stored
- SuggestionReviewedEvent: an admin edit committed; carries the status
  before and after so subscribers compare by value, not by the mere
  presence of a write
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from uuid6 import uuid7

from innovation_hub.domain.models.suggestion import SuggestionStatus

SUGGESTION_SUBMITTED_EVENT_TYPE: str = "suggestion.submitted"
SUGGESTION_REVIEWED_EVENT_TYPE: str = "suggestion.reviewed"

SUGGESTION_EVENT_SCHEMA_VERSION: str = "1.0.0"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class SuggestionSubmittedEvent:
    """A suggestion was submitted."""

    suggestion_id: str
    author_uid: str
    category: str
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return SUGGESTION_SUBMITTED_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": SUGGESTION_SUBMITTED_EVENT_TYPE,
            "event_id": str(self.event_id),
            "suggestion_id": self.suggestion_id,
            "author_uid": self.author_uid,
            "category": self.category,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": SUGGESTION_EVENT_SCHEMA_VERSION,
        }


@dataclass(frozen=True, eq=True)
class SuggestionReviewedEvent:
    """An admin review of a suggestion committed.

    Attributes:
        suggestion_id: The reviewed suggestion.
        reviewer_uid: Admin who made the edit.
        previous_status: Status before the edit.
        new_status: Status after the edit (may equal previous_status).
        changed_fields: Document fields whose value changed.
        event_id: Unique event identifier; doubles as the transition id.
        occurred_at: When the event was created (UTC).
    """

    suggestion_id: str
    reviewer_uid: str
    previous_status: SuggestionStatus
    new_status: SuggestionStatus
    changed_fields: tuple[str, ...] = ()
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return SUGGESTION_REVIEWED_EVENT_TYPE

    @property
    def status_changed(self) -> bool:
        return self.previous_status != self.new_status

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": SUGGESTION_REVIEWED_EVENT_TYPE,
            "event_id": str(self.event_id),
            "suggestion_id": self.suggestion_id,
            "reviewer_uid": self.reviewer_uid,
            "previous_status": self.previous_status.value,
            "new_status": self.new_status.value,
            "changed_fields": list(self.changed_fields),
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": SUGGESTION_EVENT_SCHEMA_VERSION,
        }
