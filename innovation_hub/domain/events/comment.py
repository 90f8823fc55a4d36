"""Comment event payloads, published after the comment write commits."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from uuid6 import uuid7

COMMENT_POSTED_EVENT_TYPE: str = "suggestion.comment.posted"
COMMENT_DELETED_EVENT_TYPE: str = "suggestion.comment.deleted"

COMMENT_EVENT_SCHEMA_VERSION: str = "1.0.0"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class CommentPostedEvent:
    """A comment was created under a suggestion."""

    suggestion_id: str
    comment_id: str
    author_uid: str
    counter_applied: bool = True
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return COMMENT_POSTED_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": COMMENT_POSTED_EVENT_TYPE,
            "event_id": str(self.event_id),
            "suggestion_id": self.suggestion_id,
            "comment_id": self.comment_id,
            "author_uid": self.author_uid,
            "counter_applied": self.counter_applied,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": COMMENT_EVENT_SCHEMA_VERSION,
        }


@dataclass(frozen=True, eq=True)
class CommentDeletedEvent:
    """A comment was deleted by its author."""

    suggestion_id: str
    comment_id: str
    author_uid: str
    counter_applied: bool = True
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return COMMENT_DELETED_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": COMMENT_DELETED_EVENT_TYPE,
            "event_id": str(self.event_id),
            "suggestion_id": self.suggestion_id,
            "comment_id": self.comment_id,
            "author_uid": self.author_uid,
            "counter_applied": self.counter_applied,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": COMMENT_EVENT_SCHEMA_VERSION,
        }
