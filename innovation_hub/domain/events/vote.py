"""Vote ledger event payloads.

Published after a ledger transaction commits:
- VoteCastEvent: a ledger entry was created
- VoteRetractedEvent: a ledger entry was deleted by its owner

counter_applied tells the counter maintainer whether the committing
transaction already adjusted upvotesCount (inline strategy) or whether
the maintainer must converge it from this event (reactive strategy).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from uuid6 import uuid7

VOTE_CAST_EVENT_TYPE: str = "suggestion.vote.cast"
VOTE_RETRACTED_EVENT_TYPE: str = "suggestion.vote.retracted"

VOTE_EVENT_SCHEMA_VERSION: str = "1.0.0"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, eq=True)
class VoteCastEvent:
    """Payload for a committed vote.

    Attributes:
        voter_uid: The voting user.
        suggestion_id: The suggestion voted on.
        vote_key: Composite ledger key of the new entry.
        counter_applied: Whether upvotesCount was incremented inline.
        event_id: Unique event identifier (UUIDv7), the dedup key.
        occurred_at: When the event was created (UTC).
    """

    voter_uid: str
    suggestion_id: str
    vote_key: str
    counter_applied: bool = True
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return VOTE_CAST_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": VOTE_CAST_EVENT_TYPE,
            "event_id": str(self.event_id),
            "voter_uid": self.voter_uid,
            "suggestion_id": self.suggestion_id,
            "vote_key": self.vote_key,
            "counter_applied": self.counter_applied,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": VOTE_EVENT_SCHEMA_VERSION,
        }


@dataclass(frozen=True, eq=True)
class VoteRetractedEvent:
    """Payload for a committed vote retraction.

    Attributes:
        voter_uid: The user who retracted the vote.
        suggestion_id: The suggestion the vote was on.
        vote_key: Composite ledger key of the deleted entry.
        counter_applied: Whether upvotesCount was decremented inline.
        event_id: Unique event identifier (UUIDv7), the dedup key.
        occurred_at: When the event was created (UTC).
    """

    voter_uid: str
    suggestion_id: str
    vote_key: str
    counter_applied: bool = True
    event_id: UUID = field(default_factory=uuid7)
    occurred_at: datetime = field(default_factory=_utc_now)

    @property
    def event_type(self) -> str:
        return VOTE_RETRACTED_EVENT_TYPE

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_type": VOTE_RETRACTED_EVENT_TYPE,
            "event_id": str(self.event_id),
            "voter_uid": self.voter_uid,
            "suggestion_id": self.suggestion_id,
            "vote_key": self.vote_key,
            "counter_applied": self.counter_applied,
            "occurred_at": self.occurred_at.isoformat(),
            "schema_version": VOTE_EVENT_SCHEMA_VERSION,
        }
