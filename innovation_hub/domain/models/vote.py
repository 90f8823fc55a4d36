"""Vote ledger entry model.

The ledger entry identity is the composite key "<voterUid>_<suggestionId>".
That key is the idempotency guard: a second vote from the same voter on
the same suggestion lands on the same document and is rejected, so the
duplicate check is a point lookup rather than a range query.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from innovation_hub.domain.models.timestamp import (
    SERVER_TIMESTAMP,
    Timestamp,
    to_document_value,
    to_timestamp,
)

VOTE_KEY_SEPARATOR = "_"


def vote_key(voter_uid: str, suggestion_id: str) -> str:
    """Return the deterministic ledger key for a (voter, suggestion) pair.

    Args:
        voter_uid: The voting user.
        suggestion_id: The suggestion being voted on.

    Returns:
        "<voter_uid>_<suggestion_id>".

    Raises:
        ValueError: If either part is empty.
    """
    if not voter_uid:
        raise ValueError("voter_uid must not be empty")
    if not suggestion_id:
        raise ValueError("suggestion_id must not be empty")
    return f"{voter_uid}{VOTE_KEY_SEPARATOR}{suggestion_id}"


@dataclass(frozen=True, eq=True)
class Vote:
    """One upvote in the ledger. Immutable once created.

    Attributes:
        voter_uid: The voting user.
        suggestion_id: The suggestion voted on.
        timestamp: When the vote was recorded (pending until commit).
    """

    voter_uid: str
    suggestion_id: str
    timestamp: Timestamp = field(default=SERVER_TIMESTAMP)

    @property
    def key(self) -> str:
        return vote_key(self.voter_uid, self.suggestion_id)

    def to_document(self) -> dict[str, Any]:
        return {
            "voteId": self.key,
            "voterUid": self.voter_uid,
            "suggestionId": self.suggestion_id,
            "timestamp": to_document_value(self.timestamp),
        }

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> Vote:
        return cls(
            voter_uid=data["voterUid"],
            suggestion_id=data["suggestionId"],
            timestamp=to_timestamp(data.get("timestamp")),
        )
