"""Comment domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from innovation_hub.domain.models.timestamp import (
    SERVER_TIMESTAMP,
    Timestamp,
    to_document_value,
    to_timestamp,
)

COMMENT_BODY_MIN_LENGTH = 1
COMMENT_BODY_MAX_LENGTH = 500


@dataclass(frozen=True, eq=True)
class Comment:
    """A comment under a suggestion.

    Attributes:
        comment_id: Document ID within the suggestion's comments collection.
        suggestion_id: Parent suggestion.
        author_uid: Commenting user.
        body: Comment text.
        author_display_name: Name shown next to the comment.
        timestamp: When the comment was posted (pending until commit).
    """

    comment_id: str
    suggestion_id: str
    author_uid: str
    body: str
    author_display_name: str = "Anonymous"
    timestamp: Timestamp = field(default=SERVER_TIMESTAMP)

    def to_document(self) -> dict[str, Any]:
        return {
            "commentId": self.comment_id,
            "suggestionId": self.suggestion_id,
            "authorUid": self.author_uid,
            "authorDisplayName": self.author_display_name,
            "body": self.body,
            "timestamp": to_document_value(self.timestamp),
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Comment:
        # "text" / "createdAt" are the field names of older comment documents
        return cls(
            comment_id=data.get("commentId") or doc_id,
            suggestion_id=data["suggestionId"],
            author_uid=data["authorUid"],
            body=data.get("body", data.get("text", "")),
            author_display_name=data.get("authorDisplayName") or "Anonymous",
            timestamp=to_timestamp(data.get("timestamp", data.get("createdAt"))),
        )
