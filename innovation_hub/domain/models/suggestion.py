"""Suggestion domain model.

A Suggestion is the parent entity of the vote ledger and the comment
collection. Its upvotes and comments counters are denormalised copies of
the child collection sizes; only the counter maintainer writes them.

Status lifecycle:
    SUBMITTED -> UNDER_REVIEW -> SHORTLISTED -> IMPLEMENTED
    any non-implemented state -> ARCHIVED_REJECTED

Transitions are admin-driven and not restricted pairwise. ARCHIVED_REJECTED
and IMPLEMENTED are terminal for notification purposes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from innovation_hub.domain.models.timestamp import (
    SERVER_TIMESTAMP,
    Timestamp,
    to_document_value,
    to_timestamp,
)

ANONYMOUS_AUTHOR_UID = "ANONYMOUS"
ANONYMOUS_DISPLAY_NAME = "Anonymous"
DEFAULT_DISPLAY_NAME = "User"

TITLE_MIN_LENGTH = 10
TITLE_MAX_LENGTH = 100
BODY_MIN_LENGTH = 50
RATING_MIN = 1
RATING_MAX = 5

UPVOTES_COUNT_FIELD = "upvotesCount"
COMMENTS_COUNT_FIELD = "commentsCount"
COUNTER_FIELDS = (UPVOTES_COUNT_FIELD, COMMENTS_COUNT_FIELD)


class SuggestionStatus(str, Enum):
    """Review status of a suggestion."""

    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    SHORTLISTED = "SHORTLISTED"
    ARCHIVED_REJECTED = "ARCHIVED_REJECTED"
    IMPLEMENTED = "IMPLEMENTED"

    def is_terminal(self) -> bool:
        """Check if edits to a suggestion in this state stop notifying.

        Returns:
            True for ARCHIVED_REJECTED and IMPLEMENTED.
        """
        return self in TERMINAL_STATUSES

    @property
    def label(self) -> str:
        """Human-readable label, e.g. UNDER_REVIEW -> "Under Review"."""
        return self.value.replace("_", " ").title()


TERMINAL_STATUSES = frozenset(
    {SuggestionStatus.ARCHIVED_REJECTED, SuggestionStatus.IMPLEMENTED}
)

# Transitions into these statuses notify the author and every voter.
NOTIFYING_STATUSES = frozenset(
    {SuggestionStatus.SHORTLISTED, SuggestionStatus.IMPLEMENTED}
)


class SuggestionCategory(str, Enum):
    """Category a suggestion is filed under."""

    ACADEMIC_CURRICULUM = "ACADEMIC_CURRICULUM"
    INFRASTRUCTURE_IT = "INFRASTRUCTURE_IT"
    TECHNICAL_DESIGN = "TECHNICAL_DESIGN"
    ENVIRONMENTAL_SUSTAINABILITY = "ENVIRONMENTAL_SUSTAINABILITY"
    ADMINISTRATIVE_SEES = "ADMINISTRATIVE_SEES"
    OTHER = "OTHER"


def _rating_from_document(value: Any) -> int | None:
    # Older documents store 0 for "not scored yet"
    if value in (None, 0):
        return None
    return int(value)


@dataclass(frozen=True, eq=True)
class Suggestion:
    """An improvement suggestion.

    Attributes:
        suggestion_id: Document ID of the suggestion.
        title: Short summary (immutable).
        body: Full description (immutable).
        author_uid: Author UID, or ANONYMOUS_AUTHOR_UID.
        author_display_name: Name shown next to the suggestion.
        category: Category the suggestion is filed under (immutable).
        submission_timestamp: When it was submitted (immutable).
        status: Current review status.
        impact_score: Admin score 1-5, None until scored.
        feasibility_rating: Admin rating 1-5, None until scored.
        cost_effectiveness_rating: Admin rating 1-5, None until scored.
        public_feedback: Admin feedback shown to everyone.
        upvotes_count: Denormalised number of ledger entries.
        comments_count: Denormalised number of comments.
        reviewer_uid: Admin who last reviewed the suggestion.
    """

    suggestion_id: str
    title: str
    body: str
    author_uid: str
    category: SuggestionCategory
    author_display_name: str = DEFAULT_DISPLAY_NAME
    submission_timestamp: Timestamp = field(default=SERVER_TIMESTAMP)
    status: SuggestionStatus = SuggestionStatus.SUBMITTED
    impact_score: int | None = None
    feasibility_rating: int | None = None
    cost_effectiveness_rating: int | None = None
    public_feedback: str | None = None
    upvotes_count: int = 0
    comments_count: int = 0
    reviewer_uid: str | None = None

    @property
    def is_anonymous(self) -> bool:
        return self.author_uid == ANONYMOUS_AUTHOR_UID

    def with_status(self, status: SuggestionStatus) -> Suggestion:
        return replace(self, status=status)

    def to_document(self) -> dict[str, Any]:
        """Serialize to the stored document shape (camelCase fields)."""
        return {
            "suggestionId": self.suggestion_id,
            "title": self.title,
            "body": self.body,
            "authorUid": self.author_uid,
            "authorDisplayName": self.author_display_name,
            "category": self.category.value,
            "submissionTimestamp": to_document_value(self.submission_timestamp),
            "status": self.status.value,
            "impactScore": self.impact_score,
            "feasibilityRating": self.feasibility_rating,
            "costEffectivenessRating": self.cost_effectiveness_rating,
            "publicFeedback": self.public_feedback,
            UPVOTES_COUNT_FIELD: self.upvotes_count,
            COMMENTS_COUNT_FIELD: self.comments_count,
            "reviewerUid": self.reviewer_uid,
        }

    @classmethod
    def from_document(cls, doc_id: str, data: dict[str, Any]) -> Suggestion:
        """Build a Suggestion from a stored document.

        Missing counters read back as 0 and a missing status as SUBMITTED,
        matching documents written before those fields existed.
        """
        return cls(
            suggestion_id=data.get("suggestionId") or doc_id,
            title=data.get("title", ""),
            body=data.get("body", ""),
            author_uid=data.get("authorUid") or ANONYMOUS_AUTHOR_UID,
            author_display_name=data.get("authorDisplayName")
            or DEFAULT_DISPLAY_NAME,
            category=SuggestionCategory(data.get("category", "OTHER")),
            submission_timestamp=to_timestamp(data.get("submissionTimestamp")),
            status=SuggestionStatus(data.get("status", "SUBMITTED")),
            impact_score=_rating_from_document(data.get("impactScore")),
            feasibility_rating=_rating_from_document(data.get("feasibilityRating")),
            cost_effectiveness_rating=_rating_from_document(
                data.get("costEffectivenessRating")
            ),
            public_feedback=data.get("publicFeedback"),
            upvotes_count=int(data.get(UPVOTES_COUNT_FIELD) or 0),
            comments_count=int(data.get(COMMENTS_COUNT_FIELD) or 0),
            reviewer_uid=data.get("reviewerUid"),
        )
