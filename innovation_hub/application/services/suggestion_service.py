"""Suggestion service: submission and admin review.

Submissions are validated with SuggestionSubmissionDTO and stored with
status SUBMITTED, zero counters and no ratings. An anonymous submission
is stored with author ANONYMOUS and display name "Anonymous", so the
author is never part of a notification audience.

A review reads the suggestion inside a transaction, applies the admin
fields and publishes SuggestionReviewedEvent after commit with the
status before and after the edit. The status-change notifier decides
from those two values whether anyone is notified; a review that only
touches ratings or feedback carries previous_status == new_status.
Reviews never touch upvotesCount or commentsCount.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from structlog import get_logger
from uuid6 import uuid7

from innovation_hub.application.dtos.suggestion import (
    SuggestionReviewDTO,
    SuggestionSubmissionDTO,
    invalid_payload_error,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.domain.errors import SuggestionNotFoundError
from innovation_hub.domain.events.suggestion import (
    SuggestionReviewedEvent,
    SuggestionSubmittedEvent,
)
from innovation_hub.domain.models.document_paths import SUGGESTIONS_COLLECTION
from innovation_hub.domain.models.suggestion import (
    ANONYMOUS_AUTHOR_UID,
    ANONYMOUS_DISPLAY_NAME,
    DEFAULT_DISPLAY_NAME,
    Suggestion,
    SuggestionCategory,
    SuggestionStatus,
)

if TYPE_CHECKING:
    from innovation_hub.application.ports.document_store import (
        DocumentStoreProtocol,
        TransactionProtocol,
    )
    from innovation_hub.application.ports.event_bus import EventBusProtocol

logger = get_logger(__name__)

# Document fields an admin review may change
_REVIEW_FIELDS: dict[str, str] = {
    "status": "status",
    "impact_score": "impactScore",
    "feasibility_rating": "feasibilityRating",
    "cost_effectiveness_rating": "costEffectivenessRating",
    "public_feedback": "publicFeedback",
}


class SuggestionService:
    """Submits, reads and reviews suggestions."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        event_bus: EventBusProtocol | None = None,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._store = store
        self._event_bus = event_bus
        self._retry = retry_policy or RetryPolicy()

    async def submit_suggestion(
        self,
        author_uid: str,
        title: str,
        body: str,
        category: SuggestionCategory | str,
        is_anonymous: bool = False,
        author_display_name: str | None = None,
    ) -> Suggestion:
        """Validate and store a new suggestion.

        Args:
            author_uid: Verified UID of the submitting user.
            title: 10-100 characters after trimming.
            body: At least 50 characters after trimming.
            category: A SuggestionCategory (or its string value).
            is_anonymous: Hide the author (stored as ANONYMOUS).
            author_display_name: Name to show; ignored when anonymous.

        Returns:
            The suggestion as submitted (timestamp pending).

        Raises:
            InvalidSuggestionError: A field failed validation.
        """
        try:
            submission = SuggestionSubmissionDTO(
                title=title,
                body=body,
                category=category,
                is_anonymous=is_anonymous,
            )
        except ValidationError as exc:
            error = invalid_payload_error(exc)
            logger.info(
                "suggestion_submission_rejected",
                field=error.field,
                reason=error.reason,
            )
            raise error from exc

        if submission.is_anonymous:
            stored_author = ANONYMOUS_AUTHOR_UID
            display_name = ANONYMOUS_DISPLAY_NAME
        else:
            stored_author = author_uid
            display_name = author_display_name or DEFAULT_DISPLAY_NAME

        suggestion = Suggestion(
            suggestion_id=str(uuid7()),
            title=submission.title,
            body=submission.body,
            author_uid=stored_author,
            author_display_name=display_name,
            category=submission.category,
        )
        document = suggestion.to_document()

        async def _transaction(tx: TransactionProtocol) -> None:
            tx.create(SUGGESTIONS_COLLECTION, suggestion.suggestion_id, document)

        await self._retry.run(
            "submit_suggestion", lambda: self._store.run_transaction(_transaction)
        )

        logger.info(
            "suggestion_submitted",
            suggestion_id=suggestion.suggestion_id,
            category=suggestion.category.value,
            anonymous=suggestion.is_anonymous,
        )
        await self._publish(
            SuggestionSubmittedEvent(
                suggestion_id=suggestion.suggestion_id,
                author_uid=suggestion.author_uid,
                category=suggestion.category.value,
            )
        )
        return suggestion

    async def get_suggestion(self, suggestion_id: str) -> Suggestion:
        """Load a suggestion.

        Raises:
            SuggestionNotFoundError: No such suggestion.
        """
        snapshot = await self._retry.run(
            "get_suggestion",
            lambda: self._store.get(SUGGESTIONS_COLLECTION, suggestion_id),
        )
        if snapshot.data is None:
            raise SuggestionNotFoundError(suggestion_id)
        return Suggestion.from_document(snapshot.doc_id, snapshot.data)

    async def list_suggestions(self) -> list[Suggestion]:
        """Return every suggestion, ordered by document ID."""
        snapshots = await self._retry.run(
            "list_suggestions",
            lambda: self._store.list_documents(SUGGESTIONS_COLLECTION),
        )
        return [
            Suggestion.from_document(snapshot.doc_id, snapshot.data)
            for snapshot in snapshots
            if snapshot.data is not None
        ]

    async def review_suggestion(
        self,
        suggestion_id: str,
        reviewer_uid: str,
        status: SuggestionStatus | str | None = None,
        impact_score: int | None = None,
        feasibility_rating: int | None = None,
        cost_effectiveness_rating: int | None = None,
        public_feedback: str | None = None,
    ) -> SuggestionReviewedEvent:
        """Apply an admin review and publish SuggestionReviewedEvent.

        Arguments left as None keep their stored value.

        Returns:
            The published event (carries previous and new status).

        Raises:
            InvalidSuggestionError: A rating is outside 1-5 or the status
                is unknown.
            SuggestionNotFoundError: No such suggestion.
        """
        try:
            review = SuggestionReviewDTO(
                status=status,
                impact_score=impact_score,
                feasibility_rating=feasibility_rating,
                cost_effectiveness_rating=cost_effectiveness_rating,
                public_feedback=public_feedback,
            )
        except ValidationError as exc:
            error = invalid_payload_error(exc)
            logger.info(
                "suggestion_review_rejected",
                suggestion_id=suggestion_id,
                field=error.field,
                reason=error.reason,
            )
            raise error from exc

        requested: dict[str, Any] = {}
        for attribute, document_field in _REVIEW_FIELDS.items():
            value = getattr(review, attribute)
            if value is None:
                continue
            if isinstance(value, SuggestionStatus):
                value = value.value
            requested[document_field] = value

        async def _transaction(
            tx: TransactionProtocol,
        ) -> tuple[SuggestionStatus, SuggestionStatus, tuple[str, ...]]:
            snapshot = await tx.get(SUGGESTIONS_COLLECTION, suggestion_id)
            if snapshot.data is None:
                raise SuggestionNotFoundError(suggestion_id)

            current = Suggestion.from_document(snapshot.doc_id, snapshot.data)
            changed = tuple(
                field_name
                for field_name, value in requested.items()
                if snapshot.data.get(field_name) != value
            )
            changes = dict(requested)
            changes["reviewerUid"] = reviewer_uid
            tx.update(SUGGESTIONS_COLLECTION, suggestion_id, changes)

            new_status = review.status or current.status
            return current.status, new_status, changed

        previous_status, new_status, changed_fields = await self._retry.run(
            "review_suggestion", lambda: self._store.run_transaction(_transaction)
        )

        event = SuggestionReviewedEvent(
            suggestion_id=suggestion_id,
            reviewer_uid=reviewer_uid,
            previous_status=previous_status,
            new_status=new_status,
            changed_fields=changed_fields,
        )
        logger.info(
            "suggestion_reviewed",
            suggestion_id=suggestion_id,
            reviewer_uid=reviewer_uid,
            previous_status=previous_status.value,
            new_status=new_status.value,
            changed_fields=list(changed_fields),
            event_id=str(event.event_id),
        )
        await self._publish(event)
        return event

    async def _publish(self, event: object) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
