"""Counter maintainer service.

upvotesCount and commentsCount on a suggestion are denormalised copies of
the vote ledger and comment collection sizes. This service is the only
writer of those two fields.

Two strategies converge to the same invariant:

INLINE (default):
    The ledger/comment transaction calls apply_delta() on the suggestion
    snapshot it already read, so the counter and the child document
    commit together or not at all.

REACTIVE:
    The write path commits only the child document and publishes an
    event with counter_applied=False. The handlers below then adjust the
    counter in their own transaction, which also creates a
    processed_events/{event_id} marker. Re-delivery of the same event
    finds the marker and does nothing, so at-least-once delivery never
    double counts.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import UUID

from structlog import get_logger

from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.domain.events.comment import (
    CommentDeletedEvent,
    CommentPostedEvent,
)
from innovation_hub.domain.events.vote import VoteCastEvent, VoteRetractedEvent
from innovation_hub.domain.models.document_paths import (
    PROCESSED_EVENTS_COLLECTION,
    SUGGESTIONS_COLLECTION,
)
from innovation_hub.domain.models.suggestion import (
    COMMENTS_COUNT_FIELD,
    UPVOTES_COUNT_FIELD,
)
from innovation_hub.domain.models.timestamp import SERVER_TIMESTAMP

if TYPE_CHECKING:
    from innovation_hub.application.ports.document_store import (
        DocumentSnapshot,
        DocumentStoreProtocol,
        TransactionProtocol,
    )
    from innovation_hub.application.ports.event_bus import EventBusProtocol
    from innovation_hub.application.ports.hub_metrics import HubMetricsProtocol

logger = get_logger(__name__)

COUNTER_EVENT_TYPES = (
    VoteCastEvent,
    VoteRetractedEvent,
    CommentPostedEvent,
    CommentDeletedEvent,
)


def processed_event_marker(
    event_id: str, event_type: str, suggestion_id: str, **extra: Any
) -> dict[str, Any]:
    """Document stored at processed_events/{event_id}."""
    return {
        "eventId": event_id,
        "eventType": event_type,
        "suggestionId": suggestion_id,
        "processedAt": SERVER_TIMESTAMP,
        **extra,
    }


def is_pending_counter_event(event: Any, suggestion_id: str) -> bool:
    """True for a reactive counter event on suggestion_id."""
    return (
        isinstance(event, COUNTER_EVENT_TYPES)
        and not event.counter_applied
        and event.suggestion_id == suggestion_id
    )


class CounterMaintainerService:
    """Keeps the denormalised counters in step with their collections."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        retry_policy: RetryPolicy | None = None,
        metrics: HubMetricsProtocol | None = None,
    ) -> None:
        """Initialize the counter maintainer.

        Args:
            store: Document store holding suggestions and markers.
            retry_policy: Retry layer for reactive transactions.
            metrics: Metrics recorder (optional).
        """
        self._store = store
        self._retry = retry_policy or RetryPolicy()
        self._metrics = metrics

    def apply_delta(
        self,
        tx: TransactionProtocol,
        snapshot: DocumentSnapshot,
        field_name: str,
        delta: int,
    ) -> int:
        """Buffer a counter adjustment inside a caller's transaction.

        The new value is clamped at 0. A clamp means the counter had
        already drifted below the real collection size; it is logged so
        CounterVerificationService can be run against the suggestion.

        Args:
            tx: The open transaction that also writes the child document.
            snapshot: The suggestion as read inside that transaction.
            field_name: UPVOTES_COUNT_FIELD or COMMENTS_COUNT_FIELD.
            delta: +1 or -1.

        Returns:
            The counter value that will be committed.
        """
        current = int(snapshot.get(field_name) or 0)
        new_value = current + delta
        if new_value < 0:
            logger.warning(
                "counter_clamped_at_zero",
                suggestion_id=snapshot.doc_id,
                field=field_name,
                current=current,
                delta=delta,
            )
            if self._metrics is not None:
                self._metrics.record_counter_drift(field_name)
            new_value = 0
        tx.update(snapshot.collection, snapshot.doc_id, {field_name: new_value})
        return new_value

    async def apply_event_delta(
        self,
        event_id: UUID,
        event_type: str,
        suggestion_id: str,
        field_name: str,
        delta: int,
    ) -> bool:
        """Apply a counter change for an event exactly once.

        Args:
            event_id: Dedup key of the triggering event.
            event_type: Event type string (recorded on the marker).
            suggestion_id: Suggestion whose counter changes.
            field_name: Counter field to adjust.
            delta: +1 or -1.

        Returns:
            True if the counter was adjusted now, False if the event had
            already been processed or the suggestion no longer exists.
        """
        marker_id = str(event_id)
        log = logger.bind(
            event_id=marker_id,
            event_type=event_type,
            suggestion_id=suggestion_id,
            field=field_name,
        )

        async def _transaction(tx: TransactionProtocol) -> str:
            marker = await tx.get(PROCESSED_EVENTS_COLLECTION, marker_id)
            if marker.exists:
                return "duplicate"
            suggestion = await tx.get(SUGGESTIONS_COLLECTION, suggestion_id)
            outcome = "missing_suggestion"
            if suggestion.exists:
                self.apply_delta(tx, suggestion, field_name, delta)
                outcome = "applied"
            tx.create(
                PROCESSED_EVENTS_COLLECTION,
                marker_id,
                processed_event_marker(marker_id, event_type, suggestion_id),
            )
            return outcome

        outcome = await self._retry.run(
            "counter_reaction", lambda: self._store.run_transaction(_transaction)
        )

        if outcome == "duplicate":
            log.debug("counter_event_already_processed")
        elif outcome == "missing_suggestion":
            log.warning("counter_event_for_missing_suggestion")
        else:
            log.info("counter_event_applied", delta=delta)
        return outcome == "applied"

    async def handle_vote_cast(self, event: VoteCastEvent) -> None:
        if event.counter_applied:
            return
        await self.apply_event_delta(
            event.event_id,
            event.event_type,
            event.suggestion_id,
            UPVOTES_COUNT_FIELD,
            1,
        )

    async def handle_vote_retracted(self, event: VoteRetractedEvent) -> None:
        if event.counter_applied:
            return
        await self.apply_event_delta(
            event.event_id,
            event.event_type,
            event.suggestion_id,
            UPVOTES_COUNT_FIELD,
            -1,
        )

    async def handle_comment_posted(self, event: CommentPostedEvent) -> None:
        if event.counter_applied:
            return
        await self.apply_event_delta(
            event.event_id,
            event.event_type,
            event.suggestion_id,
            COMMENTS_COUNT_FIELD,
            1,
        )

    async def handle_comment_deleted(self, event: CommentDeletedEvent) -> None:
        if event.counter_applied:
            return
        await self.apply_event_delta(
            event.event_id,
            event.event_type,
            event.suggestion_id,
            COMMENTS_COUNT_FIELD,
            -1,
        )

    def register(self, event_bus: EventBusProtocol) -> None:
        """Subscribe the reactive handlers to the ledger and comment events."""
        event_bus.subscribe(VoteCastEvent, self.handle_vote_cast)
        event_bus.subscribe(VoteRetractedEvent, self.handle_vote_retracted)
        event_bus.subscribe(CommentPostedEvent, self.handle_comment_posted)
        event_bus.subscribe(CommentDeletedEvent, self.handle_comment_deleted)
