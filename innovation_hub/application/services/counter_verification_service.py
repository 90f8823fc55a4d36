"""Counter verification service.

Compares the denormalised upvotesCount / commentsCount of a suggestion
against the real size of its vote ledger and comment collection.

Usage:
    service = CounterVerificationService(store)
    result = await service.verify_counts(suggestion_id)
    if not result.is_consistent:
        await service.reconcile(suggestion_id)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from structlog import get_logger

from innovation_hub.application.services.counter_maintainer_service import (
    is_pending_counter_event,
    processed_event_marker,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.domain.errors import SuggestionNotFoundError
from innovation_hub.domain.models.document_paths import (
    PROCESSED_EVENTS_COLLECTION,
    SUGGESTIONS_COLLECTION,
    VOTES_COLLECTION,
    comments_collection,
)
from innovation_hub.domain.models.suggestion import (
    COMMENTS_COUNT_FIELD,
    UPVOTES_COUNT_FIELD,
)

if TYPE_CHECKING:
    from innovation_hub.application.ports.document_store import (
        DocumentStoreProtocol,
        TransactionProtocol,
    )
    from innovation_hub.application.ports.event_bus import EventBusProtocol
    from innovation_hub.application.ports.hub_metrics import HubMetricsProtocol

logger = get_logger(__name__)


@dataclass(frozen=True)
class CounterVerificationResult:
    """Counter values against actual collection sizes.

    Attributes:
        suggestion_id: The suggestion checked.
        upvotes_counter: Stored upvotesCount.
        actual_votes: Ledger entries for the suggestion.
        comments_counter: Stored commentsCount.
        actual_comments: Comments under the suggestion.
        absorbed_events: Pending reactive counter events that reconcile
            marked processed.
    """

    suggestion_id: str
    upvotes_counter: int
    actual_votes: int
    comments_counter: int
    actual_comments: int
    absorbed_events: int = 0

    @property
    def upvotes_consistent(self) -> bool:
        return self.upvotes_counter == self.actual_votes

    @property
    def comments_consistent(self) -> bool:
        return self.comments_counter == self.actual_comments

    @property
    def is_consistent(self) -> bool:
        return self.upvotes_consistent and self.comments_consistent


class CounterVerificationService:
    """Detects and repairs drift between counters and collections."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        retry_policy: RetryPolicy | None = None,
        metrics: HubMetricsProtocol | None = None,
        event_bus: EventBusProtocol | None = None,
    ) -> None:
        self._store = store
        self._event_bus = event_bus
        self._retry = retry_policy or RetryPolicy()
        self._metrics = metrics

    async def verify_counts(self, suggestion_id: str) -> CounterVerificationResult:
        """Compare both counters of a suggestion with a scan of its children.

        Discrepancies are logged at WARNING level.

        Raises:
            SuggestionNotFoundError: No such suggestion.
        """
        log = logger.bind(suggestion_id=suggestion_id)

        snapshot = await self._retry.run(
            "verify_counts",
            lambda: self._store.get(SUGGESTIONS_COLLECTION, suggestion_id),
        )
        if not snapshot.exists:
            raise SuggestionNotFoundError(suggestion_id)

        votes = await self._retry.run(
            "verify_counts",
            lambda: self._store.query(VOTES_COLLECTION, "suggestionId", suggestion_id),
        )
        comments = await self._retry.run(
            "verify_counts",
            lambda: self._store.list_documents(comments_collection(suggestion_id)),
        )

        result = CounterVerificationResult(
            suggestion_id=suggestion_id,
            upvotes_counter=int(snapshot.get(UPVOTES_COUNT_FIELD) or 0),
            actual_votes=len(votes),
            comments_counter=int(snapshot.get(COMMENTS_COUNT_FIELD) or 0),
            actual_comments=len(comments),
        )

        if result.is_consistent:
            log.debug(
                "counter_counts_verified",
                upvotes=result.upvotes_counter,
                comments=result.comments_counter,
                result="consistent",
            )
        else:
            log.warning(
                "counter_discrepancy_detected",
                upvotes_counter=result.upvotes_counter,
                actual_votes=result.actual_votes,
                comments_counter=result.comments_counter,
                actual_comments=result.actual_comments,
                result="inconsistent",
            )
            if self._metrics is not None:
                if not result.upvotes_consistent:
                    self._metrics.record_counter_drift(UPVOTES_COUNT_FIELD)
                if not result.comments_consistent:
                    self._metrics.record_counter_drift(COMMENTS_COUNT_FIELD)

        return result

    async def reconcile(self, suggestion_id: str) -> CounterVerificationResult:
        """Rewrite drifted counters from a scan, transactionally.

        Every counter write goes through the suggestion document, which
        this transaction reads first, so an inline vote or comment counted
        concurrently forces a re-run instead of being overwritten.

        Reactive counter events still pending on the event bus (in flight
        or failed) already have their writes in the scan. Their
        processed_events markers are created in the same commit, so a
        later reaction or redelivery of them changes nothing.

        Returns:
            The verification result observed before the repair.
        """

        async def _transaction(tx: TransactionProtocol) -> CounterVerificationResult:
            snapshot = await tx.get(SUGGESTIONS_COLLECTION, suggestion_id)
            if not snapshot.exists:
                raise SuggestionNotFoundError(suggestion_id)

            # Listed before the scan: a pending event's write has committed
            pending = self._pending_counter_events(suggestion_id)

            votes = await self._store.query(
                VOTES_COLLECTION, "suggestionId", suggestion_id
            )
            comments = await self._store.list_documents(
                comments_collection(suggestion_id)
            )

            absorbed = 0
            for event in pending:
                marker_id = str(event.event_id)
                marker = await tx.get(PROCESSED_EVENTS_COLLECTION, marker_id)
                if marker.exists:
                    continue
                tx.create(
                    PROCESSED_EVENTS_COLLECTION,
                    marker_id,
                    processed_event_marker(
                        marker_id, event.event_type, suggestion_id, reconciled=True
                    ),
                )
                absorbed += 1

            result = CounterVerificationResult(
                suggestion_id=suggestion_id,
                upvotes_counter=int(snapshot.get(UPVOTES_COUNT_FIELD) or 0),
                actual_votes=len(votes),
                comments_counter=int(snapshot.get(COMMENTS_COUNT_FIELD) or 0),
                actual_comments=len(comments),
                absorbed_events=absorbed,
            )
            if not result.is_consistent:
                tx.update(
                    SUGGESTIONS_COLLECTION,
                    suggestion_id,
                    {
                        UPVOTES_COUNT_FIELD: result.actual_votes,
                        COMMENTS_COUNT_FIELD: result.actual_comments,
                    },
                )
            return result

        result = await self._retry.run(
            "reconcile_counts", lambda: self._store.run_transaction(_transaction)
        )
        if result.is_consistent:
            logger.debug(
                "counter_reconcile_not_needed",
                suggestion_id=suggestion_id,
                absorbed_events=result.absorbed_events,
            )
        else:
            logger.warning(
                "counter_reconciled",
                suggestion_id=suggestion_id,
                upvotes_before=result.upvotes_counter,
                upvotes_after=result.actual_votes,
                comments_before=result.comments_counter,
                comments_after=result.actual_comments,
                absorbed_events=result.absorbed_events,
            )
        return result

    def _pending_counter_events(self, suggestion_id: str) -> list[Any]:
        if self._event_bus is None:
            return []
        return [
            event
            for event in self._event_bus.pending_events()
            if is_pending_counter_event(event, suggestion_id)
        ]
