"""Vote ledger service: the caller-facing upvote operations.

cast_vote() combines the idempotency check and the ledger write in one
transaction:

1. Derive the composite key "<voterUid>_<suggestionId>"
2. Read votes/{key}; if it exists raise AlreadyVotedError
3. Read suggestions/{suggestionId}; if missing raise SuggestionNotFoundError
4. Create votes/{key} with a server-assigned timestamp
5. (inline strategy) increment upvotesCount in the same commit

Two concurrent casts from the same voter both read a missing key; the
store's version check makes the loser re-run, and on the re-run it sees
the winner's entry and raises AlreadyVotedError. Two concurrent casts from
different voters both read the suggestion; the loser re-runs against the
incremented counter, so no update is lost.

retract_vote() is the mirror image and clamps the counter at 0.

Events are published only after the transaction commits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from structlog import get_logger

from innovation_hub.application.services.counter_maintainer_service import (
    CounterMaintainerService,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.config.hub_config import CounterStrategy
from innovation_hub.domain.errors import (
    AlreadyVotedError,
    SuggestionNotFoundError,
    VoteNotFoundError,
)
from innovation_hub.domain.events.vote import VoteCastEvent, VoteRetractedEvent
from innovation_hub.domain.models.document_paths import (
    SUGGESTIONS_COLLECTION,
    VOTES_COLLECTION,
)
from innovation_hub.domain.models.suggestion import UPVOTES_COUNT_FIELD
from innovation_hub.domain.models.timestamp import ResolvedTimestamp, to_timestamp
from innovation_hub.domain.models.vote import Vote, vote_key

if TYPE_CHECKING:
    from innovation_hub.application.ports.document_store import (
        DocumentStoreProtocol,
        TransactionProtocol,
    )
    from innovation_hub.application.ports.event_bus import EventBusProtocol
    from innovation_hub.application.ports.hub_metrics import HubMetricsProtocol

logger = get_logger(__name__)


@dataclass(frozen=True)
class VoteCastResult:
    """Result of a committed vote.

    Attributes:
        vote_key: Composite ledger key of the new entry.
        voter_uid: The voter.
        suggestion_id: The suggestion voted on.
        upvotes_count: Counter value after the commit; None when the
            counter is maintained reactively and has not converged yet.
        event_id: ID of the published VoteCastEvent.
    """

    vote_key: str
    voter_uid: str
    suggestion_id: str
    upvotes_count: int | None
    event_id: UUID


@dataclass(frozen=True)
class VoteRetractResult:
    """Result of a committed retraction."""

    vote_key: str
    voter_uid: str
    suggestion_id: str
    upvotes_count: int | None
    event_id: UUID


def _voted_at(value: Any) -> datetime | None:
    timestamp = to_timestamp(value)
    if isinstance(timestamp, ResolvedTimestamp):
        return timestamp.instant
    return None


class VoteLedgerService:
    """Casts, retracts and queries upvotes."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        counters: CounterMaintainerService,
        event_bus: EventBusProtocol | None = None,
        retry_policy: RetryPolicy | None = None,
        metrics: HubMetricsProtocol | None = None,
        counter_strategy: CounterStrategy = CounterStrategy.INLINE,
    ) -> None:
        """Initialize the vote ledger service.

        Args:
            store: Document store holding votes and suggestions.
            counters: Counter maintainer (used inline in the transaction).
            event_bus: Bus for post-commit events (optional).
            retry_policy: Retry layer wrapping every transaction.
            metrics: Metrics recorder (optional).
            counter_strategy: INLINE or REACTIVE counter maintenance.
        """
        self._store = store
        self._counters = counters
        self._event_bus = event_bus
        self._retry = retry_policy or RetryPolicy()
        self._metrics = metrics
        self._counter_strategy = counter_strategy

    @property
    def counter_strategy(self) -> CounterStrategy:
        return self._counter_strategy

    async def cast_vote(self, voter_uid: str, suggestion_id: str) -> VoteCastResult:
        """Record one upvote from voter_uid on suggestion_id.

        Args:
            voter_uid: Verified UID of the voter.
            suggestion_id: Suggestion to upvote.

        Returns:
            VoteCastResult describing the committed vote.

        Raises:
            AlreadyVotedError: The voter already upvoted this suggestion.
            SuggestionNotFoundError: The suggestion does not exist.
            DatastoreError: Non-retryable store failure, or a transient one
                that outlived the retry budget.
        """
        key = vote_key(voter_uid, suggestion_id)
        inline = self._counter_strategy is CounterStrategy.INLINE
        log = logger.bind(
            voter_uid=voter_uid,
            suggestion_id=suggestion_id,
            vote_key=key,
        )

        async def _transaction(tx: TransactionProtocol) -> int | None:
            existing = await tx.get(VOTES_COLLECTION, key)
            if existing.exists:
                raise AlreadyVotedError(
                    voter_uid,
                    suggestion_id,
                    voted_at=_voted_at(existing.get("timestamp")),
                )

            suggestion = await tx.get(SUGGESTIONS_COLLECTION, suggestion_id)
            if not suggestion.exists:
                raise SuggestionNotFoundError(suggestion_id)

            tx.create(
                VOTES_COLLECTION,
                key,
                Vote(voter_uid=voter_uid, suggestion_id=suggestion_id).to_document(),
            )
            if inline:
                return self._counters.apply_delta(
                    tx, suggestion, UPVOTES_COUNT_FIELD, 1
                )
            return None

        try:
            upvotes_count = await self._retry.run(
                "cast_vote", lambda: self._store.run_transaction(_transaction)
            )
        except AlreadyVotedError:
            log.info("vote_rejected", reason="already_voted")
            self._record_rejection("already_voted")
            raise
        except SuggestionNotFoundError:
            log.warning("vote_rejected", reason="suggestion_not_found")
            self._record_rejection("suggestion_not_found")
            raise

        event = VoteCastEvent(
            voter_uid=voter_uid,
            suggestion_id=suggestion_id,
            vote_key=key,
            counter_applied=inline,
        )
        log.info("vote_cast", upvotes_count=upvotes_count, event_id=str(event.event_id))
        if self._metrics is not None:
            self._metrics.record_vote_cast()
        await self._publish(event)

        return VoteCastResult(
            vote_key=key,
            voter_uid=voter_uid,
            suggestion_id=suggestion_id,
            upvotes_count=upvotes_count,
            event_id=event.event_id,
        )

    async def retract_vote(
        self, voter_uid: str, suggestion_id: str
    ) -> VoteRetractResult:
        """Remove the voter's upvote and decrement the counter (floor 0).

        Raises:
            VoteNotFoundError: The voter never upvoted this suggestion; the
                counter is left untouched.
        """
        key = vote_key(voter_uid, suggestion_id)
        inline = self._counter_strategy is CounterStrategy.INLINE
        log = logger.bind(
            voter_uid=voter_uid,
            suggestion_id=suggestion_id,
            vote_key=key,
        )

        async def _transaction(tx: TransactionProtocol) -> int | None:
            existing = await tx.get(VOTES_COLLECTION, key)
            if not existing.exists:
                raise VoteNotFoundError(voter_uid, suggestion_id)

            suggestion = await tx.get(SUGGESTIONS_COLLECTION, suggestion_id)
            tx.delete(VOTES_COLLECTION, key)
            if inline and suggestion.exists:
                return self._counters.apply_delta(
                    tx, suggestion, UPVOTES_COUNT_FIELD, -1
                )
            return None

        try:
            upvotes_count = await self._retry.run(
                "retract_vote", lambda: self._store.run_transaction(_transaction)
            )
        except VoteNotFoundError:
            log.info("vote_retract_rejected", reason="vote_not_found")
            raise

        event = VoteRetractedEvent(
            voter_uid=voter_uid,
            suggestion_id=suggestion_id,
            vote_key=key,
            counter_applied=inline,
        )
        log.info(
            "vote_retracted",
            upvotes_count=upvotes_count,
            event_id=str(event.event_id),
        )
        if self._metrics is not None:
            self._metrics.record_vote_retracted()
        await self._publish(event)

        return VoteRetractResult(
            vote_key=key,
            voter_uid=voter_uid,
            suggestion_id=suggestion_id,
            upvotes_count=upvotes_count,
            event_id=event.event_id,
        )

    async def has_user_voted(self, voter_uid: str, suggestion_id: str) -> bool:
        """Point lookup of the ledger entry for (voter, suggestion)."""
        key = vote_key(voter_uid, suggestion_id)
        snapshot = await self._retry.run(
            "has_user_voted", lambda: self._store.get(VOTES_COLLECTION, key)
        )
        return snapshot.exists

    async def get_user_votes(self, voter_uid: str) -> set[str]:
        """Return the IDs of every suggestion the voter has upvoted."""
        snapshots = await self._retry.run(
            "get_user_votes",
            lambda: self._store.query(VOTES_COLLECTION, "voterUid", voter_uid),
        )
        return {
            snapshot.data["suggestionId"]
            for snapshot in snapshots
            if snapshot.data is not None
        }

    async def list_voter_uids(self, suggestion_id: str) -> list[str]:
        """Return the distinct voter UIDs for a suggestion, sorted.

        This is the ledger side of notification audience resolution.
        """
        snapshots = await self._retry.run(
            "list_voter_uids",
            lambda: self._store.query(VOTES_COLLECTION, "suggestionId", suggestion_id),
        )
        return sorted(
            {
                snapshot.data["voterUid"]
                for snapshot in snapshots
                if snapshot.data is not None
            }
        )

    async def count_votes(self, suggestion_id: str) -> int:
        """Count ledger entries for a suggestion by scanning the ledger."""
        snapshots = await self._retry.run(
            "count_votes",
            lambda: self._store.query(VOTES_COLLECTION, "suggestionId", suggestion_id),
        )
        return len(snapshots)

    def _record_rejection(self, reason: str) -> None:
        if self._metrics is not None:
            self._metrics.record_vote_rejected(reason)

    async def _publish(self, event: object) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
