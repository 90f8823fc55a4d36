"""Unit tests for VoteLedgerService.

Covers the idempotency guard, the inline counter, concurrent casts
against the optimistic store, retraction and the ledger queries.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from innovation_hub.application.services.counter_maintainer_service import (
    CounterMaintainerService,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.application.services.vote_ledger_service import VoteLedgerService
from innovation_hub.config.hub_config import CounterStrategy, RetryConfig
from innovation_hub.domain.errors import (
    AlreadyVotedError,
    DatastoreError,
    DatastoreErrorCode,
    PermissionDeniedError,
    SuggestionNotFoundError,
    VoteNotFoundError,
)
from innovation_hub.domain.events.vote import VoteCastEvent, VoteRetractedEvent
from innovation_hub.domain.models.document_paths import (
    SUGGESTIONS_COLLECTION,
    VOTES_COLLECTION,
)
from innovation_hub.infrastructure.stubs import InMemoryDocumentStore

from conftest import FIXED_INSTANT, make_suggestion, seed_suggestion


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    bus = AsyncMock()
    bus.publish = AsyncMock()
    return bus


@pytest.fixture
def service(store, counters, mock_event_bus, retry_policy, metrics) -> VoteLedgerService:
    seed_suggestion(store, make_suggestion("s1", author_uid="a1"))
    return VoteLedgerService(
        store,
        counters,
        event_bus=mock_event_bus,
        retry_policy=retry_policy,
        metrics=metrics,
    )


def _upvotes(store: InMemoryDocumentStore, suggestion_id: str = "s1") -> int:
    return store.document(SUGGESTIONS_COLLECTION, suggestion_id)["upvotesCount"]


class TestCastVote:
    @pytest.mark.asyncio
    async def test_first_vote_creates_entry_and_increments(self, service, store) -> None:
        result = await service.cast_vote("v1", "s1")

        assert result.vote_key == "v1_s1"
        assert result.upvotes_count == 1
        assert _upvotes(store) == 1

        entry = store.document(VOTES_COLLECTION, "v1_s1")
        assert entry["voterUid"] == "v1"
        assert entry["suggestionId"] == "s1"
        assert entry["voteId"] == "v1_s1"
        assert entry["timestamp"] == FIXED_INSTANT

    @pytest.mark.asyncio
    async def test_repeat_vote_is_rejected_and_counter_unchanged(
        self, service, store
    ) -> None:
        await service.cast_vote("v1", "s1")

        with pytest.raises(AlreadyVotedError) as exc_info:
            await service.cast_vote("v1", "s1")

        assert exc_info.value.voted_at == FIXED_INSTANT
        assert _upvotes(store) == 1
        assert list(store.documents(VOTES_COLLECTION)) == ["v1_s1"]

    @pytest.mark.asyncio
    async def test_votes_v1_v2_v1_leave_two_entries(self, service, store) -> None:
        await service.cast_vote("v1", "s1")
        await service.cast_vote("v2", "s1")
        with pytest.raises(AlreadyVotedError):
            await service.cast_vote("v1", "s1")

        assert sorted(store.documents(VOTES_COLLECTION)) == ["v1_s1", "v2_s1"]
        assert _upvotes(store) == 2

    @pytest.mark.asyncio
    async def test_vote_on_missing_suggestion(self, service, store) -> None:
        with pytest.raises(SuggestionNotFoundError):
            await service.cast_vote("v1", "missing")

        assert store.documents(VOTES_COLLECTION) == {}

    @pytest.mark.asyncio
    async def test_publishes_event_after_commit(self, service, mock_event_bus) -> None:
        result = await service.cast_vote("v1", "s1")

        mock_event_bus.publish.assert_awaited_once()
        event = mock_event_bus.publish.await_args.args[0]
        assert isinstance(event, VoteCastEvent)
        assert event.vote_key == "v1_s1"
        assert event.counter_applied is True
        assert event.event_id == result.event_id

    @pytest.mark.asyncio
    async def test_rejected_vote_publishes_nothing(self, service, mock_event_bus) -> None:
        await service.cast_vote("v1", "s1")
        mock_event_bus.publish.reset_mock()

        with pytest.raises(AlreadyVotedError):
            await service.cast_vote("v1", "s1")

        mock_event_bus.publish.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejections_are_counted(self, service, metrics) -> None:
        await service.cast_vote("v1", "s1")
        with pytest.raises(AlreadyVotedError):
            await service.cast_vote("v1", "s1")

        assert metrics.registry.get_sample_value("hub_votes_cast_total") == 1.0
        assert (
            metrics.registry.get_sample_value(
                "hub_votes_rejected_total", {"reason": "already_voted"}
            )
            == 1.0
        )

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(
        self, service, store, recording_sleep
    ) -> None:
        store.fail_next_commits(DatastoreError(DatastoreErrorCode.UNAVAILABLE), times=2)

        result = await service.cast_vote("v1", "s1")

        assert result.upvotes_count == 1
        assert recording_sleep.delays == [1.0, 2.0]
        assert _upvotes(store) == 1

    @pytest.mark.asyncio
    async def test_permission_denied_is_not_retried(
        self, service, store, recording_sleep
    ) -> None:
        store.deny(VOTES_COLLECTION, "create")

        with pytest.raises(PermissionDeniedError) as exc_info:
            await service.cast_vote("v1", "s1")

        assert exc_info.value.path == "votes/v1_s1"
        assert recording_sleep.delays == []
        assert _upvotes(store) == 0


class TestConcurrentVotes:
    @pytest.fixture
    def contended_store(self) -> InMemoryDocumentStore:
        store = InMemoryDocumentStore(max_attempts=10, yield_on_read=True)
        seed_suggestion(store, make_suggestion("s1"))
        return store

    @pytest.mark.asyncio
    async def test_distinct_voters_all_counted(self, contended_store) -> None:
        retry = RetryPolicy(RetryConfig(initial_delay_seconds=0.0))
        service = VoteLedgerService(
            contended_store,
            CounterMaintainerService(contended_store, retry_policy=retry),
            retry_policy=retry,
        )

        await asyncio.gather(*(service.cast_vote(f"v{i}", "s1") for i in range(5)))

        assert _upvotes(contended_store) == 5
        assert len(contended_store.documents(VOTES_COLLECTION)) == 5
        assert contended_store.conflict_count > 0

    @pytest.mark.asyncio
    async def test_same_voter_twice_concurrently_counts_once(
        self, contended_store
    ) -> None:
        retry = RetryPolicy(RetryConfig(initial_delay_seconds=0.0))
        service = VoteLedgerService(
            contended_store,
            CounterMaintainerService(contended_store, retry_policy=retry),
            retry_policy=retry,
        )

        results = await asyncio.gather(
            service.cast_vote("v1", "s1"),
            service.cast_vote("v1", "s1"),
            return_exceptions=True,
        )

        rejected = [r for r in results if isinstance(r, AlreadyVotedError)]
        assert len(rejected) == 1
        assert _upvotes(contended_store) == 1
        assert list(contended_store.documents(VOTES_COLLECTION)) == ["v1_s1"]


class TestRetractVote:
    @pytest.mark.asyncio
    async def test_retract_removes_entry_and_decrements(
        self, service, store, mock_event_bus
    ) -> None:
        await service.cast_vote("v1", "s1")

        result = await service.retract_vote("v1", "s1")

        assert result.upvotes_count == 0
        assert store.document(VOTES_COLLECTION, "v1_s1") is None
        event = mock_event_bus.publish.await_args.args[0]
        assert isinstance(event, VoteRetractedEvent)

    @pytest.mark.asyncio
    async def test_retract_without_vote_raises_and_leaves_counter(
        self, service, store
    ) -> None:
        await service.cast_vote("v2", "s1")

        with pytest.raises(VoteNotFoundError):
            await service.retract_vote("v1", "s1")

        assert _upvotes(store) == 1

    @pytest.mark.asyncio
    async def test_retract_clamps_drifted_counter_at_zero(
        self, service, store, metrics
    ) -> None:
        store.seed(
            VOTES_COLLECTION,
            "v1_s1",
            {"voteId": "v1_s1", "voterUid": "v1", "suggestionId": "s1"},
        )

        result = await service.retract_vote("v1", "s1")

        assert result.upvotes_count == 0
        assert _upvotes(store) == 0
        assert (
            metrics.registry.get_sample_value(
                "hub_counter_drift_total", {"field": "upvotesCount"}
            )
            == 1.0
        )

    @pytest.mark.asyncio
    async def test_vote_again_after_retract(self, service, store) -> None:
        await service.cast_vote("v1", "s1")
        await service.retract_vote("v1", "s1")

        result = await service.cast_vote("v1", "s1")

        assert result.upvotes_count == 1


class TestLedgerQueries:
    @pytest.mark.asyncio
    async def test_has_user_voted(self, service) -> None:
        await service.cast_vote("v1", "s1")

        assert await service.has_user_voted("v1", "s1") is True
        assert await service.has_user_voted("v2", "s1") is False

    @pytest.mark.asyncio
    async def test_get_user_votes(self, service, store) -> None:
        seed_suggestion(store, make_suggestion("s2"))
        await service.cast_vote("v1", "s1")
        await service.cast_vote("v1", "s2")
        await service.cast_vote("v2", "s1")

        assert await service.get_user_votes("v1") == {"s1", "s2"}
        assert await service.get_user_votes("nobody") == set()

    @pytest.mark.asyncio
    async def test_list_voter_uids_and_count(self, service) -> None:
        await service.cast_vote("v2", "s1")
        await service.cast_vote("v1", "s1")

        assert await service.list_voter_uids("s1") == ["v1", "v2"]
        assert await service.count_votes("s1") == 2


class TestReactiveStrategy:
    @pytest.mark.asyncio
    async def test_reactive_cast_leaves_counter_to_maintainer(
        self, store, counters, retry_policy
    ) -> None:
        seed_suggestion(store, make_suggestion("s1"))
        bus = AsyncMock()
        service = VoteLedgerService(
            store,
            counters,
            event_bus=bus,
            retry_policy=retry_policy,
            counter_strategy=CounterStrategy.REACTIVE,
        )

        result = await service.cast_vote("v1", "s1")

        assert result.upvotes_count is None
        assert _upvotes(store) == 0
        event = bus.publish.await_args.args[0]
        assert event.counter_applied is False

        await counters.handle_vote_cast(event)
        assert _upvotes(store) == 1
