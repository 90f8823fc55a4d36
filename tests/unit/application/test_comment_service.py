"""Unit tests for CommentService."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from innovation_hub.application.services.comment_service import CommentService
from innovation_hub.config.hub_config import CounterStrategy
from innovation_hub.domain.errors import (
    CommentNotFoundError,
    CommentOwnershipError,
    CommentTargetNotFoundError,
    InvalidSuggestionError,
)
from innovation_hub.domain.events.comment import CommentDeletedEvent, CommentPostedEvent
from innovation_hub.domain.models.document_paths import (
    SUGGESTIONS_COLLECTION,
    comments_collection,
)

from conftest import make_suggestion, seed_suggestion


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def service(store, counters, mock_event_bus, retry_policy) -> CommentService:
    seed_suggestion(store, make_suggestion("s1"))
    return CommentService(
        store, counters, event_bus=mock_event_bus, retry_policy=retry_policy
    )


def _comments_count(store) -> int:
    return store.document(SUGGESTIONS_COLLECTION, "s1")["commentsCount"]


class TestPostComment:
    @pytest.mark.asyncio
    async def test_post_stores_comment_and_increments(self, service, store) -> None:
        result = await service.post_comment("s1", "u1", "  Fully agree!  ", "Bola")

        assert result.comments_count == 1
        assert _comments_count(store) == 1
        stored = store.document(comments_collection("s1"), result.comment.comment_id)
        assert stored["body"] == "Fully agree!"
        assert stored["authorUid"] == "u1"
        assert stored["authorDisplayName"] == "Bola"

    @pytest.mark.asyncio
    async def test_post_publishes_event(self, service, mock_event_bus) -> None:
        result = await service.post_comment("s1", "u1", "Nice")

        event = mock_event_bus.publish.await_args.args[0]
        assert isinstance(event, CommentPostedEvent)
        assert event.comment_id == result.comment.comment_id
        assert event.counter_applied is True

    @pytest.mark.parametrize(
        ("body", "reason"),
        [("   ", "Comment cannot be empty."), ("x" * 501, "Comment is too long.")],
    )
    @pytest.mark.asyncio
    async def test_invalid_bodies(self, service, store, body, reason) -> None:
        with pytest.raises(InvalidSuggestionError) as exc_info:
            await service.post_comment("s1", "u1", body)

        assert exc_info.value.reason == reason
        assert _comments_count(store) == 0

    @pytest.mark.asyncio
    async def test_comment_on_missing_suggestion(self, service, store) -> None:
        with pytest.raises(CommentTargetNotFoundError):
            await service.post_comment("missing", "u1", "Hello")

        assert store.documents(comments_collection("missing")) == {}

    @pytest.mark.asyncio
    async def test_reactive_strategy_defers_counter(
        self, store, counters, retry_policy
    ) -> None:
        seed_suggestion(store, make_suggestion("s1"))
        bus = AsyncMock()
        service = CommentService(
            store,
            counters,
            event_bus=bus,
            retry_policy=retry_policy,
            counter_strategy=CounterStrategy.REACTIVE,
        )

        result = await service.post_comment("s1", "u1", "Hello")

        assert result.comments_count is None
        assert _comments_count(store) == 0
        await counters.handle_comment_posted(bus.publish.await_args.args[0])
        assert _comments_count(store) == 1


class TestDeleteComment:
    @pytest.mark.asyncio
    async def test_author_deletes_comment(self, service, store, mock_event_bus) -> None:
        posted = await service.post_comment("s1", "u1", "Typo")

        count = await service.delete_comment("s1", posted.comment.comment_id, "u1")

        assert count == 0
        assert store.documents(comments_collection("s1")) == {}
        assert isinstance(mock_event_bus.publish.await_args.args[0], CommentDeletedEvent)

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, service, store) -> None:
        posted = await service.post_comment("s1", "u1", "Mine")

        with pytest.raises(CommentOwnershipError):
            await service.delete_comment("s1", posted.comment.comment_id, "u2")

        assert _comments_count(store) == 1

    @pytest.mark.asyncio
    async def test_delete_missing_comment(self, service) -> None:
        with pytest.raises(CommentNotFoundError):
            await service.delete_comment("s1", "nope", "u1")


class TestListComments:
    @pytest.mark.asyncio
    async def test_ordered_by_timestamp(self, service, store, fake_clock) -> None:
        first = await service.post_comment("s1", "u1", "First")
        fake_clock.advance(5)
        second = await service.post_comment("s1", "u2", "Second")

        comments = await service.list_comments("s1")

        assert [c.comment_id for c in comments] == [
            first.comment.comment_id,
            second.comment.comment_id,
        ]

    @pytest.mark.asyncio
    async def test_pending_timestamps_sort_last(self, service, store) -> None:
        store.seed(
            comments_collection("s1"),
            "a-pending",
            {
                "suggestionId": "s1",
                "authorUid": "u9",
                "body": "Still syncing",
                "timestamp": None,
            },
        )
        posted = await service.post_comment("s1", "u1", "Committed")

        comments = await service.list_comments("s1")

        assert [c.comment_id for c in comments] == [posted.comment.comment_id, "a-pending"]
