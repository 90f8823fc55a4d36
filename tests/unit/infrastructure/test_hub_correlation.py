"""Unit tests for correlation ID propagation."""

from __future__ import annotations

import pytest

from innovation_hub.application.services.status_change_notifier_service import (
    StatusChangeNotifierService,
)
from innovation_hub.domain.events.suggestion import SuggestionReviewedEvent
from innovation_hub.domain.models.suggestion import SuggestionStatus
from innovation_hub.infrastructure.observability.correlation import (
    correlation_id_processor,
    correlation_scope,
    get_correlation_id,
)

from conftest import make_suggestion, seed_suggestion


class _CorrelationRecordingDelivery:
    def __init__(self) -> None:
        self.correlation_ids: list[str] = []

    async def send(self, address: str, subject: str, body: str) -> bool:
        self.correlation_ids.append(get_correlation_id())
        return True


class TestCorrelationScope:
    def test_generates_id_and_restores(self) -> None:
        assert get_correlation_id() == ""

        with correlation_scope() as correlation_id:
            assert correlation_id
            assert get_correlation_id() == correlation_id

        assert get_correlation_id() == ""

    def test_nested_scopes(self) -> None:
        with correlation_scope("outer"):
            with correlation_scope("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"

    def test_processor_adds_id_only_inside_scope(self) -> None:
        assert "correlation_id" not in correlation_id_processor(None, "info", {})

        with correlation_scope("req-1"):
            event_dict = correlation_id_processor(None, "info", {"event": "x"})

        assert event_dict == {"event": "x", "correlation_id": "req-1"}


class TestNotifierCorrelation:
    @pytest.fixture
    def notifier_setup(self, store, profiles, retry_policy):
        seed_suggestion(store, make_suggestion("s1", author_uid="a1"))
        delivery = _CorrelationRecordingDelivery()
        notifier = StatusChangeNotifierService(
            store, profiles, delivery, retry_policy=retry_policy
        )
        profiles.add_profile("a1", "ada@example.edu", "Ada")
        return notifier, delivery

    @staticmethod
    def _event() -> SuggestionReviewedEvent:
        return SuggestionReviewedEvent(
            suggestion_id="s1",
            reviewer_uid="admin",
            previous_status=SuggestionStatus.SUBMITTED,
            new_status=SuggestionStatus.SHORTLISTED,
        )

    @pytest.mark.asyncio
    async def test_handler_uses_transition_id(self, notifier_setup) -> None:
        notifier, delivery = notifier_setup
        event = self._event()

        await notifier.handle_suggestion_reviewed(event)

        assert delivery.correlation_ids == [str(event.event_id)]
        assert get_correlation_id() == ""

    @pytest.mark.asyncio
    async def test_handler_keeps_caller_correlation(self, notifier_setup) -> None:
        notifier, delivery = notifier_setup

        with correlation_scope("request-42"):
            await notifier.handle_suggestion_reviewed(self._event())

        assert delivery.correlation_ids == ["request-42"]
