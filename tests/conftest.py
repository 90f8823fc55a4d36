"""
Pytest configuration and shared fixtures for Innovation Hub tests.

Testing Standards:
- All async tests use pytest.mark.asyncio (auto mode enabled in pyproject.toml)
- Use AsyncMock for async function mocking
- Unit tests go in tests/unit/
- Integration tests go in tests/integration/
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from prometheus_client import CollectorRegistry

from innovation_hub.application.services.counter_maintainer_service import (
    CounterMaintainerService,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.config.hub_config import RetryConfig
from innovation_hub.domain.models.document_paths import (
    SUGGESTIONS_COLLECTION,
    USERS_COLLECTION,
)
from innovation_hub.domain.models.suggestion import (
    Suggestion,
    SuggestionCategory,
    SuggestionStatus,
)
from innovation_hub.infrastructure.adapters.in_process_event_bus import (
    InProcessEventBus,
)
from innovation_hub.infrastructure.monitoring.hub_metrics import HubMetricsCollector
from innovation_hub.infrastructure.stubs import (
    InMemoryDocumentStore,
    NotificationDeliveryStub,
    UserProfileLookupStub,
)

FIXED_INSTANT = datetime(2026, 3, 1, 9, 30, 0, tzinfo=timezone.utc)


class RecordingSleep:
    """Awaitable sleep that records requested delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeClock:
    """Controllable clock for SERVER_TIMESTAMP resolution."""

    def __init__(self, start: datetime = FIXED_INSTANT) -> None:
        self._now = start

    def __call__(self) -> datetime:
        return self._now

    def advance(self, seconds: float = 1.0) -> None:
        self._now += timedelta(seconds=seconds)


def make_suggestion(
    suggestion_id: str = "s1",
    author_uid: str = "a1",
    status: SuggestionStatus = SuggestionStatus.SUBMITTED,
    **overrides: Any,
) -> Suggestion:
    """Build a valid Suggestion for seeding stores."""
    values: dict[str, Any] = {
        "suggestion_id": suggestion_id,
        "title": "Better campus Wi-Fi coverage",
        "body": "The engineering block loses Wi-Fi on the upper floors every afternoon.",
        "author_uid": author_uid,
        "category": SuggestionCategory.INFRASTRUCTURE_IT,
        "author_display_name": "Ada",
        "status": status,
    }
    values.update(overrides)
    return Suggestion(**values)


def seed_suggestion(store: InMemoryDocumentStore, suggestion: Suggestion) -> None:
    store.seed(SUGGESTIONS_COLLECTION, suggestion.suggestion_id, suggestion.to_document())


def seed_user(
    store: InMemoryDocumentStore,
    uid: str,
    email: str,
    display_name: str | None = None,
) -> None:
    store.seed(USERS_COLLECTION, uid, {"email": email, "displayName": display_name})


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(fake_clock: FakeClock) -> InMemoryDocumentStore:
    """Fresh in-memory document store with a fixed commit clock."""
    return InMemoryDocumentStore(clock=fake_clock)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def metrics() -> HubMetricsCollector:
    """Metrics collector on a private registry."""
    return HubMetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def event_bus() -> InProcessEventBus:
    return InProcessEventBus()


@pytest.fixture
def retry_policy(
    recording_sleep: RecordingSleep,
    event_bus: InProcessEventBus,
    metrics: HubMetricsCollector,
) -> RetryPolicy:
    """Retry policy with default backoff that never actually sleeps."""
    return RetryPolicy(
        config=RetryConfig(),
        event_bus=event_bus,
        metrics=metrics,
        sleep=recording_sleep,
    )


@pytest.fixture
def counters(
    store: InMemoryDocumentStore,
    retry_policy: RetryPolicy,
    metrics: HubMetricsCollector,
) -> CounterMaintainerService:
    return CounterMaintainerService(store, retry_policy=retry_policy, metrics=metrics)


@pytest.fixture
def profiles() -> UserProfileLookupStub:
    return UserProfileLookupStub()


@pytest.fixture
def delivery() -> NotificationDeliveryStub:
    return NotificationDeliveryStub()
