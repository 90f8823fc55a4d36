"""Composition root for the Innovation Hub core.

Wires the document store, event bus, retry policy, services and event
subscriptions into one InnovationHub container.

Store selection:
- An explicit `store` argument always wins
- Otherwise SqlDocumentStore when a database URL is configured
- Otherwise InMemoryDocumentStore (development and tests)

Usage:
    from innovation_hub.bootstrap import build_hub

    hub = build_hub()
    await hub.votes.cast_vote("v1", "s1")

    # SQL store: create the schema before first use
    hub = await build_hub_with_database(config)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from dotenv import load_dotenv
from structlog import get_logger

from innovation_hub.application.ports.document_store import DocumentStoreProtocol
from innovation_hub.application.ports.notification_delivery import (
    NotificationDeliveryProtocol,
)
from innovation_hub.application.ports.user_profile import UserProfileLookupProtocol
from innovation_hub.application.services.comment_service import CommentService
from innovation_hub.application.services.counter_maintainer_service import (
    CounterMaintainerService,
)
from innovation_hub.application.services.counter_verification_service import (
    CounterVerificationService,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.application.services.status_change_notifier_service import (
    StatusChangeNotifierService,
)
from innovation_hub.application.services.suggestion_service import SuggestionService
from innovation_hub.application.services.vote_ledger_service import VoteLedgerService
from innovation_hub.bootstrap.database import get_session_factory
from innovation_hub.bootstrap.logging import configure_structlog
from innovation_hub.config.hub_config import HubConfig
from innovation_hub.infrastructure.adapters.document_user_profile_lookup import (
    DocumentUserProfileLookup,
)
from innovation_hub.infrastructure.adapters.in_process_event_bus import (
    InProcessEventBus,
)
from innovation_hub.infrastructure.adapters.logging_notification_delivery import (
    LoggingNotificationDelivery,
)
from innovation_hub.infrastructure.adapters.sql_document_store import SqlDocumentStore
from innovation_hub.infrastructure.monitoring.hub_metrics import (
    HubMetricsCollector,
    get_hub_metrics,
)
from innovation_hub.infrastructure.stubs.in_memory_document_store import (
    InMemoryDocumentStore,
)

logger = get_logger(__name__)


@dataclass
class InnovationHub:
    """Every wired component of the hub core."""

    config: HubConfig
    store: DocumentStoreProtocol
    event_bus: InProcessEventBus
    retry_policy: RetryPolicy
    counters: CounterMaintainerService
    votes: VoteLedgerService
    suggestions: SuggestionService
    comments: CommentService
    notifier: StatusChangeNotifierService
    verification: CounterVerificationService
    metrics: HubMetricsCollector


def _create_store(config: HubConfig) -> DocumentStoreProtocol:
    max_attempts = config.store.transaction_max_attempts
    if config.store.database_url:
        return SqlDocumentStore(
            get_session_factory(config.store.database_url),
            max_attempts=max_attempts,
        )
    return InMemoryDocumentStore(max_attempts=max_attempts)


def build_hub(
    config: HubConfig | None = None,
    store: DocumentStoreProtocol | None = None,
    profiles: UserProfileLookupProtocol | None = None,
    delivery: NotificationDeliveryProtocol | None = None,
    metrics: HubMetricsCollector | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> InnovationHub:
    """Build a fully wired hub.

    Args:
        config: Hub configuration; read from the environment (and .env)
            when omitted.
        store: Document store override.
        profiles: Profile lookup override (default: users collection).
        delivery: Delivery override (default: log only).
        metrics: Metrics collector override (default: process singleton).
        sleep: Backoff sleep for the retry policy.

    Returns:
        InnovationHub with counter and notifier handlers subscribed.
    """
    if config is None:
        load_dotenv()
        config = HubConfig.from_environment()

    configure_structlog(config.environment)

    store = store or _create_store(config)
    metrics = metrics or get_hub_metrics()
    event_bus = InProcessEventBus(background=config.background_dispatch)
    retry_policy = RetryPolicy(
        config=config.retry,
        event_bus=event_bus,
        metrics=metrics,
        sleep=sleep,
    )

    counters = CounterMaintainerService(store, retry_policy=retry_policy, metrics=metrics)
    votes = VoteLedgerService(
        store,
        counters,
        event_bus=event_bus,
        retry_policy=retry_policy,
        metrics=metrics,
        counter_strategy=config.counter_strategy,
    )
    suggestions = SuggestionService(store, event_bus=event_bus, retry_policy=retry_policy)
    comments = CommentService(
        store,
        counters,
        event_bus=event_bus,
        retry_policy=retry_policy,
        counter_strategy=config.counter_strategy,
    )
    notifier = StatusChangeNotifierService(
        store,
        profiles or DocumentUserProfileLookup(store),
        delivery or LoggingNotificationDelivery(),
        config=config.notifications,
        event_bus=event_bus,
        retry_policy=retry_policy,
        metrics=metrics,
    )
    verification = CounterVerificationService(
        store, retry_policy=retry_policy, metrics=metrics, event_bus=event_bus
    )

    counters.register(event_bus)
    notifier.register(event_bus)

    logger.info(
        "innovation_hub_built",
        environment=config.environment,
        store=type(store).__name__,
        counter_strategy=config.counter_strategy.value,
        background_dispatch=config.background_dispatch,
    )

    return InnovationHub(
        config=config,
        store=store,
        event_bus=event_bus,
        retry_policy=retry_policy,
        counters=counters,
        votes=votes,
        suggestions=suggestions,
        comments=comments,
        notifier=notifier,
        verification=verification,
        metrics=metrics,
    )


async def build_hub_with_database(
    config: HubConfig | None = None,
    **overrides: Any,
) -> InnovationHub:
    """Build a hub and create the SQL schema when the store is SQL-backed."""
    hub = build_hub(config, **overrides)
    if isinstance(hub.store, SqlDocumentStore):
        await hub.store.create_schema()
    return hub
