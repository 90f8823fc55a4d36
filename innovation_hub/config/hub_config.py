"""Innovation Hub configuration.

This module defines configuration for the retry layer, the document store
transaction budget, the counter strategy and status-change messages, with
environment variable overrides for deployment tuning.

Environment Variables (Retry):
- HUB_RETRY_MAX_RETRIES: Retries beyond the first attempt (default: 3)
- HUB_RETRY_INITIAL_DELAY_SECONDS: Backoff base delay in seconds (default: 1.0)

Environment Variables (Store):
- HUB_TRANSACTION_MAX_ATTEMPTS: Conflict re-runs per transaction (default: 5)
- DATABASE_URL: SQL database URL; unset means the in-memory store

Environment Variables (Counters):
- HUB_COUNTER_STRATEGY: "inline" or "reactive" (default: inline)

Environment Variables (Events):
- HUB_BACKGROUND_DISPATCH: Run event handlers off the caller's task
  ("1", "true" or "yes"; default: off)

Environment Variables (Notifications):
- HUB_SITE_NAME: Sign-off used in messages
  (default: SEES UNILAG Innovation Hub)
- HUB_SUGGESTION_URL_TEMPLATE: Link to a suggestion, with a
  {suggestion_id} placeholder (default: /suggestions/{suggestion_id})
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum


def _get_int_env(key: str, default: int) -> int:
    """Get integer environment variable with default.

    Args:
        key: Environment variable name.
        default: Default value if not set or invalid.

    Returns:
        Parsed integer value or default.
    """
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: float) -> float:
    value = os.environ.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_bool_env(key: str, default: bool) -> bool:
    value = os.environ.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes")


class CounterStrategy(str, Enum):
    """Where denormalised counters are maintained.

    INLINE: in the same transaction as the ledger/comment write.
    REACTIVE: by the counter maintainer, from the published event.
    """

    INLINE = "inline"
    REACTIVE = "reactive"

    @classmethod
    def parse(cls, value: str | None, default: CounterStrategy) -> CounterStrategy:
        if not value:
            return default
        try:
            return cls(value.strip().lower())
        except ValueError:
            return default


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for the retry and backoff layer.

    Attributes:
        max_retries: Retries beyond the first attempt. Default: 3.
        initial_delay_seconds: Delay before the first retry; each later
            retry doubles it. Default: 1.0 (so 1s, 2s, 4s).
    """

    max_retries: int = 3
    initial_delay_seconds: float = 1.0

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.max_retries < 0:
            raise ValueError(
                f"max_retries must be non-negative, got {self.max_retries}"
            )
        if self.initial_delay_seconds < 0:
            raise ValueError(
                "initial_delay_seconds must be non-negative, "
                f"got {self.initial_delay_seconds}"
            )

    @classmethod
    def from_environment(cls) -> "RetryConfig":
        """Create config from environment variables with defaults.

        Environment Variables:
            HUB_RETRY_MAX_RETRIES: Retries beyond the first (default: 3)
            HUB_RETRY_INITIAL_DELAY_SECONDS: Base delay (default: 1.0)

        Returns:
            RetryConfig with values from environment or defaults.
        """
        return cls(
            max_retries=_get_int_env("HUB_RETRY_MAX_RETRIES", 3),
            initial_delay_seconds=_get_float_env(
                "HUB_RETRY_INITIAL_DELAY_SECONDS", 1.0
            ),
        )


@dataclass(frozen=True)
class StoreConfig:
    """Configuration for the document store.

    Attributes:
        transaction_max_attempts: How many times a conflicting transaction
            function runs before TransactionConflictError. Default: 5.
        database_url: SQL database URL, None for the in-memory store.
    """

    transaction_max_attempts: int = 5
    database_url: str | None = None

    def __post_init__(self) -> None:
        if self.transaction_max_attempts < 1:
            raise ValueError(
                "transaction_max_attempts must be at least 1, "
                f"got {self.transaction_max_attempts}"
            )

    @classmethod
    def from_environment(cls) -> "StoreConfig":
        return cls(
            transaction_max_attempts=_get_int_env("HUB_TRANSACTION_MAX_ATTEMPTS", 5),
            database_url=os.environ.get("DATABASE_URL") or None,
        )


@dataclass(frozen=True)
class NotificationConfig:
    """Configuration for status-change messages.

    Attributes:
        site_name: Sign-off line of every message.
        suggestion_url_template: Link to the suggestion; must contain
            a {suggestion_id} placeholder.
    """

    site_name: str = "SEES UNILAG Innovation Hub"
    suggestion_url_template: str = "/suggestions/{suggestion_id}"

    def __post_init__(self) -> None:
        if not self.site_name.strip():
            raise ValueError("site_name must not be empty")
        if "{suggestion_id}" not in self.suggestion_url_template:
            raise ValueError(
                "suggestion_url_template must contain {suggestion_id}, "
                f"got {self.suggestion_url_template!r}"
            )

    def suggestion_url(self, suggestion_id: str) -> str:
        return self.suggestion_url_template.format(suggestion_id=suggestion_id)

    @classmethod
    def from_environment(cls) -> "NotificationConfig":
        defaults = cls()
        return cls(
            site_name=os.environ.get("HUB_SITE_NAME") or defaults.site_name,
            suggestion_url_template=os.environ.get("HUB_SUGGESTION_URL_TEMPLATE")
            or defaults.suggestion_url_template,
        )


@dataclass(frozen=True)
class HubConfig:
    """Top-level configuration consumed by build_hub().

    Attributes:
        retry: Retry and backoff settings.
        store: Document store settings.
        notifications: Status-change message settings.
        counter_strategy: Where counters are maintained.
        background_dispatch: Event handlers run on their own task, so
            callers return before reactions and notifications finish.
        environment: Deployment environment (development, production...).
    """

    retry: RetryConfig = field(default_factory=RetryConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    notifications: NotificationConfig = field(default_factory=NotificationConfig)
    counter_strategy: CounterStrategy = CounterStrategy.INLINE
    background_dispatch: bool = False
    environment: str = "development"

    @classmethod
    def from_environment(cls) -> "HubConfig":
        """Create the full config from environment variables.

        Returns:
            HubConfig with every section read from the environment.
        """
        return cls(
            retry=RetryConfig.from_environment(),
            store=StoreConfig.from_environment(),
            notifications=NotificationConfig.from_environment(),
            counter_strategy=CounterStrategy.parse(
                os.environ.get("HUB_COUNTER_STRATEGY"), CounterStrategy.INLINE
            ),
            background_dispatch=_get_bool_env("HUB_BACKGROUND_DISPATCH", False),
            environment=os.environ.get("ENVIRONMENT", "development"),
        )


# Pre-defined configurations

DEFAULT_HUB_CONFIG = HubConfig()

# No backoff sleeps, for unit tests
TEST_HUB_CONFIG = HubConfig(
    retry=RetryConfig(max_retries=3, initial_delay_seconds=0.0),
)
