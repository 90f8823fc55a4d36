"""Configuration module for the Innovation Hub.

Available Configurations:
- RetryConfig: Retry/backoff budget for datastore mutations
- StoreConfig: Transaction attempt budget and database URL
- NotificationConfig: Status-change message wording
- HubConfig: Everything build_hub() needs
"""

from innovation_hub.config.hub_config import (
    DEFAULT_HUB_CONFIG,
    TEST_HUB_CONFIG,
    CounterStrategy,
    HubConfig,
    NotificationConfig,
    RetryConfig,
    StoreConfig,
)

__all__ = [
    "CounterStrategy",
    "DEFAULT_HUB_CONFIG",
    "HubConfig",
    "NotificationConfig",
    "RetryConfig",
    "StoreConfig",
    "TEST_HUB_CONFIG",
]
