"""Stub implementations of application ports for testing and development."""

from innovation_hub.infrastructure.stubs.in_memory_document_store import (
    InMemoryDocumentStore,
    InMemoryTransaction,
)
from innovation_hub.infrastructure.stubs.notification_delivery_stub import (
    NotificationDeliveryStub,
    SentMessage,
)
from innovation_hub.infrastructure.stubs.user_profile_lookup_stub import (
    UserProfileLookupStub,
)

__all__ = [
    "InMemoryDocumentStore",
    "InMemoryTransaction",
    "NotificationDeliveryStub",
    "SentMessage",
    "UserProfileLookupStub",
]
