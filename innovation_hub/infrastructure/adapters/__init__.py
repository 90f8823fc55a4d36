"""Infrastructure adapters for the Innovation Hub.

Adapters implement the ports defined in the application layer,
providing concrete implementations for external services.
"""

from innovation_hub.infrastructure.adapters.document_user_profile_lookup import (
    DocumentUserProfileLookup,
)
from innovation_hub.infrastructure.adapters.in_process_event_bus import (
    FailedDelivery,
    InProcessEventBus,
)
from innovation_hub.infrastructure.adapters.logging_notification_delivery import (
    LoggingNotificationDelivery,
)
from innovation_hub.infrastructure.adapters.sql_document_store import (
    SqlDocumentStore,
)

__all__: list[str] = [
    "DocumentUserProfileLookup",
    "FailedDelivery",
    "InProcessEventBus",
    "LoggingNotificationDelivery",
    "SqlDocumentStore",
]
