"""Application ports (hexagonal architecture interfaces)."""

from innovation_hub.application.ports.document_store import (
    DocumentSnapshot,
    DocumentStoreProtocol,
    TransactionFunction,
    TransactionProtocol,
)
from innovation_hub.application.ports.event_bus import EventBusProtocol, EventHandler
from innovation_hub.application.ports.hub_metrics import HubMetricsProtocol
from innovation_hub.application.ports.notification_delivery import (
    NotificationDeliveryProtocol,
)
from innovation_hub.application.ports.user_profile import (
    UserProfile,
    UserProfileLookupProtocol,
)

__all__: list[str] = [
    "DocumentSnapshot",
    "DocumentStoreProtocol",
    "EventBusProtocol",
    "EventHandler",
    "HubMetricsProtocol",
    "NotificationDeliveryProtocol",
    "TransactionFunction",
    "TransactionProtocol",
    "UserProfile",
    "UserProfileLookupProtocol",
]
