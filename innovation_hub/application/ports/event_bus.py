"""Event bus port.

Services publish domain events after their transaction commits. Handlers
subscribe by event class (VoteCastEvent, SuggestionReviewedEvent, ...).
Delivery is at-least-once: a handler may see the same event more than
once and must dedup on event_id.

A failing handler never fails the publisher. Implementations record the
failure so it can be redelivered later.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

EventHandler = Callable[[Any], Awaitable[None]]


class EventBusProtocol(Protocol):
    """Protocol for publishing and subscribing to domain events."""

    @abstractmethod
    def subscribe(self, event_class: type, handler: EventHandler) -> None:
        """Register a handler for an event class.

        Args:
            event_class: Domain event class, e.g. VoteCastEvent.
            handler: Async callable receiving the event object.
        """
        ...

    @abstractmethod
    async def publish(self, event: Any) -> None:
        """Deliver an event to every handler subscribed to its class.

        Handler failures are isolated and never raised to the caller.

        Args:
            event: Domain event instance.
        """
        ...

    @abstractmethod
    def pending_events(self) -> list[Any]:
        """Events whose handlers are still running or have failed.

        Every pending event was published after its write committed, so
        its write is already visible to any later read.

        Returns:
            Distinct pending events, oldest first.
        """
        ...
