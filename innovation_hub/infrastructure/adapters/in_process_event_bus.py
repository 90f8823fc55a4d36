"""In-process event bus.

Handlers are keyed by event class and run in subscription order. A
handler that raises is logged and recorded as a FailedDelivery; the
publisher and the remaining handlers carry on.

Dispatch modes:
- inline (default): publish() awaits every handler on the publisher's
  task, so a review returns only after its notifications were attempted
- background: publish() schedules the handlers on a separate task and
  returns at once; drain() awaits everything scheduled so far

Recorded failures can be replayed with redeliver_failed(). Handlers dedup
on event_id, so replaying an event that partly succeeded is harmless.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from structlog import get_logger

from innovation_hub.application.ports.event_bus import EventBusProtocol, EventHandler

logger = get_logger(__name__)


@dataclass(frozen=True)
class FailedDelivery:
    """An event a handler failed to process.

    Attributes:
        event: The event object.
        handler: The handler that raised.
        error: The exception it raised.
    """

    event: Any
    handler: EventHandler
    error: Exception


def _handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__qualname__", repr(handler))


class InProcessEventBus(EventBusProtocol):
    """Event bus living in the current process."""

    def __init__(self, background: bool = False) -> None:
        """Initialize the bus.

        Args:
            background: Run handlers on their own task instead of the
                publisher's.
        """
        self._handlers: dict[type, list[EventHandler]] = defaultdict(list)
        self._failed: list[FailedDelivery] = []
        self._in_flight: list[Any] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._background = background
        self.published: list[Any] = []

    @property
    def background(self) -> bool:
        return self._background

    def subscribe(self, event_class: type, handler: EventHandler) -> None:
        self._handlers[event_class].append(handler)
        logger.debug(
            "event_handler_subscribed",
            event_class=event_class.__name__,
            handler=_handler_name(handler),
        )

    async def publish(self, event: Any) -> None:
        self.published.append(event)
        handlers = list(self._handlers.get(type(event), ()))
        if not handlers:
            return
        if not self._background:
            await self._run_handlers(event, handlers)
            return
        # Tracked before the task starts so pending_events() sees it at once
        self._in_flight.append(event)
        task = asyncio.create_task(self._run_handlers(event, handlers, tracked=True))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait until every handler scheduled so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    @property
    def failed_deliveries(self) -> list[FailedDelivery]:
        return list(self._failed)

    def pending_events(self) -> list[Any]:
        events: list[Any] = []
        seen: set[int] = set()
        for event in self._in_flight + [failure.event for failure in self._failed]:
            if id(event) not in seen:
                seen.add(id(event))
                events.append(event)
        return events

    async def redeliver_failed(self) -> int:
        """Replay every recorded failure once.

        Returns:
            How many deliveries succeeded this time.
        """
        pending, self._failed = self._failed, []
        succeeded = 0
        for failure in pending:
            self._in_flight.append(failure.event)
            try:
                if await self._dispatch(failure.event, failure.handler):
                    succeeded += 1
            finally:
                self._in_flight.remove(failure.event)
        logger.info(
            "failed_deliveries_replayed",
            replayed=len(pending),
            succeeded=succeeded,
            still_failing=len(self._failed),
        )
        return succeeded

    async def _run_handlers(
        self,
        event: Any,
        handlers: list[EventHandler],
        tracked: bool = False,
    ) -> None:
        if not tracked:
            self._in_flight.append(event)
        try:
            for handler in handlers:
                await self._dispatch(event, handler)
        finally:
            self._in_flight.remove(event)

    async def _dispatch(self, event: Any, handler: EventHandler) -> bool:
        try:
            await handler(event)
        except Exception as exc:
            logger.error(
                "event_handler_failed",
                event_type=getattr(event, "event_type", type(event).__name__),
                event_id=str(getattr(event, "event_id", "")),
                handler=_handler_name(handler),
                error=str(exc),
                error_type=type(exc).__name__,
            )
            self._failed.append(FailedDelivery(event=event, handler=handler, error=exc))
            return False
        return True
