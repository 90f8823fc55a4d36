"""Correlation ID management for hub operations.

A correlation ID ties together every log entry produced by one caller
request: the vote transaction, its retries, the published event and the
handlers it fans out to. The ID lives in a contextvar, so it follows the
request across awaits.

Usage:
    with correlation_scope(request_id):
        await hub.votes.cast_vote(uid, suggestion_id)

    # In structlog configuration
    processors = [..., correlation_id_processor, ...]
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from uuid6 import uuid7

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def generate_correlation_id() -> str:
    """Generate a new, time-ordered correlation ID (UUIDv7)."""
    return str(uuid7())


def get_correlation_id() -> str:
    """Get the current correlation ID, or "" outside any scope."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: The correlation ID to set.
    """
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Run a block under a correlation ID, restoring the previous one after.

    Args:
        correlation_id: ID to use; a new one is generated when omitted.

    Yields:
        The correlation ID in effect inside the block.
    """
    value = correlation_id or generate_correlation_id()
    token = _correlation_id.set(value)
    try:
        yield value
    finally:
        _correlation_id.reset(token)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor adding correlation_id to every log entry.

    Args:
        logger: The logger instance (unused, required by structlog).
        method_name: The logging method name (unused, required by structlog).
        event_dict: The event dictionary to modify.

    Returns:
        The event dictionary with correlation_id added when one is set.
    """
    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    return event_dict
