"""Timestamp value objects.

Vote, comment and submission times are either still pending (the store
assigns the instant when the write commits) or resolved to a concrete
timezone-aware instant. Modelling both cases explicitly lets ordering code
branch on the type instead of sniffing raw document values.

Usage:
    from innovation_hub.domain.models.timestamp import (
        SERVER_TIMESTAMP,
        ResolvedTimestamp,
        ordering_key,
    )

    vote_data = {"timestamp": SERVER_TIMESTAMP}  # store resolves at commit
    votes.sort(key=lambda vote: ordering_key(vote.timestamp))
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union


@dataclass(frozen=True)
class ServerTimestamp:
    """Placeholder for an instant the store assigns at commit time."""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


@dataclass(frozen=True, order=True)
class ResolvedTimestamp:
    """A concrete, timezone-aware instant.

    Attributes:
        instant: The resolved point in time (UTC recommended).
    """

    instant: datetime

    def __post_init__(self) -> None:
        if self.instant.tzinfo is None:
            raise ValueError("instant must be timezone-aware (UTC)")

    def isoformat(self) -> str:
        return self.instant.isoformat()


Timestamp = Union[ServerTimestamp, ResolvedTimestamp]

# Sentinel written into documents; stores replace it with the commit instant.
SERVER_TIMESTAMP = ServerTimestamp()

# Pending timestamps sort after every resolved instant.
_PENDING_SORT_INSTANT = datetime.max.replace(tzinfo=timezone.utc)


def to_timestamp(value: Any) -> Timestamp:
    """Convert a raw document value into a Timestamp.

    Accepts the server sentinel, an existing Timestamp, a datetime or an
    ISO 8601 string. Naive datetimes are taken to be UTC.

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp.
    """
    if isinstance(value, (ServerTimestamp, ResolvedTimestamp)):
        return value
    if value is None:
        return SERVER_TIMESTAMP
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return ResolvedTimestamp(value)
    raise ValueError(f"Cannot interpret {value!r} as a timestamp")


def to_document_value(timestamp: Timestamp) -> ServerTimestamp | datetime:
    """Convert a Timestamp into the value stored in a document."""
    if isinstance(timestamp, ResolvedTimestamp):
        return timestamp.instant
    return SERVER_TIMESTAMP


def ordering_key(timestamp: Timestamp) -> datetime:
    """Sort key for timestamps; pending values sort last."""
    if isinstance(timestamp, ResolvedTimestamp):
        return timestamp.instant
    return _PENDING_SORT_INSTANT


def is_resolved(timestamp: Timestamp) -> bool:
    return isinstance(timestamp, ResolvedTimestamp)


def resolve_server_timestamps(value: Any, now: datetime) -> Any:
    """Replace every SERVER_TIMESTAMP inside a document value with now.

    Walks nested dicts and lists; other values are returned unchanged.
    """
    if isinstance(value, ServerTimestamp):
        return now
    if isinstance(value, dict):
        return {key: resolve_server_timestamps(item, now) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_server_timestamps(item, now) for item in value]
    return value
