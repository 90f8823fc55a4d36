"""Hub metrics port definition.

Lets application services record operational metrics without importing
the Prometheus implementation from infrastructure.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Protocol


class HubMetricsProtocol(Protocol):
    """Interface for recording vote, retry and notification metrics."""

    @abstractmethod
    def record_vote_cast(self) -> None:
        """Record a committed vote."""
        ...

    @abstractmethod
    def record_vote_rejected(self, reason: str) -> None:
        """Record a rejected vote attempt.

        Args:
            reason: Why it was rejected (already_voted, not_found, ...).
        """
        ...

    @abstractmethod
    def record_vote_retracted(self) -> None:
        """Record a committed vote retraction."""
        ...

    @abstractmethod
    def record_retry(self, operation: str, code: str) -> None:
        """Record one retry of a datastore operation.

        Args:
            operation: Logical hub operation (cast_vote, post_comment, ...).
            code: Error code of the transient failure being retried.
        """
        ...

    @abstractmethod
    def record_permission_denied(self, operation: str) -> None:
        """Record a permission-denied failure."""
        ...

    @abstractmethod
    def record_notification(self, outcome: str) -> None:
        """Record one notification delivery attempt.

        Args:
            outcome: "delivered" or "failed".
        """
        ...

    @abstractmethod
    def record_counter_drift(self, field_name: str) -> None:
        """Record a denormalised counter found out of step with its collection."""
        ...
