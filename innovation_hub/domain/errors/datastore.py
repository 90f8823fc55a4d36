"""Datastore error taxonomy.

Every failure that comes out of a document store implementation is a
DatastoreError carrying a machine-readable code. The retry layer reads
the code to decide whether another attempt can succeed.

Codes mirror the document-database vocabulary:
- unavailable, deadline-exceeded, aborted, network: transient
- permission-denied, invalid-argument, already-exists, not-found,
  unauthenticated and any auth/* code: permanent
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from innovation_hub.domain.exceptions import InnovationHubError


class DatastoreErrorCode(str, Enum):
    """Known datastore error codes."""

    UNAVAILABLE = "unavailable"
    DEADLINE_EXCEEDED = "deadline-exceeded"
    ABORTED = "aborted"
    NETWORK = "network"
    PERMISSION_DENIED = "permission-denied"
    INVALID_ARGUMENT = "invalid-argument"
    ALREADY_EXISTS = "already-exists"
    NOT_FOUND = "not-found"
    UNAUTHENTICATED = "unauthenticated"
    UNKNOWN = "unknown"


# Prefix used by identity-provider failures (e.g. "auth/user-disabled")
AUTH_ERROR_PREFIX = "auth/"


class DatastoreError(InnovationHubError):
    """A failure reported by the document store.

    Attributes:
        code: Error code (a DatastoreErrorCode value or an auth/* string).
        path: Document path involved, if known.
        operation: Store operation that failed (get, create, update, ...).
        payload: The attempted write payload, if any.
    """

    def __init__(
        self,
        code: str,
        message: str = "",
        path: str | None = None,
        operation: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            code: Error code.
            message: Human-readable description.
            path: Document path involved, if known.
            operation: Store operation that failed.
            payload: The attempted write payload, if any.
        """
        self.code = code.value if isinstance(code, DatastoreErrorCode) else code
        self.path = path
        self.operation = operation
        self.payload = payload
        super().__init__(message or f"Datastore error: {self.code}")


class PermissionDeniedError(DatastoreError):
    """Raised when security rules reject a read or write.

    Permission failures usually point at a rules or configuration bug
    rather than a hostile caller, so the retry layer reports them as a
    diagnostic event before propagating.
    """

    def __init__(
        self,
        path: str,
        operation: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            DatastoreErrorCode.PERMISSION_DENIED,
            f"Missing or insufficient permissions for {operation} on {path}",
            path=path,
            operation=operation,
            payload=payload,
        )


class TransactionConflictError(DatastoreError):
    """Raised when a transaction kept losing write conflicts.

    The store re-runs a conflicting transaction itself; this error only
    surfaces once its own attempt budget is exhausted.

    Attributes:
        attempts: How many times the transaction body ran.
    """

    def __init__(self, attempts: int, path: str | None = None) -> None:
        self.attempts = attempts
        super().__init__(
            DatastoreErrorCode.ABORTED,
            f"Transaction aborted after {attempts} conflicting attempts",
            path=path,
            operation="commit",
        )
