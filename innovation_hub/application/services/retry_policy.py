"""Retry and error classification for datastore mutations.

Every mutation the hub performs (cast/retract vote, post/delete comment,
submit/review suggestion, counter reactions, notification claims) runs
through RetryPolicy.run(). Errors are split in two:

Retryable (transient infrastructure):
- unavailable, deadline-exceeded, network
- aborted: the store gave up on a contended transaction
- ConnectionError, TimeoutError, DNS failures and socket OSErrors
- any error whose message mentions a network failure ("network",
  "offline", "connection refused", ...)

Non-retryable (propagate at once, no delay):
- permission-denied: also published as a diagnostic event
- invalid-argument, already-exists, not-found, unauthenticated, auth/*
- every domain precondition error (AlreadyVotedError, ...)
- anything unrecognised

Retryable errors are retried with exponential backoff:
    delay = initial_delay * 2 ** attempt     (attempt = 0, 1, 2, ...)
With the defaults (3 retries, 1s) that is 1s, 2s, 4s, after which the
last error itself propagates.

Usage:
    policy = RetryPolicy(RetryConfig(), event_bus=bus)
    result = await policy.run("cast_vote", lambda: store.run_transaction(fn))
"""

from __future__ import annotations

import asyncio
import errno
import socket
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

from structlog import get_logger

from innovation_hub.config.hub_config import RetryConfig
from innovation_hub.domain.errors.datastore import (
    AUTH_ERROR_PREFIX,
    DatastoreError,
    DatastoreErrorCode,
)
from innovation_hub.domain.events.notification import PermissionDeniedDiagnosticEvent
from innovation_hub.domain.exceptions import InnovationHubError

if TYPE_CHECKING:
    from innovation_hub.application.ports.event_bus import EventBusProtocol
    from innovation_hub.application.ports.hub_metrics import HubMetricsProtocol

logger = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_CODES = frozenset(
    {
        DatastoreErrorCode.UNAVAILABLE.value,
        DatastoreErrorCode.DEADLINE_EXCEEDED.value,
        DatastoreErrorCode.ABORTED.value,
        DatastoreErrorCode.NETWORK.value,
    }
)

NON_RETRYABLE_CODES = frozenset(
    {
        DatastoreErrorCode.PERMISSION_DENIED.value,
        DatastoreErrorCode.INVALID_ARGUMENT.value,
        DatastoreErrorCode.ALREADY_EXISTS.value,
        DatastoreErrorCode.NOT_FOUND.value,
        DatastoreErrorCode.UNAUTHENTICATED.value,
    }
)

NETWORK_MESSAGE_MARKERS = (
    "network",
    "offline",
    "connection refused",
    "connection reset",
    "connection aborted",
    "timed out",
)

# OSError errnos raised by sockets when a peer or route is unreachable
NETWORK_ERRNOS = frozenset(
    {
        errno.ECONNREFUSED,
        errno.ECONNRESET,
        errno.ECONNABORTED,
        errno.ETIMEDOUT,
        errno.EHOSTUNREACH,
        errno.ENETUNREACH,
        errno.ENETDOWN,
        errno.EPIPE,
    }
)


class ErrorClass(str, Enum):
    """Retry classification of an error."""

    RETRYABLE = "retryable"
    NON_RETRYABLE = "non_retryable"


def error_code(error: BaseException) -> str | None:
    """Return the machine-readable code of an error, if it carries one."""
    code = getattr(error, "code", None)
    if isinstance(code, Enum):
        code = code.value
    return code if isinstance(code, str) else None


def is_permission_denied(error: BaseException) -> bool:
    return error_code(error) == DatastoreErrorCode.PERMISSION_DENIED.value


def is_auth_error(error: BaseException) -> bool:
    code = error_code(error)
    return code is not None and code.startswith(AUTH_ERROR_PREFIX)


def is_network_error(error: BaseException) -> bool:
    """Check if an error looks like a transient connectivity failure."""
    if error_code(error) in (
        DatastoreErrorCode.UNAVAILABLE.value,
        DatastoreErrorCode.DEADLINE_EXCEEDED.value,
        DatastoreErrorCode.NETWORK.value,
    ):
        return True
    if isinstance(error, (ConnectionError, TimeoutError, socket.gaierror)):
        return True
    if isinstance(error, OSError) and error.errno in NETWORK_ERRNOS:
        return True
    message = str(error).lower()
    return any(marker in message for marker in NETWORK_MESSAGE_MARKERS)


def classify_error(error: BaseException) -> ErrorClass:
    """Decide whether another attempt could succeed.

    Args:
        error: The exception raised by the wrapped operation.

    Returns:
        ErrorClass.RETRYABLE only for transient infrastructure failures.
    """
    # Precondition violations stay false on every attempt
    if isinstance(error, InnovationHubError) and not isinstance(
        error, DatastoreError
    ):
        return ErrorClass.NON_RETRYABLE

    code = error_code(error)
    if code is not None:
        if code in NON_RETRYABLE_CODES or code.startswith(AUTH_ERROR_PREFIX):
            return ErrorClass.NON_RETRYABLE
        if code in RETRYABLE_CODES:
            return ErrorClass.RETRYABLE

    if is_network_error(error):
        return ErrorClass.RETRYABLE
    return ErrorClass.NON_RETRYABLE


class RetryPolicy:
    """Runs datastore operations with classification and backoff.

    Attributes:
        config: Retry budget and base delay.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        event_bus: EventBusProtocol | None = None,
        metrics: HubMetricsProtocol | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the retry policy.

        Args:
            config: Retry settings (defaults: 3 retries, 1s base delay).
            event_bus: Bus for permission-denied diagnostics (optional).
            metrics: Metrics recorder (optional).
            sleep: Awaitable sleep, injectable so tests never wait.
        """
        self.config = config or RetryConfig()
        self._event_bus = event_bus
        self._metrics = metrics
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff before retry number attempt + 1 (attempt is 0-based)."""
        return self.config.initial_delay_seconds * (2**attempt)

    async def run(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        """Run fn, retrying transient failures with exponential backoff.

        Args:
            operation: Logical operation name, used in logs and metrics.
            fn: Zero-argument coroutine factory; called once per attempt.

        Returns:
            The result of the first successful attempt.

        Raises:
            Exception: The first non-retryable error, or the last retryable
                error once the retry budget is spent.
        """
        log = logger.bind(operation=operation)
        attempt = 0

        while True:
            try:
                return await fn()
            except Exception as error:
                if is_permission_denied(error):
                    await self._report_permission_denied(operation, error)
                    raise

                if classify_error(error) is ErrorClass.NON_RETRYABLE:
                    log.debug(
                        "operation_failed_non_retryable",
                        error_type=type(error).__name__,
                        code=error_code(error),
                        attempt=attempt + 1,
                    )
                    raise

                if attempt >= self.config.max_retries:
                    log.warning(
                        "retry_budget_exhausted",
                        error_type=type(error).__name__,
                        code=error_code(error),
                        attempts=attempt + 1,
                    )
                    raise

                delay = self.delay_for(attempt)
                log.info(
                    "retrying_operation",
                    error_type=type(error).__name__,
                    code=error_code(error),
                    retry=attempt + 1,
                    max_retries=self.config.max_retries,
                    delay_seconds=delay,
                )
                if self._metrics is not None:
                    self._metrics.record_retry(
                        operation, error_code(error) or "network"
                    )
                await self._sleep(delay)
                attempt += 1

    async def _report_permission_denied(
        self, operation: str, error: Exception
    ) -> None:
        """Log and publish a permission-denied diagnostic."""
        path = getattr(error, "path", None)
        store_operation = getattr(error, "operation", None)
        payload = getattr(error, "payload", None)

        logger.warning(
            "permission_denied",
            operation=operation,
            path=path,
            store_operation=store_operation,
            payload=payload,
            message=str(error),
        )
        if self._metrics is not None:
            self._metrics.record_permission_denied(operation)
        if self._event_bus is not None:
            await self._event_bus.publish(
                PermissionDeniedDiagnosticEvent(
                    operation=operation,
                    path=path,
                    store_operation=store_operation,
                    payload=payload,
                    message=str(error),
                )
            )
