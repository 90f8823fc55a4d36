"""Unit tests for RetryPolicy and error classification."""

from __future__ import annotations

import errno
import socket
from unittest.mock import AsyncMock

import pytest

from innovation_hub.application.services.retry_policy import (
    ErrorClass,
    RetryPolicy,
    classify_error,
    is_auth_error,
    is_network_error,
)
from innovation_hub.config.hub_config import RetryConfig
from innovation_hub.domain.errors import (
    AlreadyVotedError,
    DatastoreError,
    DatastoreErrorCode,
    InvalidSuggestionError,
    PermissionDeniedError,
    SuggestionNotFoundError,
    TransactionConflictError,
)
from innovation_hub.domain.events.notification import PermissionDeniedDiagnosticEvent


class _FlakyOperation:
    """Raises the given errors in order, then returns a value."""

    def __init__(self, errors: list[Exception], result: str = "ok") -> None:
        self._errors = list(errors)
        self._result = result
        self.calls = 0

    async def __call__(self) -> str:
        self.calls += 1
        if self._errors:
            raise self._errors.pop(0)
        return self._result


def _unavailable() -> DatastoreError:
    return DatastoreError(DatastoreErrorCode.UNAVAILABLE, "backend unavailable")


class TestClassifyError:
    @pytest.mark.parametrize(
        "code",
        ["unavailable", "deadline-exceeded", "aborted", "network"],
    )
    def test_transient_codes_are_retryable(self, code: str) -> None:
        assert classify_error(DatastoreError(code)) is ErrorClass.RETRYABLE

    @pytest.mark.parametrize(
        "code",
        [
            "permission-denied",
            "invalid-argument",
            "already-exists",
            "not-found",
            "unauthenticated",
            "auth/user-disabled",
        ],
    )
    def test_permanent_codes_are_not_retryable(self, code: str) -> None:
        assert classify_error(DatastoreError(code)) is ErrorClass.NON_RETRYABLE

    def test_transaction_conflict_is_retryable(self) -> None:
        assert classify_error(TransactionConflictError(5)) is ErrorClass.RETRYABLE

    def test_precondition_errors_are_not_retryable(self) -> None:
        assert classify_error(AlreadyVotedError("v1", "s1")) is ErrorClass.NON_RETRYABLE
        assert classify_error(SuggestionNotFoundError("s1")) is ErrorClass.NON_RETRYABLE

    def test_precondition_error_mentioning_network_is_not_retryable(self) -> None:
        error = InvalidSuggestionError("title", "Network names are not allowed")
        assert classify_error(error) is ErrorClass.NON_RETRYABLE

    def test_message_mentioning_network_is_retryable(self) -> None:
        assert classify_error(ConnectionError("Network request failed")) is ErrorClass.RETRYABLE
        assert classify_error(RuntimeError("client is OFFLINE")) is ErrorClass.RETRYABLE

    @pytest.mark.parametrize(
        "error",
        [
            ConnectionResetError("Connection reset by peer"),
            ConnectionRefusedError("[Errno 111] Connect call failed"),
            TimeoutError(),
            socket.gaierror(-2, "Name or service not known"),
            OSError(errno.ENETUNREACH, "Network is unreachable"),
            OSError(errno.EHOSTUNREACH, "No route to host"),
            OSError("Connection refused"),
        ],
        ids=lambda error: type(error).__name__,
    )
    def test_socket_failures_are_retryable(self, error: Exception) -> None:
        assert is_network_error(error)
        assert classify_error(error) is ErrorClass.RETRYABLE

    def test_local_os_errors_are_not_retryable(self) -> None:
        error = FileNotFoundError(errno.ENOENT, "No such file", "hub.db")
        assert classify_error(error) is ErrorClass.NON_RETRYABLE

    def test_unknown_errors_are_not_retryable(self) -> None:
        assert classify_error(ValueError("boom")) is ErrorClass.NON_RETRYABLE
        assert classify_error(DatastoreError("unknown")) is ErrorClass.NON_RETRYABLE

    def test_is_network_error_by_code(self) -> None:
        assert is_network_error(DatastoreError("deadline-exceeded"))
        assert not is_network_error(DatastoreError("permission-denied"))

    def test_is_auth_error(self) -> None:
        assert is_auth_error(DatastoreError("auth/wrong-password"))
        assert not is_auth_error(DatastoreError("unavailable"))


class TestRetryPolicyBackoff:
    def test_delays_double_from_initial_delay(self) -> None:
        policy = RetryPolicy(RetryConfig(max_retries=3, initial_delay_seconds=1.0))
        assert [policy.delay_for(attempt) for attempt in range(3)] == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_success_needs_no_retry(self, recording_sleep) -> None:
        policy = RetryPolicy(sleep=recording_sleep)
        operation = _FlakyOperation([])

        assert await policy.run("cast_vote", operation) == "ok"
        assert operation.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_transient_failures_then_success(self, recording_sleep) -> None:
        policy = RetryPolicy(sleep=recording_sleep)
        operation = _FlakyOperation([_unavailable(), _unavailable()])

        assert await policy.run("cast_vote", operation) == "ok"
        assert operation.calls == 3
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_persistent_unavailable_sleeps_1_2_4_then_raises(
        self, recording_sleep
    ) -> None:
        policy = RetryPolicy(sleep=recording_sleep)
        errors = [_unavailable() for _ in range(4)]
        last = errors[-1]
        operation = _FlakyOperation(errors)

        with pytest.raises(DatastoreError) as exc_info:
            await policy.run("cast_vote", operation)

        assert exc_info.value is last
        assert operation.calls == 4
        assert recording_sleep.delays == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_connection_reset_is_retried(self, recording_sleep) -> None:
        policy = RetryPolicy(sleep=recording_sleep)
        operation = _FlakyOperation([ConnectionResetError("Connection reset by peer")])

        assert await policy.run("cast_vote", operation) == "ok"
        assert operation.calls == 2
        assert recording_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_non_retryable_propagates_without_delay(self, recording_sleep) -> None:
        policy = RetryPolicy(sleep=recording_sleep)
        operation = _FlakyOperation([AlreadyVotedError("v1", "s1")])

        with pytest.raises(AlreadyVotedError):
            await policy.run("cast_vote", operation)

        assert operation.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_zero_retries_runs_once(self, recording_sleep) -> None:
        policy = RetryPolicy(RetryConfig(max_retries=0), sleep=recording_sleep)
        operation = _FlakyOperation([_unavailable()])

        with pytest.raises(DatastoreError):
            await policy.run("cast_vote", operation)

        assert operation.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retries_are_recorded_in_metrics(self, recording_sleep, metrics) -> None:
        policy = RetryPolicy(metrics=metrics, sleep=recording_sleep)
        operation = _FlakyOperation([_unavailable()])

        await policy.run("cast_vote", operation)

        value = metrics.registry.get_sample_value(
            "hub_datastore_retries_total",
            {"operation": "cast_vote", "code": "unavailable"},
        )
        assert value == 1.0


class TestPermissionDenied:
    @pytest.mark.asyncio
    async def test_permission_denied_is_never_retried(self, recording_sleep) -> None:
        bus = AsyncMock()
        policy = RetryPolicy(event_bus=bus, sleep=recording_sleep)
        error = PermissionDeniedError(
            path="votes/v1_s1", operation="create", payload={"voterUid": "v1"}
        )
        operation = _FlakyOperation([error])

        with pytest.raises(PermissionDeniedError):
            await policy.run("cast_vote", operation)

        assert operation.calls == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_permission_denied_publishes_diagnostic(self, recording_sleep) -> None:
        bus = AsyncMock()
        policy = RetryPolicy(event_bus=bus, sleep=recording_sleep)
        error = PermissionDeniedError(
            path="votes/v1_s1", operation="create", payload={"voterUid": "v1"}
        )

        with pytest.raises(PermissionDeniedError):
            await policy.run("cast_vote", _FlakyOperation([error]))

        bus.publish.assert_awaited_once()
        event = bus.publish.await_args.args[0]
        assert isinstance(event, PermissionDeniedDiagnosticEvent)
        assert event.operation == "cast_vote"
        assert event.path == "votes/v1_s1"
        assert event.store_operation == "create"
        assert event.payload == {"voterUid": "v1"}

    @pytest.mark.asyncio
    async def test_permission_denied_is_counted(self, recording_sleep, metrics) -> None:
        policy = RetryPolicy(metrics=metrics, sleep=recording_sleep)
        error = PermissionDeniedError(path="votes/v1_s1", operation="create")

        with pytest.raises(PermissionDeniedError):
            await policy.run("cast_vote", _FlakyOperation([error]))

        value = metrics.registry.get_sample_value(
            "hub_permission_denied_total", {"operation": "cast_vote"}
        )
        assert value == 1.0
