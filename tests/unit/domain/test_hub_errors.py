"""Unit tests for Innovation Hub domain errors."""

from __future__ import annotations

import pytest

from innovation_hub.domain.errors import (
    AlreadyVotedError,
    CommentNotFoundError,
    DatastoreError,
    DatastoreErrorCode,
    InvalidSuggestionError,
    PermissionDeniedError,
    SuggestionNotFoundError,
    TransactionConflictError,
    VoteError,
)
from innovation_hub.domain.exceptions import InnovationHubError


@pytest.mark.parametrize(
    "error",
    [
        AlreadyVotedError("v1", "s1"),
        SuggestionNotFoundError("s1"),
        CommentNotFoundError("s1", "c1"),
        DatastoreError(DatastoreErrorCode.UNAVAILABLE),
    ],
)
def test_all_errors_are_hub_errors(error: Exception) -> None:
    assert isinstance(error, InnovationHubError)


def test_already_voted_is_a_vote_error() -> None:
    error = AlreadyVotedError("v1", "s1")

    assert isinstance(error, VoteError)
    assert error.voter_uid == "v1"
    assert error.voted_at is None
    assert "v1" in str(error)


def test_suggestion_not_found_message() -> None:
    assert str(SuggestionNotFoundError("s1")) == "Suggestion not found: s1"


def test_invalid_suggestion_message() -> None:
    error = InvalidSuggestionError("title", "too short")

    assert str(error) == "Invalid title: too short"
    assert error.field == "title"


def test_datastore_error_normalises_enum_code() -> None:
    error = DatastoreError(DatastoreErrorCode.DEADLINE_EXCEEDED)

    assert error.code == "deadline-exceeded"
    assert str(error) == "Datastore error: deadline-exceeded"


def test_permission_denied_carries_context() -> None:
    error = PermissionDeniedError("votes/v1_s1", "create", {"voterUid": "v1"})

    assert error.code == "permission-denied"
    assert error.path == "votes/v1_s1"
    assert error.operation == "create"
    assert error.payload == {"voterUid": "v1"}


def test_transaction_conflict() -> None:
    error = TransactionConflictError(5, path="suggestions/s1")

    assert error.code == "aborted"
    assert error.attempts == 5
    assert "5" in str(error)
