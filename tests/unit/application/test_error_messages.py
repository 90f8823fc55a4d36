"""Unit tests for user-facing error messages."""

from __future__ import annotations

import pytest

from innovation_hub.application.services.error_messages import (
    DEFAULT_ERROR_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    user_message_for,
)
from innovation_hub.domain.errors import (
    AlreadyVotedError,
    CommentOwnershipError,
    DatastoreError,
    InvalidSuggestionError,
    PermissionDeniedError,
    SuggestionNotFoundError,
    TransactionConflictError,
    VoteNotFoundError,
)


class TestUserMessageFor:
    def test_already_voted(self) -> None:
        assert (
            user_message_for(AlreadyVotedError("v1", "s1"))
            == "You have already upvoted this suggestion"
        )

    def test_vote_not_found(self) -> None:
        assert (
            user_message_for(VoteNotFoundError("v1", "s1"))
            == "You have not upvoted this suggestion."
        )

    def test_missing_suggestion(self) -> None:
        assert "could not be found" in user_message_for(SuggestionNotFoundError("s1"))

    def test_comment_ownership(self) -> None:
        assert (
            user_message_for(CommentOwnershipError("c1", "u2"))
            == "You can only delete your own comments."
        )

    def test_validation_error_shows_reason(self) -> None:
        error = InvalidSuggestionError("title", "Title must be at least 10 characters.")
        assert user_message_for(error) == "Title must be at least 10 characters."

    def test_permission_denied(self) -> None:
        error = PermissionDeniedError(path="votes/v1_s1", operation="create")
        assert (
            user_message_for(error)
            == "You do not have permission to perform this action."
        )

    def test_conflict_exhausted(self) -> None:
        assert "Too many people" in user_message_for(TransactionConflictError(5))

    @pytest.mark.parametrize(
        ("code", "message"),
        [
            ("auth/wrong-password", "Incorrect password."),
            ("auth/invalid-email", "Invalid email address."),
            ("unavailable", "Service temporarily unavailable. Please try again."),
        ],
    )
    def test_known_codes(self, code: str, message: str) -> None:
        assert user_message_for(DatastoreError(code)) == message

    def test_network_failure_without_code(self) -> None:
        assert (
            user_message_for(ConnectionError("network request failed"))
            == NETWORK_ERROR_MESSAGE
        )

    def test_unknown_error_uses_its_text(self) -> None:
        assert user_message_for(RuntimeError("disk full")) == "disk full"

    def test_blank_error_uses_default(self) -> None:
        assert user_message_for(RuntimeError()) == DEFAULT_ERROR_MESSAGE
