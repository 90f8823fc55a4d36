"""Suggestion domain errors."""

from __future__ import annotations

from innovation_hub.domain.exceptions import InnovationHubError


class SuggestionError(InnovationHubError):
    """Base error for suggestion operations."""

    pass


class SuggestionNotFoundError(SuggestionError):
    """Raised when an operation targets a suggestion that does not exist.

    Attributes:
        suggestion_id: The suggestion ID that was not found.
    """

    def __init__(self, suggestion_id: str) -> None:
        """Initialize the error.

        Args:
            suggestion_id: The suggestion ID that was not found.
        """
        self.suggestion_id = suggestion_id
        super().__init__(f"Suggestion not found: {suggestion_id}")


class InvalidSuggestionError(SuggestionError):
    """Raised when a submission, review or comment payload fails validation.

    Attributes:
        field: Name of the offending field.
        reason: Why the value was rejected.
    """

    def __init__(self, field: str, reason: str) -> None:
        """Initialize the error.

        Args:
            field: Name of the offending field.
            reason: Why the value was rejected.
        """
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")
