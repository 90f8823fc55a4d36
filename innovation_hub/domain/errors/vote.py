"""Vote ledger domain errors.

These errors are precondition violations: the condition that failed on the
first attempt stays false on every later attempt, so the retry layer
never retries them.

Ledger rules:
- One ledger entry per (voter, suggestion) pair
- Retracting a vote that was never cast never touches the counter
"""

from __future__ import annotations

from datetime import datetime

from innovation_hub.domain.exceptions import InnovationHubError


class VoteError(InnovationHubError):
    """Base error for vote ledger operations."""

    pass


class AlreadyVotedError(VoteError):
    """Raised when a voter tries to upvote the same suggestion twice.

    The composite vote key already exists in the ledger. This is the
    idempotency guard firing, not a transient failure.

    Attributes:
        voter_uid: The voter attempting the duplicate vote.
        suggestion_id: The suggestion already voted on.
        voted_at: When the existing vote was recorded (if known).
    """

    def __init__(
        self,
        voter_uid: str,
        suggestion_id: str,
        voted_at: datetime | None = None,
    ) -> None:
        """Initialize the error.

        Args:
            voter_uid: The voter attempting the duplicate vote.
            suggestion_id: The suggestion already voted on.
            voted_at: When the existing vote was recorded (if known).
        """
        self.voter_uid = voter_uid
        self.suggestion_id = suggestion_id
        self.voted_at = voted_at
        super().__init__(
            f"Voter {voter_uid} has already upvoted suggestion {suggestion_id}"
        )


class VoteNotFoundError(VoteError):
    """Raised when retracting a vote that does not exist in the ledger.

    Attributes:
        voter_uid: The voter attempting the retraction.
        suggestion_id: The suggestion the vote was expected on.
    """

    def __init__(self, voter_uid: str, suggestion_id: str) -> None:
        self.voter_uid = voter_uid
        self.suggestion_id = suggestion_id
        super().__init__(
            f"No vote from {voter_uid} on suggestion {suggestion_id} to retract"
        )
