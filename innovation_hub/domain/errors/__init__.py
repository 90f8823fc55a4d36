"""Domain errors for the Innovation Hub.

Provides specific exception classes for different failure scenarios.
All exceptions inherit from InnovationHubError.
"""

from innovation_hub.domain.errors.comment import (
    CommentError,
    CommentNotFoundError,
    CommentOwnershipError,
    CommentTargetNotFoundError,
)
from innovation_hub.domain.errors.datastore import (
    AUTH_ERROR_PREFIX,
    DatastoreError,
    DatastoreErrorCode,
    PermissionDeniedError,
    TransactionConflictError,
)
from innovation_hub.domain.errors.suggestion import (
    InvalidSuggestionError,
    SuggestionError,
    SuggestionNotFoundError,
)
from innovation_hub.domain.errors.vote import (
    AlreadyVotedError,
    VoteError,
    VoteNotFoundError,
)

__all__: list[str] = [
    "AUTH_ERROR_PREFIX",
    "AlreadyVotedError",
    "CommentError",
    "CommentNotFoundError",
    "CommentOwnershipError",
    "CommentTargetNotFoundError",
    "DatastoreError",
    "DatastoreErrorCode",
    "InvalidSuggestionError",
    "PermissionDeniedError",
    "SuggestionError",
    "SuggestionNotFoundError",
    "TransactionConflictError",
    "VoteError",
    "VoteNotFoundError",
]
