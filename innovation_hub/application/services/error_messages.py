"""User-facing messages for hub errors.

Callers (the UI layer) show these instead of raw exception text.
"""

from __future__ import annotations

from innovation_hub.application.services.retry_policy import (
    error_code,
    is_network_error,
)
from innovation_hub.domain.errors import (
    AlreadyVotedError,
    CommentNotFoundError,
    CommentOwnershipError,
    CommentTargetNotFoundError,
    InvalidSuggestionError,
    SuggestionNotFoundError,
    VoteNotFoundError,
)

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred. Please try again."
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."

_CODE_MESSAGES: dict[str, str] = {
    "permission-denied": "You do not have permission to perform this action.",
    "unavailable": "Service temporarily unavailable. Please try again.",
    "deadline-exceeded": (
        "Request timed out. Please check your connection and try again."
    ),
    "not-found": "The requested resource was not found.",
    "already-exists": "This resource already exists.",
    "aborted": "Too many people are updating this right now. Please try again.",
    "auth/user-not-found": "No account found with this email.",
    "auth/wrong-password": "Incorrect password.",
    "auth/email-already-in-use": "An account with this email already exists.",
    "auth/weak-password": "Password is too weak. Please use at least 6 characters.",
    "auth/invalid-email": "Invalid email address.",
    "auth/user-disabled": "This account has been disabled.",
    "auth/too-many-requests": "Too many failed attempts. Please try again later.",
}


def user_message_for(error: BaseException) -> str:
    """Map an error to text suitable for showing to the user.

    Args:
        error: Any exception surfaced by a hub operation.

    Returns:
        A short, user-friendly message.
    """
    if isinstance(error, AlreadyVotedError):
        return "You have already upvoted this suggestion"
    if isinstance(error, VoteNotFoundError):
        return "You have not upvoted this suggestion."
    if isinstance(error, (SuggestionNotFoundError, CommentTargetNotFoundError)):
        return "This suggestion could not be found. It may have been removed."
    if isinstance(error, CommentNotFoundError):
        return "This comment could not be found. It may have been removed."
    if isinstance(error, CommentOwnershipError):
        return "You can only delete your own comments."
    if isinstance(error, InvalidSuggestionError):
        return error.reason

    code = error_code(error)
    if code is not None and code in _CODE_MESSAGES:
        return _CODE_MESSAGES[code]
    if is_network_error(error):
        return NETWORK_ERROR_MESSAGE
    return str(error) or DEFAULT_ERROR_MESSAGE
