"""Comment domain errors."""

from __future__ import annotations

from innovation_hub.domain.exceptions import InnovationHubError


class CommentError(InnovationHubError):
    """Base error for comment operations."""

    pass


class CommentTargetNotFoundError(CommentError):
    """Raised when commenting on a suggestion that does not exist.

    Attributes:
        suggestion_id: The missing parent suggestion.
    """

    def __init__(self, suggestion_id: str) -> None:
        self.suggestion_id = suggestion_id
        super().__init__(f"Cannot comment on missing suggestion {suggestion_id}")


class CommentNotFoundError(CommentError):
    """Raised when deleting a comment that does not exist.

    Attributes:
        suggestion_id: The parent suggestion.
        comment_id: The missing comment.
    """

    def __init__(self, suggestion_id: str, comment_id: str) -> None:
        self.suggestion_id = suggestion_id
        self.comment_id = comment_id
        super().__init__(
            f"Comment {comment_id} not found on suggestion {suggestion_id}"
        )


class CommentOwnershipError(CommentError):
    """Raised when someone other than the author deletes a comment.

    Attributes:
        comment_id: The comment targeted.
        requester_uid: The user who attempted the deletion.
    """

    def __init__(self, comment_id: str, requester_uid: str) -> None:
        self.comment_id = comment_id
        self.requester_uid = requester_uid
        super().__init__(
            f"User {requester_uid} is not the author of comment {comment_id}"
        )
