"""Domain events published by the Innovation Hub services."""

from innovation_hub.domain.events.comment import (
    COMMENT_DELETED_EVENT_TYPE,
    COMMENT_POSTED_EVENT_TYPE,
    CommentDeletedEvent,
    CommentPostedEvent,
)
from innovation_hub.domain.events.notification import (
    PERMISSION_DENIED_DIAGNOSTIC_EVENT_TYPE,
    STATUS_NOTIFICATIONS_DISPATCHED_EVENT_TYPE,
    PermissionDeniedDiagnosticEvent,
    StatusNotificationsDispatchedEvent,
)
from innovation_hub.domain.events.suggestion import (
    SUGGESTION_REVIEWED_EVENT_TYPE,
    SUGGESTION_SUBMITTED_EVENT_TYPE,
    SuggestionReviewedEvent,
    SuggestionSubmittedEvent,
)
from innovation_hub.domain.events.vote import (
    VOTE_CAST_EVENT_TYPE,
    VOTE_RETRACTED_EVENT_TYPE,
    VoteCastEvent,
    VoteRetractedEvent,
)

__all__: list[str] = [
    "COMMENT_DELETED_EVENT_TYPE",
    "COMMENT_POSTED_EVENT_TYPE",
    "CommentDeletedEvent",
    "CommentPostedEvent",
    "PERMISSION_DENIED_DIAGNOSTIC_EVENT_TYPE",
    "PermissionDeniedDiagnosticEvent",
    "STATUS_NOTIFICATIONS_DISPATCHED_EVENT_TYPE",
    "StatusNotificationsDispatchedEvent",
    "SUGGESTION_REVIEWED_EVENT_TYPE",
    "SUGGESTION_SUBMITTED_EVENT_TYPE",
    "SuggestionReviewedEvent",
    "SuggestionSubmittedEvent",
    "VOTE_CAST_EVENT_TYPE",
    "VOTE_RETRACTED_EVENT_TYPE",
    "VoteCastEvent",
    "VoteRetractedEvent",
]
