"""Domain models for the Innovation Hub."""

from innovation_hub.domain.models.comment import (
    COMMENT_BODY_MAX_LENGTH,
    COMMENT_BODY_MIN_LENGTH,
    Comment,
)
from innovation_hub.domain.models.notification import (
    NotificationAudience,
    NotificationDispatchResult,
    OutboundMessage,
    Recipient,
)
from innovation_hub.domain.models.suggestion import (
    ANONYMOUS_AUTHOR_UID,
    ANONYMOUS_DISPLAY_NAME,
    COMMENTS_COUNT_FIELD,
    NOTIFYING_STATUSES,
    TERMINAL_STATUSES,
    UPVOTES_COUNT_FIELD,
    Suggestion,
    SuggestionCategory,
    SuggestionStatus,
)
from innovation_hub.domain.models.timestamp import (
    SERVER_TIMESTAMP,
    ResolvedTimestamp,
    ServerTimestamp,
    Timestamp,
)
from innovation_hub.domain.models.vote import Vote, vote_key

__all__: list[str] = [
    "ANONYMOUS_AUTHOR_UID",
    "ANONYMOUS_DISPLAY_NAME",
    "COMMENTS_COUNT_FIELD",
    "COMMENT_BODY_MAX_LENGTH",
    "COMMENT_BODY_MIN_LENGTH",
    "Comment",
    "NOTIFYING_STATUSES",
    "NotificationAudience",
    "NotificationDispatchResult",
    "OutboundMessage",
    "Recipient",
    "ResolvedTimestamp",
    "SERVER_TIMESTAMP",
    "ServerTimestamp",
    "Suggestion",
    "SuggestionCategory",
    "SuggestionStatus",
    "TERMINAL_STATUSES",
    "Timestamp",
    "UPVOTES_COUNT_FIELD",
    "Vote",
    "vote_key",
]
