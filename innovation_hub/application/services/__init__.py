"""Application services for the Innovation Hub core."""

from innovation_hub.application.services.comment_service import (
    CommentPostResult,
    CommentService,
)
from innovation_hub.application.services.counter_maintainer_service import (
    CounterMaintainerService,
)
from innovation_hub.application.services.counter_verification_service import (
    CounterVerificationResult,
    CounterVerificationService,
)
from innovation_hub.application.services.error_messages import user_message_for
from innovation_hub.application.services.retry_policy import (
    ErrorClass,
    RetryPolicy,
    classify_error,
    is_network_error,
)
from innovation_hub.application.services.status_change_notifier_service import (
    StatusChangeNotifierService,
)
from innovation_hub.application.services.suggestion_service import SuggestionService
from innovation_hub.application.services.vote_ledger_service import (
    VoteCastResult,
    VoteLedgerService,
    VoteRetractResult,
)

__all__ = [
    "CommentPostResult",
    "CommentService",
    "CounterMaintainerService",
    "CounterVerificationResult",
    "CounterVerificationService",
    "ErrorClass",
    "RetryPolicy",
    "StatusChangeNotifierService",
    "SuggestionService",
    "VoteCastResult",
    "VoteLedgerService",
    "VoteRetractResult",
    "classify_error",
    "is_network_error",
    "user_message_for",
]
