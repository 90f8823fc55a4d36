"""Comment service.

Posting and deleting a comment each adjust the parent's commentsCount by
one in the same transaction as the comment write (inline strategy), or
through the counter maintainer from the published event (reactive).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import ValidationError
from structlog import get_logger
from uuid6 import uuid7

from innovation_hub.application.dtos.comment import CommentSubmissionDTO
from innovation_hub.application.dtos.suggestion import invalid_payload_error
from innovation_hub.application.services.counter_maintainer_service import (
    CounterMaintainerService,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.config.hub_config import CounterStrategy
from innovation_hub.domain.errors import (
    CommentNotFoundError,
    CommentOwnershipError,
    CommentTargetNotFoundError,
)
from innovation_hub.domain.events.comment import (
    CommentDeletedEvent,
    CommentPostedEvent,
)
from innovation_hub.domain.models.comment import Comment
from innovation_hub.domain.models.document_paths import (
    SUGGESTIONS_COLLECTION,
    comments_collection,
)
from innovation_hub.domain.models.suggestion import (
    ANONYMOUS_DISPLAY_NAME,
    COMMENTS_COUNT_FIELD,
)
from innovation_hub.domain.models.timestamp import ordering_key

if TYPE_CHECKING:
    from innovation_hub.application.ports.document_store import (
        DocumentStoreProtocol,
        TransactionProtocol,
    )
    from innovation_hub.application.ports.event_bus import EventBusProtocol

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommentPostResult:
    """A committed comment and the parent's counter after the commit."""

    comment: Comment
    comments_count: int | None


class CommentService:
    """Posts, deletes and lists comments under a suggestion."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        counters: CounterMaintainerService,
        event_bus: EventBusProtocol | None = None,
        retry_policy: RetryPolicy | None = None,
        counter_strategy: CounterStrategy = CounterStrategy.INLINE,
    ) -> None:
        self._store = store
        self._counters = counters
        self._event_bus = event_bus
        self._retry = retry_policy or RetryPolicy()
        self._counter_strategy = counter_strategy

    async def post_comment(
        self,
        suggestion_id: str,
        author_uid: str,
        body: str,
        author_display_name: str | None = None,
    ) -> CommentPostResult:
        """Post a comment under a suggestion.

        Args:
            suggestion_id: Parent suggestion.
            author_uid: Verified UID of the commenter.
            body: 1-500 characters after trimming.
            author_display_name: Name to show (defaults to "Anonymous").

        Returns:
            CommentPostResult with the stored comment.

        Raises:
            InvalidSuggestionError: The body failed validation.
            CommentTargetNotFoundError: The suggestion does not exist.
        """
        try:
            submission = CommentSubmissionDTO(body=body)
        except ValidationError as exc:
            error = invalid_payload_error(exc)
            logger.info(
                "comment_rejected",
                suggestion_id=suggestion_id,
                reason=error.reason,
            )
            raise error from exc

        inline = self._counter_strategy is CounterStrategy.INLINE
        comment = Comment(
            comment_id=str(uuid7()),
            suggestion_id=suggestion_id,
            author_uid=author_uid,
            body=submission.body,
            author_display_name=author_display_name or ANONYMOUS_DISPLAY_NAME,
        )

        async def _transaction(tx: TransactionProtocol) -> int | None:
            suggestion = await tx.get(SUGGESTIONS_COLLECTION, suggestion_id)
            if not suggestion.exists:
                raise CommentTargetNotFoundError(suggestion_id)
            tx.create(
                comments_collection(suggestion_id),
                comment.comment_id,
                comment.to_document(),
            )
            if inline:
                return self._counters.apply_delta(
                    tx, suggestion, COMMENTS_COUNT_FIELD, 1
                )
            return None

        comments_count = await self._retry.run(
            "post_comment", lambda: self._store.run_transaction(_transaction)
        )

        logger.info(
            "comment_posted",
            suggestion_id=suggestion_id,
            comment_id=comment.comment_id,
            comments_count=comments_count,
        )
        await self._publish(
            CommentPostedEvent(
                suggestion_id=suggestion_id,
                comment_id=comment.comment_id,
                author_uid=author_uid,
                counter_applied=inline,
            )
        )
        return CommentPostResult(comment=comment, comments_count=comments_count)

    async def delete_comment(
        self,
        suggestion_id: str,
        comment_id: str,
        requester_uid: str,
    ) -> int | None:
        """Delete a comment; only its author may do so.

        Returns:
            The parent's commentsCount after the commit (None when reactive).

        Raises:
            CommentNotFoundError: No such comment.
            CommentOwnershipError: requester_uid is not the author.
        """
        inline = self._counter_strategy is CounterStrategy.INLINE
        collection = comments_collection(suggestion_id)

        async def _transaction(tx: TransactionProtocol) -> int | None:
            existing = await tx.get(collection, comment_id)
            if existing.data is None:
                raise CommentNotFoundError(suggestion_id, comment_id)
            if existing.data.get("authorUid") != requester_uid:
                raise CommentOwnershipError(comment_id, requester_uid)

            suggestion = await tx.get(SUGGESTIONS_COLLECTION, suggestion_id)
            tx.delete(collection, comment_id)
            if inline and suggestion.exists:
                return self._counters.apply_delta(
                    tx, suggestion, COMMENTS_COUNT_FIELD, -1
                )
            return None

        comments_count = await self._retry.run(
            "delete_comment", lambda: self._store.run_transaction(_transaction)
        )

        logger.info(
            "comment_deleted",
            suggestion_id=suggestion_id,
            comment_id=comment_id,
            comments_count=comments_count,
        )
        await self._publish(
            CommentDeletedEvent(
                suggestion_id=suggestion_id,
                comment_id=comment_id,
                author_uid=requester_uid,
                counter_applied=inline,
            )
        )
        return comments_count

    async def list_comments(self, suggestion_id: str) -> list[Comment]:
        """Return a suggestion's comments, oldest first, pending last."""
        snapshots = await self._retry.run(
            "list_comments",
            lambda: self._store.list_documents(comments_collection(suggestion_id)),
        )
        comments = [
            Comment.from_document(snapshot.doc_id, snapshot.data)
            for snapshot in snapshots
            if snapshot.data is not None
        ]
        return sorted(
            comments,
            key=lambda comment: (ordering_key(comment.timestamp), comment.comment_id),
        )

    async def _publish(self, event: object) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
