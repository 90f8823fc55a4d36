"""Status-change notification value objects.

The audience of a status transition is computed, never stored: the
distinct voters in the ledger plus the author unless the suggestion was
submitted anonymously. Set semantics mean an author who also voted is
notified once.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from innovation_hub.domain.models.suggestion import (
    ANONYMOUS_AUTHOR_UID,
    SuggestionStatus,
)


@dataclass(frozen=True)
class NotificationAudience:
    """Deduplicated set of UIDs to notify for one status transition.

    Attributes:
        suggestion_id: Suggestion whose status changed.
        uids: Distinct recipient UIDs.
    """

    suggestion_id: str
    uids: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(
        cls,
        suggestion_id: str,
        author_uid: str,
        voter_uids: Iterable[str],
    ) -> NotificationAudience:
        """Combine voters and author into one audience.

        Args:
            suggestion_id: Suggestion whose status changed.
            author_uid: Author UID (ANONYMOUS_AUTHOR_UID is never notified).
            voter_uids: Voter UIDs from the ledger; duplicates are fine.

        Returns:
            The audience; possibly empty.
        """
        uids = {uid for uid in voter_uids if uid}
        if author_uid and author_uid != ANONYMOUS_AUTHOR_UID:
            uids.add(author_uid)
        return cls(suggestion_id=suggestion_id, uids=frozenset(uids))

    def __len__(self) -> int:
        return len(self.uids)

    def __contains__(self, uid: object) -> bool:
        return uid in self.uids

    @property
    def is_empty(self) -> bool:
        return not self.uids

    def sorted_uids(self) -> list[str]:
        return sorted(self.uids)


@dataclass(frozen=True)
class Recipient:
    """A resolved audience member."""

    uid: str
    address: str
    display_name: str


@dataclass(frozen=True)
class OutboundMessage:
    """One (address, message) pair handed to the delivery collaborator."""

    recipient_uid: str
    address: str
    subject: str
    body: str


@dataclass(frozen=True)
class NotificationDispatchResult:
    """Outcome of a status-change notification run.

    Attributes:
        suggestion_id: Suggestion whose status changed.
        previous_status: Status before the transition (None if unknown).
        new_status: Status after the transition.
        notified: Whether the transition qualified for notification.
        audience: Resolved audience (empty when not notified).
        messages: Every message handed to the delivery collaborator.
        delivered: Addresses that accepted the message.
        failed: Addresses whose delivery failed.
        skipped_uids: Audience members without a usable contact address.
        duplicate: True when this transition had already been notified.
    """

    suggestion_id: str
    previous_status: SuggestionStatus | None
    new_status: SuggestionStatus
    notified: bool = False
    audience: NotificationAudience | None = None
    messages: tuple[OutboundMessage, ...] = ()
    delivered: tuple[str, ...] = ()
    failed: tuple[str, ...] = ()
    skipped_uids: tuple[str, ...] = ()
    duplicate: bool = False

    @property
    def dispatched_count(self) -> int:
        """Number of messages the delivery collaborator accepted."""
        return len(self.delivered)
