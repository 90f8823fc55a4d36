"""Status-change notifier service.

Reacts to SuggestionReviewedEvent and notifies the author and every voter
when a suggestion moves into SHORTLISTED or IMPLEMENTED.

Rules:
1. Compare previous and new status by value; an edit that leaves the
   status unchanged never notifies
2. Only transitions into SHORTLISTED or IMPLEMENTED notify
3. Transitions out of a terminal state (ARCHIVED_REJECTED, IMPLEMENTED)
   never notify
4. Audience = distinct voters in the ledger + the author unless anonymous
5. Two UIDs resolving to the same address receive one message
6. A failed lookup or delivery for one recipient never blocks the rest
7. Notification is best-effort: nothing here can undo the status change

When the trigger carries a transition id (the event id), a
status_notifications/{transition_id} claim is committed before any
message is handed to the delivery collaborator. A re-delivered event
finds the claim and sends nothing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from structlog import get_logger

from innovation_hub.application.services.notification_message import (
    compose_body,
    compose_subject,
)
from innovation_hub.application.services.retry_policy import RetryPolicy
from innovation_hub.config.hub_config import NotificationConfig
from innovation_hub.domain.events.notification import (
    StatusNotificationsDispatchedEvent,
)
from innovation_hub.domain.events.suggestion import SuggestionReviewedEvent
from innovation_hub.domain.models.document_paths import (
    STATUS_NOTIFICATIONS_COLLECTION,
    SUGGESTIONS_COLLECTION,
    VOTES_COLLECTION,
)
from innovation_hub.domain.models.notification import (
    NotificationAudience,
    NotificationDispatchResult,
    OutboundMessage,
    Recipient,
)
from innovation_hub.domain.models.suggestion import (
    DEFAULT_DISPLAY_NAME,
    NOTIFYING_STATUSES,
    Suggestion,
    SuggestionStatus,
)
from innovation_hub.domain.models.timestamp import SERVER_TIMESTAMP
from innovation_hub.infrastructure.observability.correlation import (
    correlation_scope,
    get_correlation_id,
)

if TYPE_CHECKING:
    from innovation_hub.application.ports.document_store import (
        DocumentStoreProtocol,
        TransactionProtocol,
    )
    from innovation_hub.application.ports.event_bus import EventBusProtocol
    from innovation_hub.application.ports.hub_metrics import HubMetricsProtocol
    from innovation_hub.application.ports.notification_delivery import (
        NotificationDeliveryProtocol,
    )
    from innovation_hub.application.ports.user_profile import (
        UserProfileLookupProtocol,
    )

logger = get_logger(__name__)


class StatusChangeNotifierService:
    """Computes the audience of a status transition and dispatches to it."""

    def __init__(
        self,
        store: DocumentStoreProtocol,
        profiles: UserProfileLookupProtocol,
        delivery: NotificationDeliveryProtocol,
        config: NotificationConfig | None = None,
        event_bus: EventBusProtocol | None = None,
        retry_policy: RetryPolicy | None = None,
        metrics: HubMetricsProtocol | None = None,
    ) -> None:
        """Initialize the notifier.

        Args:
            store: Document store holding suggestions, votes and claims.
            profiles: UID -> contact address lookup.
            delivery: Outbound message channel.
            config: Message wording (site name, link template).
            event_bus: Bus for the dispatch summary event (optional).
            retry_policy: Retry layer for store reads and the claim.
            metrics: Metrics recorder (optional).
        """
        self._store = store
        self._profiles = profiles
        self._delivery = delivery
        self._config = config or NotificationConfig()
        self._event_bus = event_bus
        self._retry = retry_policy or RetryPolicy()
        self._metrics = metrics

    @staticmethod
    def should_notify(
        previous_status: SuggestionStatus | None,
        new_status: SuggestionStatus,
    ) -> bool:
        """Decide whether a transition notifies anyone.

        Args:
            previous_status: Status before the edit (None if unknown).
            new_status: Status after the edit.

        Returns:
            True only for a real change into SHORTLISTED or IMPLEMENTED
            from a non-terminal state.
        """
        if previous_status == new_status:
            return False
        if new_status not in NOTIFYING_STATUSES:
            return False
        if previous_status is not None and previous_status.is_terminal():
            return False
        return True

    async def resolve_audience(self, suggestion: Suggestion) -> NotificationAudience:
        """Distinct voters of the suggestion plus its author unless anonymous."""
        snapshots = await self._retry.run(
            "resolve_audience",
            lambda: self._store.query(
                VOTES_COLLECTION, "suggestionId", suggestion.suggestion_id
            ),
        )
        voter_uids = [
            snapshot.data["voterUid"]
            for snapshot in snapshots
            if snapshot.data is not None and snapshot.data.get("voterUid")
        ]
        return NotificationAudience.build(
            suggestion_id=suggestion.suggestion_id,
            author_uid=suggestion.author_uid,
            voter_uids=voter_uids,
        )

    async def on_status_changed(
        self,
        suggestion_id: str,
        previous_status: SuggestionStatus | str | None,
        new_status: SuggestionStatus | str,
        transition_id: str | None = None,
    ) -> NotificationDispatchResult:
        """Notify the audience of a status transition, at most once.

        Args:
            suggestion_id: Suggestion whose status changed.
            previous_status: Status before the edit (None if unknown).
            new_status: Status after the edit.
            transition_id: Unique id of this transition; enables the
                duplicate-delivery claim.

        Returns:
            NotificationDispatchResult; dispatched_count is the number of
            messages the delivery collaborator accepted.

        Raises:
            DatastoreError: The suggestion, ledger or claim could not be
                read or written after retries. Nothing has been sent.
        """
        new = SuggestionStatus(new_status)
        previous = (
            SuggestionStatus(previous_status) if previous_status is not None else None
        )
        log = logger.bind(
            suggestion_id=suggestion_id,
            previous_status=previous.value if previous else None,
            new_status=new.value,
            transition_id=transition_id,
        )

        if not self.should_notify(previous, new):
            log.debug("status_change_not_notified")
            return NotificationDispatchResult(
                suggestion_id=suggestion_id,
                previous_status=previous,
                new_status=new,
            )

        snapshot = await self._retry.run(
            "load_suggestion",
            lambda: self._store.get(SUGGESTIONS_COLLECTION, suggestion_id),
        )
        if snapshot.data is None:
            log.warning("status_change_for_missing_suggestion")
            return NotificationDispatchResult(
                suggestion_id=suggestion_id,
                previous_status=previous,
                new_status=new,
            )
        suggestion = Suggestion.from_document(snapshot.doc_id, snapshot.data)

        audience = await self.resolve_audience(suggestion)
        log.info("notification_audience_resolved", audience_size=len(audience))

        recipients, skipped = await self._resolve_recipients(suggestion, audience)

        if transition_id is not None and not await self._claim_transition(
            transition_id, suggestion_id, new
        ):
            log.info("status_notification_already_dispatched")
            return NotificationDispatchResult(
                suggestion_id=suggestion_id,
                previous_status=previous,
                new_status=new,
                audience=audience,
                duplicate=True,
            )

        subject = compose_subject(suggestion.title, new)
        messages = tuple(
            OutboundMessage(
                recipient_uid=recipient.uid,
                address=recipient.address,
                subject=subject,
                body=compose_body(
                    recipient_name=recipient.display_name,
                    title=suggestion.title,
                    status=new,
                    public_feedback=suggestion.public_feedback,
                    suggestion_id=suggestion_id,
                    config=self._config,
                ),
            )
            for recipient in recipients
        )

        delivered: list[str] = []
        failed: list[str] = []
        for message in messages:
            if await self._deliver(message):
                delivered.append(message.address)
            else:
                failed.append(message.address)

        log.info(
            "status_notifications_dispatched",
            audience_size=len(audience),
            delivered=len(delivered),
            failed=len(failed),
            skipped=len(skipped),
        )
        await self._publish(
            StatusNotificationsDispatchedEvent(
                suggestion_id=suggestion_id,
                new_status=new.value,
                audience_size=len(audience),
                delivered_count=len(delivered),
                failed_count=len(failed),
                skipped_count=len(skipped),
            )
        )

        return NotificationDispatchResult(
            suggestion_id=suggestion_id,
            previous_status=previous,
            new_status=new,
            notified=True,
            audience=audience,
            messages=messages,
            delivered=tuple(delivered),
            failed=tuple(failed),
            skipped_uids=tuple(skipped),
        )

    async def handle_suggestion_reviewed(self, event: SuggestionReviewedEvent) -> None:
        """Event bus handler; the event id is the transition id."""
        transition_id = str(event.event_id)
        with correlation_scope(get_correlation_id() or transition_id):
            await self.on_status_changed(
                event.suggestion_id,
                event.previous_status,
                event.new_status,
                transition_id=transition_id,
            )

    def register(self, event_bus: EventBusProtocol) -> None:
        event_bus.subscribe(SuggestionReviewedEvent, self.handle_suggestion_reviewed)

    async def _resolve_recipients(
        self,
        suggestion: Suggestion,
        audience: NotificationAudience,
    ) -> tuple[list[Recipient], list[str]]:
        """Look up contact addresses, dropping unknown users and repeats.

        The author is resolved first, so an address shared with a voter
        is greeted with the author's name.
        """
        recipients: list[Recipient] = []
        skipped: list[str] = []
        seen_addresses: set[str] = set()

        ordered = sorted(
            audience.uids, key=lambda uid: (uid != suggestion.author_uid, uid)
        )
        for uid in ordered:
            try:
                profile = await self._profiles.get_profile(uid)
            except Exception as exc:
                logger.warning(
                    "recipient_lookup_failed",
                    suggestion_id=suggestion.suggestion_id,
                    uid=uid,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                skipped.append(uid)
                continue

            if profile is None or not profile.email:
                logger.info(
                    "recipient_without_address",
                    suggestion_id=suggestion.suggestion_id,
                    uid=uid,
                )
                skipped.append(uid)
                continue

            address = profile.email.strip()
            if address.lower() in seen_addresses:
                logger.debug(
                    "duplicate_recipient_address",
                    suggestion_id=suggestion.suggestion_id,
                    uid=uid,
                )
                continue
            seen_addresses.add(address.lower())
            recipients.append(
                Recipient(
                    uid=uid,
                    address=address,
                    display_name=profile.display_name or DEFAULT_DISPLAY_NAME,
                )
            )

        return recipients, skipped

    async def _claim_transition(
        self,
        transition_id: str,
        suggestion_id: str,
        new_status: SuggestionStatus,
    ) -> bool:
        """Commit the one-per-transition claim; False if already claimed."""

        async def _transaction(tx: TransactionProtocol) -> bool:
            existing = await tx.get(STATUS_NOTIFICATIONS_COLLECTION, transition_id)
            if existing.exists:
                return False
            tx.create(
                STATUS_NOTIFICATIONS_COLLECTION,
                transition_id,
                {
                    "transitionId": transition_id,
                    "suggestionId": suggestion_id,
                    "newStatus": new_status.value,
                    "claimedAt": SERVER_TIMESTAMP,
                },
            )
            return True

        return await self._retry.run(
            "claim_status_notification",
            lambda: self._store.run_transaction(_transaction),
        )

    async def _deliver(self, message: OutboundMessage) -> bool:
        """Send one message; failures are logged and reported as False."""
        try:
            accepted = await self._delivery.send(
                message.address, message.subject, message.body
            )
        except Exception as exc:
            logger.warning(
                "notification_delivery_failed",
                address=message.address,
                recipient_uid=message.recipient_uid,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            accepted = False
        else:
            if not accepted:
                logger.warning(
                    "notification_delivery_rejected",
                    address=message.address,
                    recipient_uid=message.recipient_uid,
                )

        if self._metrics is not None:
            self._metrics.record_notification("delivered" if accepted else "failed")
        return bool(accepted)

    async def _publish(self, event: object) -> None:
        if self._event_bus is not None:
            await self._event_bus.publish(event)
