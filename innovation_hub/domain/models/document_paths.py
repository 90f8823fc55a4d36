"""Logical collection layout of the document store.

    suggestions/{suggestionId}
    votes/{voterUid_suggestionId}
    suggestions/{suggestionId}/comments/{commentId}
    processed_events/{eventId}          counter reaction dedup markers
    status_notifications/{transitionId} one claim per notified transition
    users/{uid}                         profile (email, displayName)
"""

SUGGESTIONS_COLLECTION = "suggestions"
VOTES_COLLECTION = "votes"
PROCESSED_EVENTS_COLLECTION = "processed_events"
STATUS_NOTIFICATIONS_COLLECTION = "status_notifications"
USERS_COLLECTION = "users"


def comments_collection(suggestion_id: str) -> str:
    """Return the comments sub-collection path for a suggestion."""
    return f"{SUGGESTIONS_COLLECTION}/{suggestion_id}/comments"


def document_path(collection: str, doc_id: str) -> str:
    return f"{collection}/{doc_id}"
