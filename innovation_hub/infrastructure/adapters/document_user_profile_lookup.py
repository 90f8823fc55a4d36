"""User profile lookup backed by the users collection.

Profiles live at users/{uid} with `email` and `displayName` fields. A
missing document or an empty email resolves to None so the notifier can
skip that recipient.
"""

from __future__ import annotations

from structlog import get_logger

from innovation_hub.application.ports.document_store import DocumentStoreProtocol
from innovation_hub.application.ports.user_profile import (
    UserProfile,
    UserProfileLookupProtocol,
)
from innovation_hub.domain.models.document_paths import USERS_COLLECTION

logger = get_logger(__name__)


class DocumentUserProfileLookup(UserProfileLookupProtocol):
    def __init__(self, store: DocumentStoreProtocol) -> None:
        self._store = store

    async def get_profile(self, uid: str) -> UserProfile | None:
        snapshot = await self._store.get(USERS_COLLECTION, uid)
        email = snapshot.get("email")
        if not email:
            logger.debug("user_profile_not_found", uid=uid, exists=snapshot.exists)
            return None
        return UserProfile(
            uid=uid,
            email=email,
            display_name=snapshot.get("displayName") or None,
        )
