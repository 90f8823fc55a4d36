"""Stub implementation of UserProfileLookupProtocol for testing.

Usage in tests:
    profiles = UserProfileLookupStub()
    profiles.add_profile("a1", "author@example.com", "Ada")
    profiles.fail_for("v2")  # lookups for v2 raise

    profile = await profiles.get_profile("a1")
    assert profile.email == "author@example.com"
"""

from __future__ import annotations

from innovation_hub.application.ports.user_profile import (
    UserProfile,
    UserProfileLookupProtocol,
)
from innovation_hub.domain.errors import DatastoreError, DatastoreErrorCode


class UserProfileLookupStub(UserProfileLookupProtocol):
    """In-memory UID -> profile map with per-UID failure injection."""

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._failing: set[str] = set()
        self.lookups: list[str] = []

    async def get_profile(self, uid: str) -> UserProfile | None:
        self.lookups.append(uid)
        if uid in self._failing:
            raise DatastoreError(
                DatastoreErrorCode.UNAVAILABLE,
                f"Profile lookup failed for {uid}",
                path=f"users/{uid}",
                operation="get",
            )
        return self._profiles.get(uid)

    def add_profile(
        self,
        uid: str,
        email: str,
        display_name: str | None = None,
    ) -> UserProfile:
        profile = UserProfile(uid=uid, email=email, display_name=display_name)
        self._profiles[uid] = profile
        return profile

    def fail_for(self, *uids: str) -> None:
        """Make lookups for these UIDs raise DatastoreError("unavailable")."""
        self._failing.update(uids)

    def reset(self) -> None:
        self._profiles.clear()
        self._failing.clear()
        self.lookups.clear()
