"""User profile lookup port.

Maps a user UID to a contact address and display name. The identity
provider itself is external to the hub; this port is the only thing the
notifier needs from it.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class UserProfile:
    """Contact details for a user.

    Attributes:
        uid: User identifier.
        email: Contact address, None if the user has none on file.
        display_name: Name used in greetings, None if unset.
    """

    uid: str
    email: str | None
    display_name: str | None = None


class UserProfileLookupProtocol(Protocol):
    """Protocol for resolving user contact details."""

    @abstractmethod
    async def get_profile(self, uid: str) -> UserProfile | None:
        """Look up a user's profile.

        Args:
            uid: User identifier.

        Returns:
            The profile, or None if the user is unknown.

        Raises:
            Exception: Lookup failures propagate; callers treat them as
                "skip this recipient".
        """
        ...
