"""
User profiles and username registration.

Usernames are claimed through the usernames collection, one document per
lowercase username. Once a profile has a username it never changes.
"""

import re
from typing import Optional

import structlog

from falusy.domain.base import DomainService
from falusy.domain.errors import InvalidUsernameError, UsernameTakenError
from falusy.models.records import UserProfile, utc_now
from falusy.services.remote import Collection, RemoteDataService


logger = structlog.get_logger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-z0-9_]{3,}$")


def normalize_username(username: str) -> str:
    """Lowercase and validate a username."""
    normalized = (username or "").strip().lower()
    if not USERNAME_PATTERN.match(normalized):
        raise InvalidUsernameError(
            "Username must be at least 3 characters of letters, digits or underscore"
        )
    return normalized


async def load_profile(remote: RemoteDataService, user_id: str) -> Optional[UserProfile]:
    """Read a user's profile document, or None if there is none."""
    document = await remote.get(Collection.USERS, user_id)
    if document is None:
        return None
    return UserProfile.model_validate({**document, "userId": user_id})


class ProfileService(DomainService):
    """Profile reads and one-time username registration for the session user."""

    async def load_profile(self) -> Optional[UserProfile]:
        return await load_profile(self._remote, self.user_id)

    async def register(
        self,
        username: str,
        email: str,
        display_name: Optional[str] = None,
    ) -> UserProfile:
        """
        Claim a username and write the profile document.

        Raises:
            InvalidUsernameError: Bad format, or the profile already has one
            UsernameTakenError: Another user owns the username
            RemoteError: If a remote write fails
        """
        normalized = normalize_username(username)

        existing = await self._remote_call(
            self.load_profile(),
            "profile_save_failed",
            "profile_lookup_failed",
        )
        if existing is not None and existing.username:
            raise InvalidUsernameError("Username cannot be changed once set")

        owner = await self._remote_call(
            self._remote.get(Collection.USERNAMES, normalized),
            "profile_save_failed",
            "username_lookup_failed",
            username=normalized,
        )
        if owner is not None and owner.get("userId") != self.user_id:
            raise UsernameTakenError(normalized)

        now = utc_now()
        await self._remote_call(
            self._remote.set(
                Collection.USERNAMES,
                normalized,
                {"userId": self.user_id, "createdAt": now},
            ),
            "profile_save_failed",
            "username_claim_failed",
            username=normalized,
        )

        profile = UserProfile(
            user_id=self.user_id,
            username=normalized,
            email=email.strip(),
            display_name=display_name,
            is_admin=False,
            is_active=True,
        )
        document = profile.to_document()
        document["createdAt"] = now
        await self._remote_call(
            self._remote.set(Collection.USERS, self.user_id, document),
            "profile_save_failed",
            "profile_write_failed",
        )
        logger.info("user_registered", user_id=self.user_id, username=normalized)
        self._toasts.success("profile_registered")
        return profile
