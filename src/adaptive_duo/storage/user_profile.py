"""User profile persistence over a key-value store.

Profiles live under one key per normalized email; the logged-in identity is
a separate pointer key, so logging out never deletes profile data.
"""

import re
from typing import Any

import structlog

from adaptive_duo.models.profile import UserProfile, new_profile
from adaptive_duo.storage.kv import KeyValueStore
from adaptive_duo.storage.migration import (
    PLACEHOLDER_EMAIL,
    PLACEHOLDER_NAME,
    decode_profile,
    encode_profile,
)

logger = structlog.get_logger()

ACTIVE_USER_KEY = "adaptive_duo_active_email"
USER_PREFIX = "adaptive_duo_user_"

_UNSAFE_CHARS = re.compile(r"[^a-z0-9@.]")


def get_user_key(email: str) -> str:
    """Storage key for an email: trimmed, lowercased, odd characters replaced by ``_``."""
    return USER_PREFIX + _UNSAFE_CHARS.sub("_", email.strip().lower())


def placeholder_profile() -> UserProfile:
    """Unauthenticated stand-in returned when nobody is logged in."""
    profile = new_profile(PLACEHOLDER_EMAIL, PLACEHOLDER_NAME)
    return profile.model_copy(update={"is_authed": False})


class ProfileStore:
    """Loads and saves profiles and tracks the active identity.

    Args:
        kv: Backing key-value store.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def active_email(self) -> str | None:
        data = self.kv.get(ACTIVE_USER_KEY)
        if not data:
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            logger.warning("active_pointer_undecodable")
            return None

    def set_active(self, email: str) -> None:
        self.kv.set(ACTIVE_USER_KEY, email.strip().lower().encode("utf-8"))

    def clear_active(self) -> None:
        self.kv.delete(ACTIVE_USER_KEY)

    def exists(self, email: str) -> bool:
        return self.kv.get(get_user_key(email)) is not None

    def load(self, email: str) -> UserProfile | None:
        """Load a profile by email. None when unknown or undecodable."""
        data = self.kv.get(get_user_key(email))
        if data is None:
            return None
        return decode_profile(data)

    def save(self, profile: UserProfile) -> None:
        """Write the profile under its own email; authenticated saves become active."""
        self.kv.set(get_user_key(profile.email), encode_profile(profile))
        if profile.is_authed:
            self.set_active(profile.email)
        logger.debug("profile_saved", email=profile.email, is_authed=profile.is_authed)

    def load_active_user(self) -> UserProfile:
        """Return the logged-in profile, or an unauthenticated placeholder.

        A pointer whose profile is missing or corrupt is cleared.
        """
        email = self.active_email()
        if not email:
            return placeholder_profile()
        profile = self.load(email)
        if profile is None:
            logger.warning("active_profile_missing", email=email)
            self.clear_active()
            return placeholder_profile()
        return profile

    def login(self, email: str, name: str | None = None) -> UserProfile:
        """Load an existing profile or create a new one, and mark it active."""
        email = email.strip().lower()
        existing = self.load(email)
        if existing is not None:
            profile = existing.model_copy(update={"is_authed": True})
            logger.info("user_logged_in", email=email, new_user=False)
        else:
            profile = new_profile(email, name)
            logger.info("user_logged_in", email=email, new_user=True)
        self.save(profile)
        return profile

    def logout(self) -> None:
        """Persist the active profile as unauthenticated and clear the pointer."""
        email = self.active_email()
        if email:
            profile = self.load(email)
            if profile is not None:
                self.save(profile.model_copy(update={"is_authed": False}))
            logger.info("user_logged_out", email=email)
        self.clear_active()

    def registered_emails(self) -> list[str]:
        emails = []
        for key in self.kv.keys():
            if not key.startswith(USER_PREFIX):
                continue
            data = self.kv.get(key)
            profile = decode_profile(data) if data is not None else None
            if profile is not None:
                emails.append(profile.email)
        return emails

    def patch_active(self, **changes: Any) -> UserProfile:
        """Apply field changes to the active profile and save it."""
        profile = self.load_active_user()
        updated = UserProfile.model_validate({**profile.model_dump(), **changes})
        self.save(updated)
        return updated
