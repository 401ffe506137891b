"""User account operations: authentication, enabled mods and logout."""
import logging
from collections.abc import Iterable
from typing import Protocol

from modio_sync.schemas.local_user import LocalUser
from modio_sync.schemas.mod import UserProfile
from modio_sync.services.session import UserSession

logger = logging.getLogger(__name__)


class Clearable(Protocol):
    """A cache that can be reset wholesale."""

    def clear(self) -> None:
        """Drop every cached entry."""
        ...


class UserAccountManager:
    """
    Authentication and per-user settings for the active local user.

    Caches registered via register_cache() are cleared on logout so one user's
    data never leaks into the next user's session.
    """

    def __init__(self, session: UserSession) -> None:
        self._session = session
        self._caches: list[Clearable] = []

    def register_cache(self, cache: Clearable) -> None:
        """Clear this cache whenever the user logs out."""
        self._caches.append(cache)

    async def request_security_code(self, email: str) -> None:
        """Ask the server to email a login code to the given address."""
        await self._session.api.send_security_code(email)

    async def authenticate_with_security_code(self, security_code: str) -> UserProfile:
        """
        Exchange an emailed security code for a token and fetch the user's profile.

        A successful exchange clears any earlier token rejection.

        Raises:
            NetworkError: If the exchange or the profile request fails.
        """
        api = self._session.api
        token = await api.get_oauth_token(security_code)

        user = self._session.user
        user.oauth_token = token
        user.was_token_rejected = False
        api.set_oauth_token(token)
        self._session.persist()

        profile = await api.get_authenticated_user()
        user.profile = profile
        self._session.persist()
        logger.info("user_authenticated", extra={"user_id": profile.id})
        return profile

    def mark_auth_token_rejected(self) -> None:
        """Record that the server refused the user's token."""
        logger.warning("auth_token_rejected")
        self._session.mark_token_rejected()

    def get_enabled_mod_ids(self) -> list[int]:
        """Return a copy of the ids of the mods the user has enabled."""
        return list(self._session.user.enabled_mod_ids)

    def set_enabled_mod_ids(self, mod_ids: Iterable[int] | None) -> None:
        """Replace the enabled mods and persist."""
        self._session.user.enabled_mod_ids = list(mod_ids or [])
        self._session.persist()

    def logout(self) -> None:
        """
        Forget the user's credentials and subscriptions and clear registered caches.

        Enabled mods are kept since they describe the local installation.
        """
        enabled = self._session.user.enabled_mod_ids
        self._session.user = LocalUser(enabled_mod_ids=enabled)
        self._session.api.set_oauth_token(None)
        self._session.persist()
        for cache in self._caches:
            cache.clear()
        logger.info("user_logged_out")
