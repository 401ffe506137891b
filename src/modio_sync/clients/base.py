"""Capabilities the caches and reconciler need from the mod.io service."""
from typing import Protocol

from modio_sync.schemas.filters import RequestFilter
from modio_sync.schemas.mod import ModProfile, RequestPage, UserProfile


class ModioApi(Protocol):
    """
    Asynchronous mod.io operations.

    Every method raises NetworkError on failure.
    """

    async def get_all_mods(
        self, request_filter: RequestFilter, offset: int, limit: int,
    ) -> RequestPage[ModProfile]:
        """Fetch one page of the game's mods matching a filter."""
        ...

    async def get_mod(self, mod_id: int) -> ModProfile:
        """Fetch a single mod."""
        ...

    async def get_mods_by_ids(self, mod_ids: list[int]) -> list[ModProfile]:
        """Fetch the mods with the given ids; ids the server does not know are omitted."""
        ...

    async def get_user_subscriptions(
        self, request_filter: RequestFilter, offset: int, limit: int,
    ) -> RequestPage[ModProfile]:
        """Fetch one page of the authenticated user's subscriptions."""
        ...

    async def subscribe_to_mod(self, mod_id: int) -> None:
        """Subscribe the authenticated user to a mod."""
        ...

    async def unsubscribe_from_mod(self, mod_id: int) -> None:
        """Unsubscribe the authenticated user from a mod."""
        ...

    async def fetch_url(self, url: str) -> bytes:
        """Download raw bytes, e.g. a logo image."""
        ...

    async def send_security_code(self, email: str) -> None:
        """Ask the server to email a login code."""
        ...

    async def get_oauth_token(self, security_code: str) -> str:
        """Exchange an emailed security code for an OAuth token."""
        ...

    async def get_authenticated_user(self) -> UserProfile:
        """Fetch the profile of the user owning the current token."""
        ...

    def set_oauth_token(self, token: str | None) -> None:
        """Set the bearer token used for authenticated requests."""
        ...
