"""Thin httpx transport for the mod.io REST API."""
import logging
from typing import Any

import httpx

from modio_sync.core.config import Settings
from modio_sync.core.errors import NetworkError
from modio_sync.schemas.filters import FilterMethod, RequestFilter
from modio_sync.schemas.mod import ModProfile, RequestPage, UserProfile

logger = logging.getLogger(__name__)

USER_AGENT = "modio-sync/0.1"


def _error_message(response: httpx.Response) -> str:
    """Pull the server's error message out of a mod.io error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return str(body["error"].get("message", response.reason_phrase))
    return response.reason_phrase


def _parse_page(payload: dict[str, Any]) -> RequestPage[ModProfile]:
    """Convert a mod.io list response into a RequestPage."""
    return RequestPage[ModProfile](
        offset=payload.get("result_offset", 0),
        size=payload.get("result_limit", 0),
        result_total=payload.get("result_total", 0),
        items=[ModProfile.model_validate(item) for item in payload.get("data", [])],
    )


class ModioHttpClient:
    """
    mod.io client over httpx.

    Reads are signed with the game API key; calls made on the user's behalf
    carry the OAuth bearer token set via set_oauth_token.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._oauth_token: str | None = None

    def set_oauth_token(self, token: str | None) -> None:
        """Set the bearer token used for authenticated requests."""
        self._oauth_token = token

    @property
    def _game_path(self) -> str:
        return f"/games/{self._settings.game_id}"

    def _log_failure(self, error: NetworkError, method: str) -> None:
        level = logging.WARNING if self._settings.errors_as_warnings else logging.ERROR
        logger.log(
            level,
            "modio_request_failed",
            extra={"method": method, "url": error.url, "status_code": error.status_code},
        )

    async def _send(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        authenticated: bool = False,
    ) -> httpx.Response:
        """
        Send a request and return the response, raising NetworkError on failure.

        Args:
            method: HTTP method.
            url: Absolute URL, or a path relative to the configured API URL.
            params: Query parameters.
            data: Form body.
            authenticated: Send the OAuth token instead of the API key.
        """
        headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
        params = dict(params or {})
        if authenticated:
            if self._oauth_token:
                headers["Authorization"] = f"Bearer {self._oauth_token}"
        elif url.startswith("/"):
            params.setdefault("api_key", self._settings.game_api_key)

        if url.startswith("/"):
            url = f"{self._settings.api_url}{url}"

        log_level = logging.INFO if self._settings.log_all_requests else logging.DEBUG
        logger.log(log_level, "modio_request_sent", extra={"method": method, "url": url})

        try:
            async with httpx.AsyncClient(
                timeout=self._settings.request_timeout,
                follow_redirects=True,
                transport=self._transport,
                http2=True,
            ) as client:
                response = await client.request(method, url, params=params, data=data, headers=headers)
        except httpx.TimeoutException as e:
            error = NetworkError("Request timed out", url=url)
            self._log_failure(error, method)
            raise error from e
        except httpx.RequestError as e:
            error = NetworkError(f"Request failed: {e}", url=url)
            self._log_failure(error, method)
            raise error from e

        if not response.is_success:
            error = NetworkError(_error_message(response), status_code=response.status_code, url=url)
            self._log_failure(error, method)
            raise error

        logger.log(
            log_level,
            "modio_response_received",
            extra={"method": method, "url": url, "status_code": response.status_code},
        )
        return response

    async def get_all_mods(
        self, request_filter: RequestFilter, offset: int, limit: int,
    ) -> RequestPage[ModProfile]:
        """Fetch one page of the game's mods matching a filter."""
        params = {**request_filter.to_query_params(), "_offset": offset, "_limit": limit}
        response = await self._send("GET", f"{self._game_path}/mods", params=params)
        return _parse_page(response.json())

    async def get_mod(self, mod_id: int) -> ModProfile:
        """Fetch a single mod."""
        response = await self._send("GET", f"{self._game_path}/mods/{mod_id}")
        return ModProfile.model_validate(response.json())

    async def get_mods_by_ids(self, mod_ids: list[int]) -> list[ModProfile]:
        """Fetch the mods with the given ids using an id-in filter, one page per max_page_size ids."""
        profiles: list[ModProfile] = []
        page_size = self._settings.max_page_size
        for start in range(0, len(mod_ids), page_size):
            chunk = mod_ids[start:start + page_size]
            request_filter = RequestFilter().with_filter("id", chunk, FilterMethod.IN)
            page = await self.get_all_mods(request_filter, 0, len(chunk))
            profiles.extend(page.items)
        return profiles

    async def get_user_subscriptions(
        self, request_filter: RequestFilter, offset: int, limit: int,
    ) -> RequestPage[ModProfile]:
        """Fetch one page of the authenticated user's subscriptions."""
        params = {**request_filter.to_query_params(), "_offset": offset, "_limit": limit}
        response = await self._send("GET", "/me/subscribed", params=params, authenticated=True)
        return _parse_page(response.json())

    async def subscribe_to_mod(self, mod_id: int) -> None:
        """Subscribe the authenticated user to a mod."""
        await self._send("POST", f"{self._game_path}/mods/{mod_id}/subscribe", authenticated=True)

    async def unsubscribe_from_mod(self, mod_id: int) -> None:
        """Unsubscribe the authenticated user from a mod."""
        await self._send("DELETE", f"{self._game_path}/mods/{mod_id}/subscribe", authenticated=True)

    async def fetch_url(self, url: str) -> bytes:
        """Download raw bytes from an absolute URL."""
        response = await self._send("GET", url)
        return response.content

    async def send_security_code(self, email: str) -> None:
        """Ask the server to email a login code."""
        await self._send(
            "POST",
            "/oauth/emailrequest",
            data={"email": email},
        )

    async def get_oauth_token(self, security_code: str) -> str:
        """Exchange an emailed security code for an OAuth token."""
        response = await self._send(
            "POST",
            "/oauth/emailexchange",
            data={"security_code": security_code},
        )
        return response.json()["access_token"]

    async def get_authenticated_user(self) -> UserProfile:
        """Fetch the profile of the user owning the current token."""
        response = await self._send("GET", "/me", authenticated=True)
        return UserProfile.model_validate(response.json())
