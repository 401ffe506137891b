"""Error types raised by the mod.io client and caches."""

UNAUTHORIZED = 401
RATE_LIMITED = 429


class ModioError(Exception):
    """Base class for all errors raised by this package."""


class NetworkError(ModioError):
    """
    Raised when a request to the mod.io service fails.

    status_code is None for transport-level failures (DNS, connection refused,
    timeouts) where no HTTP response was received.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.url = url
        if status_code is None:
            super().__init__(message)
        else:
            super().__init__(f"HTTP {status_code}: {message}")

    @property
    def is_authentication_invalid(self) -> bool:
        """The server rejected the OAuth token."""
        return self.status_code == UNAUTHORIZED

    @property
    def is_rate_limited(self) -> bool:
        """The server asked the client to slow down."""
        return self.status_code == RATE_LIMITED

    @property
    def is_server_unreachable(self) -> bool:
        """No response was received, or the server failed."""
        return self.status_code is None or self.status_code >= 500  # noqa: PLR2004

    @property
    def is_request_unresolvable(self) -> bool:
        """Retrying the same request will not succeed (4xx other than 401/429)."""
        if self.status_code is None:
            return False
        return (
            400 <= self.status_code < 500  # noqa: PLR2004
            and self.status_code not in (UNAUTHORIZED, RATE_LIMITED)
        )
