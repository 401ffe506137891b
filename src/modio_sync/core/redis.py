"""Redis client with connection pooling and graceful fallback."""
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

R = TypeVar("R")


class RedisClient:
    """
    Async Redis client used as an optional local cache tier.

    Redis is never required: when it is disabled, unreachable, or an operation
    fails, every method returns a miss-like default (None, False, or a list of
    None) so callers fall through to the network.
    """

    def __init__(self, url: str, enabled: bool = True, max_connections: int = 10) -> None:
        self._url = url
        self._enabled = enabled
        self._max_connections = max_connections
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Create the connection pool and check the server answers."""
        if not self._enabled:
            logger.info("redis_disabled")
            return
        try:
            self._pool = ConnectionPool.from_url(self._url, max_connections=self._max_connections)
            self._client = Redis(connection_pool=self._pool)
            await self._client.ping()
            logger.info("redis_connected", extra={"redis_url": self._url})
        except RedisError as e:
            logger.warning("redis_connect_failed", extra={"redis_url": self._url, "error": str(e)})
            self._client = None
            self._pool = None

    async def close(self) -> None:
        """Close the connection pool."""
        if self._client:
            await self._client.aclose()
            self._client = None
            self._pool = None
            logger.info("redis_closed")

    @property
    def is_connected(self) -> bool:
        """True once connect() has reached the server."""
        return self._client is not None

    async def _run(
        self, operation: str, call: Callable[[Redis], Awaitable[R]], default: R,
    ) -> R:
        """Run a command, returning default when there is no client or the command fails."""
        if not self._client:
            return default
        try:
            return await call(self._client)
        except RedisError as e:
            logger.warning("redis_command_failed", extra={"operation": operation, "error": str(e)})
            return default

    async def ping(self) -> bool:
        """Check Redis connectivity."""
        return await self._run("PING", lambda r: r.ping(), False)

    async def get(self, key: str) -> bytes | None:
        """Get a value, or None on a miss."""
        return await self._run("GET", lambda r: r.get(key), None)

    async def mget(self, keys: list[str]) -> list[bytes | None]:
        """Get several values in one round trip, None for each miss."""
        if not keys:
            return []
        return await self._run("MGET", lambda r: r.mget(keys), [None] * len(keys))

    async def setex(self, key: str, seconds: int, value: str | bytes) -> bool:
        """Set a value with an expiry. Returns False if it was not stored."""
        async def _setex(r: Redis) -> bool:
            await r.setex(key, seconds, value)
            return True

        return await self._run("SETEX", _setex, False)

    async def delete(self, *keys: str) -> bool:
        """Delete keys. Returns False if Redis could not be reached."""
        async def _delete(r: Redis) -> bool:
            await r.delete(*keys)
            return True

        return await self._run("DELETE", _delete, False)


class _RedisState:
    """Holder for the process-wide client installed by ModioContext.start()."""

    client: RedisClient | None = None


_state = _RedisState()


def get_redis_client() -> RedisClient | None:
    """Return the process-wide Redis client, if one is installed."""
    return _state.client


def set_redis_client(client: RedisClient | None) -> None:
    """Install (or remove, with None) the process-wide Redis client."""
    _state.client = client
