"""
Tests for the Redis client module.

Note: The wrapped redis.asyncio calls are not exercised against a live server
here. We test the fallback behavior, which is what callers rely on when Redis
is disabled, unreachable or failing.
"""
from unittest.mock import AsyncMock, MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from modio_sync.core.redis import RedisClient, get_redis_client, set_redis_client


def _connected_client(mock_redis: MagicMock) -> RedisClient:
    client = RedisClient("redis://localhost:6379")
    client._client = mock_redis
    return client


class TestRedisFallback:
    """Tests for graceful fallback when Redis is unavailable."""

    async def test__disabled__connect_skips_server(self) -> None:
        """A disabled client never connects."""
        client = RedisClient("redis://localhost:6379", enabled=False)

        await client.connect()

        assert client.is_connected is False

    async def test__not_connected__operations_return_defaults(self) -> None:
        """Every operation has a safe default without a connection."""
        client = RedisClient("redis://localhost:6379", enabled=False)

        assert await client.ping() is False
        assert await client.get("key") is None
        assert await client.mget(["a", "b"]) == [None, None]
        assert await client.setex("key", 10, "value") is False
        assert await client.delete("key") is False

    async def test__mget__empty_keys(self) -> None:
        """No keys means no values, connected or not."""
        client = RedisClient("redis://localhost:6379", enabled=False)

        assert await client.mget([]) == []

    async def test__get__redis_error__returns_none(self) -> None:
        """A failing server is treated as a miss."""
        mock_redis = MagicMock()
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("gone"))
        client = _connected_client(mock_redis)

        assert await client.get("key") is None

    async def test__mget__redis_error__returns_all_none(self) -> None:
        """A failing MGET yields one None per key."""
        mock_redis = MagicMock()
        mock_redis.mget = AsyncMock(side_effect=RedisConnectionError("gone"))
        client = _connected_client(mock_redis)

        assert await client.mget(["a", "b", "c"]) == [None, None, None]

    async def test__setex__redis_error__returns_false(self) -> None:
        """A failing write reports False instead of raising."""
        mock_redis = MagicMock()
        mock_redis.setex = AsyncMock(side_effect=RedisConnectionError("gone"))
        client = _connected_client(mock_redis)

        assert await client.setex("key", 10, "value") is False

    async def test__setex__success__returns_true(self) -> None:
        """A successful write passes the arguments through."""
        mock_redis = MagicMock()
        mock_redis.setex = AsyncMock(return_value=True)
        client = _connected_client(mock_redis)

        assert await client.setex("key", 10, "value") is True
        mock_redis.setex.assert_awaited_once_with("key", 10, "value")

    async def test__close__releases_client(self) -> None:
        """Closing drops the connection."""
        mock_redis = MagicMock()
        mock_redis.aclose = AsyncMock()
        client = _connected_client(mock_redis)

        await client.close()

        assert client.is_connected is False
        mock_redis.aclose.assert_awaited_once()


class TestGlobalClient:
    """Tests for the global client accessors."""

    def test__set_and_get(self) -> None:
        """The global client can be set and cleared."""
        client = RedisClient("redis://localhost:6379", enabled=False)

        set_redis_client(client)
        assert get_redis_client() is client

        set_redis_client(None)
        assert get_redis_client() is None
