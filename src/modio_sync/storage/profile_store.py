"""Redis-backed local store for mod profiles."""
import logging

from pydantic import ValidationError

from modio_sync.core.redis import RedisClient, get_redis_client
from modio_sync.schemas.mod import ModProfile

logger = logging.getLogger(__name__)

KEY_PREFIX = "modio:profile:"


def profile_key(mod_id: int) -> str:
    """Redis key holding a mod profile."""
    return f"{KEY_PREFIX}{mod_id}"


class RedisProfileStore:
    """
    Stores mod profiles as JSON in Redis.

    Every operation degrades to a miss when Redis is unavailable, so callers
    simply fall through to the network.
    """

    def __init__(self, ttl_seconds: int, client: RedisClient | None = None) -> None:
        self._ttl_seconds = ttl_seconds
        self._client = client

    @property
    def _redis(self) -> RedisClient | None:
        # Fall back to the global client so the store works with app-level setup
        return self._client if self._client is not None else get_redis_client()

    def _parse(self, mod_id: int, raw: bytes | None) -> ModProfile | None:
        if raw is None:
            return None
        try:
            return ModProfile.model_validate_json(raw)
        except ValidationError:
            logger.warning("profile_store_corrupt_entry", extra={"mod_id": mod_id})
            return None

    async def load_by_id(self, entity_id: int) -> ModProfile | None:
        """Return the stored profile, or None."""
        redis_client = self._redis
        if redis_client is None:
            return None
        return self._parse(entity_id, await redis_client.get(profile_key(entity_id)))

    async def load_by_ids(self, entity_ids: list[int]) -> list[ModProfile]:
        """Return the stored profiles among entity_ids."""
        redis_client = self._redis
        if redis_client is None or not entity_ids:
            return []
        raw_values = await redis_client.mget([profile_key(mod_id) for mod_id in entity_ids])
        profiles = []
        for mod_id, raw in zip(entity_ids, raw_values, strict=True):
            profile = self._parse(mod_id, raw)
            if profile is not None:
                profiles.append(profile)
        return profiles

    async def save(self, profiles: list[ModProfile]) -> None:
        """Store profiles with the configured expiry."""
        redis_client = self._redis
        if redis_client is None:
            return
        for profile in profiles:
            await redis_client.setex(
                profile_key(profile.id), self._ttl_seconds, profile.model_dump_json(),
            )

    async def delete(self, mod_ids: list[int]) -> None:
        """Remove stored profiles."""
        redis_client = self._redis
        if redis_client is None or not mod_ids:
            return
        await redis_client.delete(*(profile_key(mod_id) for mod_id in mod_ids))
