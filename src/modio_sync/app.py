"""Wiring of the client, stores and services for one game."""
import logging

from modio_sync.clients.base import ModioApi
from modio_sync.clients.modio import ModioHttpClient
from modio_sync.core.config import Settings, get_settings
from modio_sync.core.redis import RedisClient, get_redis_client, set_redis_client
from modio_sync.services.accounts import UserAccountManager
from modio_sync.services.images import ImageRequestManager
from modio_sync.services.mod_profiles import ModProfileRequestManager
from modio_sync.services.session import UserSession
from modio_sync.services.subscriptions import SubscriptionReconciler
from modio_sync.storage.profile_store import RedisProfileStore
from modio_sync.storage.user_data import LocalUserStore

logger = logging.getLogger(__name__)


class ModioContext:
    """
    Everything a game needs to talk to mod.io, built from one Settings object.

    Call start() before use and stop() on shutdown.
    """

    def __init__(self, settings: Settings | None = None, api: ModioApi | None = None) -> None:
        self.settings = settings or get_settings()
        self.api = api or ModioHttpClient(self.settings)
        self.session = UserSession(LocalUserStore(self.settings.user_data_path), self.api)
        self.subscriptions = SubscriptionReconciler(self.session, self.settings)
        self.accounts = UserAccountManager(self.session)
        self.profiles = ModProfileRequestManager(
            self.api, local_store=RedisProfileStore(self.settings.profile_cache_ttl),
        )
        self.images = ImageRequestManager(self.api, self.settings)
        self.accounts.register_cache(self.profiles)

    async def start(self) -> None:
        """Connect to Redis (if enabled) and load the local user."""
        if get_redis_client() is None:
            redis_client = RedisClient(self.settings.redis_url, enabled=self.settings.redis_enabled)
            await redis_client.connect()
            set_redis_client(redis_client)
        self.session.load()
        self.images.activate()
        logger.info("modio_context_started", extra={"game_id": self.settings.game_id})

    async def stop(self) -> None:
        """Release the image cache and close the Redis connection."""
        self.images.deactivate()
        redis_client = get_redis_client()
        if redis_client is not None:
            await redis_client.close()
            set_redis_client(None)
