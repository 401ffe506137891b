"""Durable local storage."""
from modio_sync.storage.profile_store import RedisProfileStore
from modio_sync.storage.user_data import LocalUserStore

__all__ = ["LocalUserStore", "RedisProfileStore"]
