"""mod.io API clients."""
from modio_sync.clients.base import ModioApi
from modio_sync.clients.modio import ModioHttpClient

__all__ = ["ModioApi", "ModioHttpClient"]
