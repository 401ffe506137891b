"""Subscription reconciliation and request caching for mod.io game clients."""
from modio_sync.app import ModioContext

__all__ = ["ModioContext"]
