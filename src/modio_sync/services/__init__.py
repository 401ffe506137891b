"""Caching and subscription services."""
from modio_sync.services.accounts import UserAccountManager
from modio_sync.services.coalescer import InFlightRequestCoalescer
from modio_sync.services.entity_cache import EntityCache, LocalEntityStore
from modio_sync.services.images import ImageRequestManager
from modio_sync.services.mod_profiles import ModProfileRequestManager
from modio_sync.services.paged_cache import CachedWindow, PagedResultCache, combine_pages
from modio_sync.services.session import UserSession
from modio_sync.services.subscriptions import SubscriptionReconciler

__all__ = [
    "CachedWindow",
    "EntityCache",
    "ImageRequestManager",
    "InFlightRequestCoalescer",
    "LocalEntityStore",
    "ModProfileRequestManager",
    "PagedResultCache",
    "SubscriptionReconciler",
    "UserAccountManager",
    "UserSession",
    "combine_pages",
]
