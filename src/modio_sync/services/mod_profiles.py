"""Service for mod profile lookups backed by the page and entity caches."""
from modio_sync.clients.base import ModioApi
from modio_sync.schemas.filters import RequestFilter
from modio_sync.schemas.mod import ModProfile, RequestPage
from modio_sync.services.entity_cache import EntityCache, LocalEntityStore
from modio_sync.services.paged_cache import PagedResultCache


class ModProfileRequestManager:
    """
    Answers mod profile queries from cache where possible.

    Every page fetched through fetch_mod_profile_page also feeds the profile
    cache, so browsing a list makes later single-profile lookups free.
    """

    def __init__(
        self,
        api: ModioApi,
        local_store: LocalEntityStore[int, ModProfile] | None = None,
    ) -> None:
        self._api = api
        self.request_cache: PagedResultCache[RequestFilter, ModProfile] = PagedResultCache(
            self._fetch_and_store_page,
        )
        self.profile_cache: EntityCache[int, ModProfile] = EntityCache(
            fetch_by_id=api.get_mod,
            fetch_by_ids=api.get_mods_by_ids,
            local_store=local_store,
        )

    async def _fetch_and_store_page(
        self, request_filter: RequestFilter, offset: int, limit: int,
    ) -> RequestPage[ModProfile]:
        page = await self._api.get_all_mods(request_filter, offset, limit)
        self.profile_cache.store(page.items)
        return page

    async def fetch_mod_profile_page(
        self, request_filter: RequestFilter, offset: int, count: int,
    ) -> RequestPage[ModProfile]:
        """Return mod profiles [offset, offset + count) matching a filter."""
        return await self.request_cache.fetch_page(request_filter, offset, count)

    async def get_mod_profile(self, mod_id: int) -> ModProfile:
        """Return a single mod profile."""
        return await self.profile_cache.get_by_id(mod_id)

    async def get_mod_profiles(self, mod_ids: list[int]) -> list[ModProfile | None]:
        """Return mod profiles in the order of mod_ids; unknown mods are None."""
        return await self.profile_cache.get_by_ids(mod_ids)

    def clear(self) -> None:
        """Drop cached pages and profiles."""
        self.request_cache.clear()
        self.profile_cache.clear()
