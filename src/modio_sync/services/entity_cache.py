"""
Id-addressed entity cache with a local-store fallback.

Lookups resolve through three tiers in order: the in-memory map, an optional
durable local store, then the network. Anything found in a lower tier is
promoted into memory. The map is unbounded and only emptied by clear().
"""
import logging
from collections.abc import Awaitable, Callable, Hashable, Iterable
from operator import attrgetter
from typing import Generic, Protocol, TypeVar

from modio_sync.services.coalescer import InFlightRequestCoalescer

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")

logger = logging.getLogger(__name__)


class LocalEntityStore(Protocol[K, T]):
    """Durable local storage consulted before the network."""

    async def load_by_id(self, entity_id: K) -> T | None:
        """Return the stored entity, or None."""
        ...

    async def load_by_ids(self, entity_ids: list[K]) -> list[T]:
        """Return whichever of the entities are stored, in any order."""
        ...


class EntityCache(Generic[K, T]):
    """
    Cache of entities by id.

    Args:
        fetch_by_id: Coroutine fetching one entity from the network.
        fetch_by_ids: Coroutine fetching several entities; ids the server does not
            know are simply absent from the result.
        local_store: Optional durable store checked before the network. When it
            has a save() coroutine, network results are written through to it.
        get_id: Extracts the id from an entity.
    """

    def __init__(
        self,
        fetch_by_id: Callable[[K], Awaitable[T]],
        fetch_by_ids: Callable[[list[K]], Awaitable[list[T]]],
        local_store: LocalEntityStore[K, T] | None = None,
        get_id: Callable[[T], K] = attrgetter("id"),
    ) -> None:
        self._fetch_by_id = fetch_by_id
        self._fetch_by_ids = fetch_by_ids
        self._local_store = local_store
        self._get_id = get_id
        self._entities: dict[K, T] = {}
        # Results land in self._entities, so the coalescer does not keep its own copy
        self._pending = InFlightRequestCoalescer(self._fetch_and_store, cache_results=False)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def get_cached(self, entity_id: K) -> T | None:
        """Return the in-memory entity without consulting the store or network."""
        return self._entities.get(entity_id)

    def store(self, entities: Iterable[T]) -> None:
        """Insert entities obtained elsewhere, replacing existing entries with the same id."""
        for entity in entities:
            self._entities[self._get_id(entity)] = entity

    async def get_by_id(self, entity_id: K) -> T:
        """
        Return the entity with the given id.

        Concurrent calls for an id that is not cached share one network request.

        Raises:
            NetworkError: If the entity had to be fetched and the request failed.
        """
        entity = self._entities.get(entity_id)
        if entity is not None:
            return entity

        if self._local_store is not None:
            entity = await self._local_store.load_by_id(entity_id)
            if entity is not None:
                self._entities[entity_id] = entity
                return entity

        return await self._pending.request(entity_id)

    async def _fetch_and_store(self, entity_id: K) -> T:
        # Runs once per coalesced fetch, however many callers are waiting
        entity = await self._fetch_by_id(entity_id)
        self._entities[entity_id] = entity
        await self._write_through([entity])
        return entity

    async def get_by_ids(self, entity_ids: list[K]) -> list[T | None]:
        """
        Return the entities for an ordered list of ids.

        The result has the same length and order as entity_ids. Only ids missing
        from memory and the local store are fetched, in a single batch. Ids the
        server does not return are None in the result.

        Raises:
            NetworkError: If the batch request failed.
        """
        results: list[T | None] = [self._entities.get(entity_id) for entity_id in entity_ids]
        missing = list(dict.fromkeys(
            entity_id for entity_id, entity in zip(entity_ids, results, strict=True) if entity is None
        ))
        if not missing:
            return results

        if self._local_store is not None:
            loaded = await self._local_store.load_by_ids(missing)
            self.store(loaded)
            found = {self._get_id(entity) for entity in loaded}
            missing = [entity_id for entity_id in missing if entity_id not in found]

        if missing:
            fetched = await self._fetch_by_ids(missing)
            requested = set(missing)
            fetched = [entity for entity in fetched if self._get_id(entity) in requested]
            self.store(fetched)
            await self._write_through(fetched)
            unresolved = requested - {self._get_id(entity) for entity in fetched}
            if unresolved:
                logger.info("entities_not_found", extra={"entity_ids": sorted(unresolved, key=str)})

        return [
            entity if entity is not None else self._entities.get(entity_id)
            for entity_id, entity in zip(entity_ids, results, strict=True)
        ]

    async def _write_through(self, entities: list[T]) -> None:
        save = getattr(self._local_store, "save", None)
        if save is not None and entities:
            await save(entities)

    def clear(self) -> None:
        """Drop every cached entity."""
        self._entities.clear()
