"""
Coalescing of concurrent requests for the same key.

At most one fetch per key is outstanding at any time. Callers arriving while a
fetch is in flight await the same task and receive the same value or the same
exception. Successful results can be kept for later cache hits.
"""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Generic, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

logger = logging.getLogger(__name__)


class InFlightRequestCoalescer(Generic[K, V]):
    """
    Runs at most one fetch per key and shares its outcome with every waiting caller.

    Args:
        fetch: Coroutine function performing the underlying request for a key.
        cache_results: Keep successful results for future calls.
        clear_cache_on_deactivate: Drop cached results on deactivate(), and do not
            retain results that arrive while inactive.
    """

    def __init__(
        self,
        fetch: Callable[[K], Awaitable[V]],
        cache_results: bool = True,
        clear_cache_on_deactivate: bool = True,
    ) -> None:
        self._fetch = fetch
        self._cache_results = cache_results
        self._clear_cache_on_deactivate = clear_cache_on_deactivate
        self._cache: dict[K, V] = {}
        self._in_flight: dict[K, asyncio.Task[V]] = {}
        self._is_active = True

    @property
    def is_active(self) -> bool:
        """Whether the coalescer is active (see deactivate)."""
        return self._is_active

    @property
    def in_flight_count(self) -> int:
        """Number of keys with an outstanding fetch."""
        return len(self._in_flight)

    def is_in_flight(self, key: K) -> bool:
        """True while a fetch for key is outstanding."""
        return key in self._in_flight

    def get_cached(self, key: K) -> V | None:
        """Return the cached result for key without fetching."""
        return self._cache.get(key)

    async def request(self, key: K) -> V:
        """
        Return the value for key, fetching it if needed.

        Cached values are returned without awaiting the network. A key already in
        flight attaches to the outstanding fetch instead of starting another.

        Raises:
            Whatever the underlying fetch raised, delivered to every waiting caller.
        """
        if key in self._cache:
            return self._cache[key]

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key))
            self._in_flight[key] = task
            logger.debug("request_started", extra={"key": str(key)})
        else:
            logger.debug("request_coalesced", extra={"key": str(key)})

        # Shielded so one cancelled caller does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _run(self, key: K) -> V:
        try:
            value = await self._fetch(key)
        finally:
            # Leave the registry before any waiter resumes, so a waiter that
            # requests the same key again starts a new episode
            self._in_flight.pop(key, None)

        if self._cache_results and (self._is_active or not self._clear_cache_on_deactivate):
            self._cache[key] = value
        return value

    def activate(self) -> None:
        """Mark the coalescer active."""
        self._is_active = True

    def deactivate(self) -> None:
        """Mark the coalescer inactive, clearing cached results if configured to."""
        self._is_active = False
        if self._clear_cache_on_deactivate:
            self._cache.clear()

    def clear(self) -> None:
        """Drop all cached results. Outstanding fetches are unaffected."""
        self._cache.clear()
