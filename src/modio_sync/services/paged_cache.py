"""
Cache of paginated query results.

Each distinct filter owns one contiguous window of results. Pages fetched for
the same filter are merged into that window, so later requests for any
sub-range already fetched are answered without a network call.
"""
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from modio_sync.schemas.mod import RequestPage

F = TypeVar("F", bound=Hashable)
T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class CachedWindow(Generic[T]):
    """
    Contiguous cached results for one filter.

    items[i] is the result at logical index offset + i. A None slot has not been
    fetched yet.
    """

    offset: int
    result_total: int
    items: list[T | None] = field(default_factory=list)

    @property
    def end_index(self) -> int:
        """Exclusive logical index one past the last slot."""
        return self.offset + len(self.items)

    @classmethod
    def from_page(cls, page: RequestPage[T]) -> "CachedWindow[T]":
        """Create a window holding a single page."""
        return cls(offset=page.offset, result_total=page.result_total, items=list(page.items))


def combine_pages(window: CachedWindow[T], page: RequestPage[T]) -> CachedWindow[T]:
    """
    Merge a page into a window of the same query.

    The result spans from the lower of the two offsets to the higher of the two
    end indices. Indices supplied by the page overwrite the window's slots; gaps
    between non-adjacent ranges are left as None.

    If the two disagree on result_total the server's results changed since the
    window was filled, so its slots may have shifted. The mismatch is logged and
    the window is replaced by the page.
    """
    if window.result_total != page.result_total:
        logger.warning(
            "logic_violation",
            extra={
                "detail": "result_total changed between pages of the same query",
                "cached_total": window.result_total,
                "page_total": page.result_total,
            },
        )
        return CachedWindow.from_page(page)

    offset = min(window.offset, page.offset)
    end_index = max(window.end_index, page.end_index)
    items: list[T | None] = [None] * (end_index - offset)

    start = window.offset - offset
    items[start:start + len(window.items)] = window.items
    start = page.offset - offset
    items[start:start + len(page.items)] = page.items

    return CachedWindow(offset=offset, result_total=window.result_total, items=items)


class PagedResultCache(Generic[F, T]):
    """
    Offset-addressed result cache keyed by filter.

    Args:
        fetch_page: Coroutine fetching (filter, offset, limit) from the network.
    """

    def __init__(self, fetch_page: Callable[[F, int, int], Awaitable[RequestPage[T]]]) -> None:
        self._fetch_page = fetch_page
        self._windows: dict[F, CachedWindow[T]] = {}

    def get_window(self, request_filter: F) -> CachedWindow[T] | None:
        """Return the cached window for a filter, if any."""
        return self._windows.get(request_filter)

    async def fetch_page(self, request_filter: F, offset: int, count: int) -> RequestPage[T]:
        """
        Return results [offset, offset + count) for a filter.

        Served from the cache when the filter is known to be empty, the offset is
        past the end of the results, or every slot of the requested range (clamped
        to result_total) has been fetched. Otherwise the range is requested from
        the network and merged into the cache before being returned.

        Args:
            request_filter: Query key.
            offset: First logical index; negative values are treated as 0.
            count: Number of results; negative values are treated as 0.

        Raises:
            NetworkError: If the network request fails. The cache is left unchanged.
        """
        offset = max(offset, 0)
        count = max(count, 0)

        cached = self._from_cache(request_filter, offset, count)
        if cached is not None:
            return cached

        page = await self._fetch_page(request_filter, offset, count)
        self.cache_page(request_filter, page)
        return page

    def _from_cache(self, request_filter: F, offset: int, count: int) -> RequestPage[T] | None:
        window = self._windows.get(request_filter)
        if window is None:
            return None

        # Nothing matches this filter
        if window.result_total == 0:
            return RequestPage(offset=offset, size=count, result_total=0, items=[])

        # Past the end of the results
        if offset >= window.result_total:
            return RequestPage(
                offset=offset, size=count, result_total=window.result_total, items=[],
            )

        last_index = min(offset + count - 1, window.result_total - 1)
        if offset < window.offset or last_index >= window.end_index:
            return None

        items = window.items[offset - window.offset:last_index - window.offset + 1]
        if any(item is None for item in items):
            return None

        logger.debug(
            "page_cache_hit",
            extra={"offset": offset, "count": count, "result_total": window.result_total},
        )
        return RequestPage(
            offset=offset, size=count, result_total=window.result_total, items=items,
        )

    def cache_page(self, request_filter: F, page: RequestPage[T]) -> None:
        """Merge a fetched page into the window for its filter."""
        window = self._windows.get(request_filter)
        if window is None:
            self._windows[request_filter] = CachedWindow.from_page(page)
        else:
            self._windows[request_filter] = combine_pages(window, page)

    def clear(self) -> None:
        """Drop every cached window."""
        self._windows.clear()
