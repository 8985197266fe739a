# storefront/grid.py
"""
Infinite-scroll product grid.

A ProductGrid accumulates catalog pages for one filter signature. The
listing page creates one per visitor and the sentinel at the bottom of the
grid asks it for the next page. States:

    IDLE -> INITIAL_LOADING -> READY <-> LOADING_MORE

A new filter signature cancels whatever fetch is running and restarts from
page 1. Every fetch carries the generation it was started under; a result
that arrives for an older generation is dropped.
"""
import asyncio
import enum
import logging
import uuid
from collections import OrderedDict
from typing import Any, Awaitable, Callable, List, Optional

from .filters import FilterState

logger = logging.getLogger("storefront.grid")

FetchPage = Callable[[FilterState, int], Awaitable[List[Any]]]


class GridStatus(str, enum.Enum):
    IDLE = "idle"
    INITIAL_LOADING = "initial_loading"
    READY = "ready"
    LOADING_MORE = "loading_more"
    CLOSED = "closed"


class ProductGrid:
    def __init__(self, fetch_page: FetchPage):
        self._fetch_page = fetch_page
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self.status = GridStatus.IDLE
        self.filters: Optional[FilterState] = None
        self.items: List[Any] = []
        self.page = 1
        self.has_more = True
        self.in_flight = 0

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_loading(self) -> bool:
        return self.status in (GridStatus.INITIAL_LOADING, GridStatus.LOADING_MORE)

    @property
    def shown_any(self) -> bool:
        """Whether the client has been sent at least one item for this signature."""
        return bool(self.items) or self.page > 1

    @property
    def is_empty(self) -> bool:
        return self.status is GridStatus.READY and not self.shown_any

    @property
    def is_exhausted(self) -> bool:
        return not self.has_more and self.shown_any

    @property
    def sentinel_armed(self) -> bool:
        return self.status is GridStatus.READY and self.has_more and self.shown_any

    async def apply_filters(self, filters: FilterState) -> bool:
        """
        Point the grid at `filters`. Reloads from page 1 when the signature
        changed (or nothing was loaded yet) and returns whether it did.
        """
        if self.status is GridStatus.CLOSED:
            return False
        if (
            self.status is not GridStatus.IDLE
            and self.filters is not None
            and self.filters.signature == filters.signature
        ):
            return False

        # Bump the generation before cancelling so the superseded caller
        # sees its fetch as stale rather than as its own cancellation.
        self._generation += 1
        generation = self._generation
        self.filters = filters
        self.items = []
        self.page = 1
        self.has_more = True
        self.status = GridStatus.INITIAL_LOADING

        try:
            await self._cancel_running()
            if generation != self._generation:
                return False
            items = await self._fetch(filters, 1, generation)
        except asyncio.CancelledError:
            # caller went away; the next apply_filters reloads from scratch
            if generation == self._generation:
                self.status = GridStatus.IDLE
            raise
        if items is None:
            return False
        self.items = list(items)
        self.has_more = len(items) > 0
        self.status = GridStatus.READY
        return True

    async def load_more(self) -> List[Any]:
        """Sentinel became visible. Returns the items appended, if any."""
        if self.status is not GridStatus.READY or not self.has_more:
            return []
        if self._task is not None:
            return []

        self.status = GridStatus.LOADING_MORE
        generation = self._generation
        next_page = self.page + 1
        try:
            items = await self._fetch(self.filters, next_page, generation)
        except asyncio.CancelledError:
            if generation == self._generation:
                self.status = GridStatus.READY
            raise
        if items is None:
            return []
        self.items.extend(items)
        self.has_more = len(items) > 0
        self.page = next_page
        self.status = GridStatus.READY
        return list(items)

    def resume(self, filters: FilterState, page: int):
        """
        Rebuild a grid the registry dropped. The client already shows pages
        1..`page` for `filters`, so the next load_more fetches page + 1.
        """
        if self.status is GridStatus.CLOSED:
            return
        self._generation += 1
        self.filters = filters
        self.items = []
        self.page = page
        self.has_more = True
        self.status = GridStatus.READY

    def close(self):
        """Teardown. Anything still in flight is cancelled and its result ignored."""
        self._generation += 1
        self.status = GridStatus.CLOSED
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _cancel_running(self):
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.wait([task])

    async def _tracked(self, filters: FilterState, page: int):
        self.in_flight += 1
        try:
            return await self._fetch_page(filters, page)
        finally:
            self.in_flight -= 1

    async def _fetch(self, filters: FilterState, page: int, generation: int):
        """
        Run one fetch. Returns the items, or None when the result belongs to
        a superseded generation. Fetch errors count as an empty page.
        """
        task = asyncio.ensure_future(self._tracked(filters, page))
        self._task = task
        try:
            items = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                logger.debug("Fetch for page %s cancelled by a newer load", page)
                return None
            raise
        except Exception:
            logger.error("Error loading page %s for %r", page, filters.signature, exc_info=True)
            items = []
        finally:
            if self._task is task:
                self._task = None

        if generation != self._generation:
            logger.debug("Discarding stale page %s (generation %s)", page, generation)
            return None
        return items


class GridRegistry:
    """Live grids by id, least recently used evicted (and closed) first."""

    def __init__(self, max_size: int = 256):
        self.max_size = max_size
        self._grids: "OrderedDict[str, ProductGrid]" = OrderedDict()

    def __len__(self):
        return len(self._grids)

    def __contains__(self, grid_id):
        return grid_id in self._grids

    def create(self, fetch_page: FetchPage, grid_id: Optional[str] = None):
        grid_id = grid_id or uuid.uuid4().hex
        grid = ProductGrid(fetch_page)
        self.discard(grid_id)
        self._grids[grid_id] = grid
        while len(self._grids) > self.max_size:
            _, evicted = self._grids.popitem(last=False)
            evicted.close()
        return grid_id, grid

    def restore(self, grid_id: str, fetch_page: FetchPage, filters: FilterState, page: int):
        """Recreate an evicted grid under its old id, picking up after `page`."""
        logger.info("Restoring grid %s at page %s", grid_id, page)
        _, grid = self.create(fetch_page, grid_id)
        grid.resume(filters, page)
        return grid

    def get(self, grid_id: str) -> ProductGrid:
        grid = self._grids[grid_id]
        self._grids.move_to_end(grid_id)
        return grid

    def discard(self, grid_id: str):
        grid = self._grids.pop(grid_id, None)
        if grid is not None:
            grid.close()

    def close_all(self):
        for grid in self._grids.values():
            grid.close()
        self._grids.clear()
