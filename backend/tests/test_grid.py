import asyncio
import logging

import pytest

from storefront.filters import FilterState, SortKey
from storefront.grid import GridRegistry, GridStatus, ProductGrid


class FakeCatalog:
    """Serves `total` numbered items per signature in pages of 12."""

    def __init__(self, total=30, page_size=12):
        self.total = total
        self.page_size = page_size
        self.calls = []
        self.active = 0
        self.max_active = 0
        self.gate = None
        self.grid = None
        self.seen_state = []

    async def __call__(self, filters, page):
        self.calls.append((filters.signature, page))
        if self.grid is not None:
            self.seen_state.append((list(self.grid.items), self.grid.page))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            start = (page - 1) * self.page_size
            end = min(start + self.page_size, self.total)
            return [f"{filters.category}-{i}" for i in range(start, end)]
        finally:
            self.active -= 1


@pytest.mark.asyncio
async def test_initial_load_and_paging():
    catalog = FakeCatalog(total=30)
    grid = ProductGrid(catalog)
    assert grid.status is GridStatus.IDLE

    assert await grid.apply_filters(FilterState(category="heels")) is True
    assert grid.status is GridStatus.READY
    assert len(grid.items) == 12
    assert grid.page == 1
    assert grid.has_more and grid.sentinel_armed

    assert len(await grid.load_more()) == 12
    assert len(await grid.load_more()) == 6
    assert grid.page == 3 and grid.has_more

    assert await grid.load_more() == []
    assert grid.has_more is False
    assert grid.page == 4
    assert grid.is_exhausted and not grid.sentinel_armed
    assert len(grid.items) == 30

    calls = len(catalog.calls)
    assert await grid.load_more() == []
    assert len(catalog.calls) == calls


@pytest.mark.asyncio
async def test_empty_result_is_terminal():
    grid = ProductGrid(FakeCatalog(total=0))
    await grid.apply_filters(FilterState(category="bags"))
    assert grid.is_empty
    assert not grid.is_exhausted
    assert grid.has_more is False
    assert await grid.load_more() == []


@pytest.mark.asyncio
async def test_signature_change_resets_before_fetching():
    catalog = FakeCatalog(total=30)
    grid = ProductGrid(catalog)
    catalog.grid = grid
    await grid.apply_filters(FilterState(category="heels"))
    await grid.load_more()
    assert grid.page == 2

    await grid.apply_filters(FilterState(category="heels", sort=SortKey.PRICE_ASC))
    items_at_fetch, page_at_fetch = catalog.seen_state[-1]
    assert items_at_fetch == []
    assert page_at_fetch == 1
    assert catalog.calls[-1][1] == 1
    assert grid.page == 1
    assert len(grid.items) == 12


@pytest.mark.asyncio
async def test_same_signature_does_not_reload():
    catalog = FakeCatalog()
    grid = ProductGrid(catalog)
    await grid.apply_filters(FilterState(category="heels"))
    assert await grid.apply_filters(FilterState(category="heels", page=5)) is False
    assert len(catalog.calls) == 1


@pytest.mark.asyncio
async def test_concurrent_load_more_issues_one_fetch():
    catalog = FakeCatalog(total=50)
    grid = ProductGrid(catalog)
    await grid.apply_filters(FilterState())
    catalog.gate = asyncio.Event()

    pending = [asyncio.ensure_future(grid.load_more()) for _ in range(3)]
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert grid.status is GridStatus.LOADING_MORE
    assert grid.in_flight == 1
    catalog.gate.set()
    results = await asyncio.gather(*pending)

    assert sorted(len(r) for r in results) == [0, 0, 12]
    assert catalog.max_active == 1
    assert grid.page == 2


@pytest.mark.asyncio
async def test_no_load_more_during_initial_load():
    catalog = FakeCatalog()
    catalog.gate = asyncio.Event()
    grid = ProductGrid(catalog)

    initial = asyncio.ensure_future(grid.apply_filters(FilterState()))
    await asyncio.sleep(0)
    assert grid.status is GridStatus.INITIAL_LOADING
    assert await grid.load_more() == []

    catalog.gate.set()
    await initial
    assert [page for _, page in catalog.calls] == [1]
    assert catalog.max_active == 1


@pytest.mark.asyncio
async def test_new_signature_cancels_running_fetch():
    catalog = FakeCatalog()
    catalog.gate = asyncio.Event()
    grid = ProductGrid(catalog)

    first = asyncio.ensure_future(grid.apply_filters(FilterState(category="heels")))
    await asyncio.sleep(0)
    second = asyncio.ensure_future(grid.apply_filters(FilterState(category="sandals")))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    catalog.gate.set()

    assert await first is False
    assert await second is True
    assert catalog.max_active == 1
    assert grid.items[0] == "sandals-0"
    assert grid.filters.category == "sandals"


@pytest.mark.asyncio
async def test_late_result_from_old_signature_is_discarded():
    gate = asyncio.Event()

    async def stubborn(filters, page):
        # ignores cancellation and answers anyway, like a request already on the wire
        if filters.category == "heels":
            try:
                await gate.wait()
            except asyncio.CancelledError:
                return ["stale"]
        return [f"{filters.category}-fresh"]

    grid = ProductGrid(stubborn)
    first = asyncio.ensure_future(grid.apply_filters(FilterState(category="heels")))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    await grid.apply_filters(FilterState(category="bags"))

    assert await first is False
    assert grid.items == ["bags-fresh"]
    assert grid.generation == 2


@pytest.mark.asyncio
async def test_fetch_error_lands_in_ready_with_nothing(caplog):
    async def failing(filters, page):
        raise RuntimeError("database unreachable")

    grid = ProductGrid(failing)
    with caplog.at_level(logging.ERROR, logger="storefront.grid"):
        assert await grid.apply_filters(FilterState()) is True
    assert grid.status is GridStatus.READY
    assert grid.is_empty
    assert caplog.records


@pytest.mark.asyncio
async def test_close_ignores_in_flight_result():
    catalog = FakeCatalog()
    grid = ProductGrid(catalog)
    await grid.apply_filters(FilterState())
    catalog.gate = asyncio.Event()

    more = asyncio.ensure_future(grid.load_more())
    await asyncio.sleep(0)
    grid.close()
    catalog.gate.set()

    assert await more == []
    assert grid.status is GridStatus.CLOSED
    assert len(grid.items) == 12
    assert await grid.apply_filters(FilterState(category="bags")) is False


@pytest.mark.asyncio
async def test_registry_evicts_and_closes_oldest():
    registry = GridRegistry(max_size=2)
    first_id, first = registry.create(FakeCatalog())
    second_id, _ = registry.create(FakeCatalog())
    registry.get(first_id)
    third_id, _ = registry.create(FakeCatalog())

    assert len(registry) == 2
    assert second_id not in registry
    assert first_id in registry and third_id in registry
    with pytest.raises(KeyError):
        registry.get(second_id)

    registry.discard(first_id)
    assert first.status is GridStatus.CLOSED
    registry.close_all()
    assert len(registry) == 0


@pytest.mark.asyncio
async def test_dropped_load_more_leaves_grid_usable():
    catalog = FakeCatalog(total=50)
    grid = ProductGrid(catalog)
    await grid.apply_filters(FilterState())
    catalog.gate = asyncio.Event()

    more = asyncio.ensure_future(grid.load_more())
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    assert grid.status is GridStatus.LOADING_MORE
    more.cancel()
    with pytest.raises(asyncio.CancelledError):
        await more
    catalog.gate.set()

    assert grid.status is GridStatus.READY
    assert grid.page == 1 and len(grid.items) == 12
    assert grid.in_flight == 0
    assert len(await grid.load_more()) == 12
    assert grid.page == 2
    assert catalog.calls[-1][1] == 2


@pytest.mark.asyncio
async def test_dropped_initial_load_reloads_next_time():
    catalog = FakeCatalog(total=30)
    catalog.gate = asyncio.Event()
    grid = ProductGrid(catalog)

    initial = asyncio.ensure_future(grid.apply_filters(FilterState(category="heels")))
    await asyncio.sleep(0)
    await asyncio.sleep(0)
    initial.cancel()
    with pytest.raises(asyncio.CancelledError):
        await initial
    assert grid.status is GridStatus.IDLE

    catalog.gate.set()
    assert await grid.apply_filters(FilterState(category="heels")) is True
    assert grid.status is GridStatus.READY
    assert len(grid.items) == 12


@pytest.mark.asyncio
async def test_restored_grid_continues_after_the_shown_pages():
    catalog = FakeCatalog(total=30)
    registry = GridRegistry(max_size=4)
    grid = registry.restore("abc123", catalog, FilterState(category="heels"), 2)

    assert "abc123" in registry
    assert grid.status is GridStatus.READY
    assert not grid.is_empty

    more = await grid.load_more()
    assert more == [f"heels-{i}" for i in range(24, 30)]
    assert catalog.calls == [(FilterState(category="heels").signature, 3)]
    assert grid.sentinel_armed

    assert await grid.load_more() == []
    assert grid.is_exhausted and not grid.is_empty
