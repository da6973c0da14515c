"""Cache store: freshness, coalescing, invalidation and subscriptions."""

import asyncio

import pytest

from core.domain.keys import CacheKey, KeyPattern
from core.services.cache_store import CacheStore, EntryStatus

PRODUCTS = CacheKey("products", "page=1&limit=20")
PRODUCT = CacheKey("product", "id=1")


class CountingLoader:
    def __init__(self, *values):
        self.values = list(values) or ["value"]
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.values[min(self.calls, len(self.values)) - 1]


class GatedLoader:
    """Loader that blocks until `release()` so tests can observe in-flight state."""

    def __init__(self, value="value"):
        self.value = value
        self.calls = 0
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self):
        self._gate.set()

    async def __call__(self):
        self.calls += 1
        self.started.set()
        await self._gate.wait()
        return self.value


@pytest.mark.asyncio
async def test_fresh_entry_is_served_without_loading(clock):
    store = CacheStore(clock=clock)
    loader = CountingLoader("a")

    assert await store.read(PRODUCTS, loader, 60) == "a"
    clock.advance(59)
    assert await store.read(PRODUCTS, loader, 60) == "a"

    assert loader.calls == 1
    assert store.peek(PRODUCTS) == "a"
    assert store.entry(PRODUCTS).status is EntryStatus.FRESH


@pytest.mark.asyncio
async def test_entry_past_its_window_is_reloaded(clock):
    store = CacheStore(clock=clock)
    loader = CountingLoader("a", "b")

    await store.read(PRODUCTS, loader, 60)
    clock.advance(60)

    assert store.peek(PRODUCTS) is None
    assert store.entry(PRODUCTS).status is EntryStatus.STALE
    assert await store.read(PRODUCTS, loader, 60) == "b"
    assert loader.calls == 2


@pytest.mark.asyncio
async def test_default_window_applies_without_explicit_one(clock):
    store = CacheStore(default_stale_window=10, clock=clock)
    loader = CountingLoader("a", "b")

    await store.read(PRODUCTS, loader)
    assert store.entry(PRODUCTS).stale_after == clock.now + 10


@pytest.mark.asyncio
async def test_concurrent_reads_share_one_load():
    store = CacheStore()
    loader = GatedLoader("shared")

    first = asyncio.create_task(store.read(PRODUCTS, loader))
    second = asyncio.create_task(store.read(PRODUCTS, loader))
    await loader.started.wait()
    assert store.entry(PRODUCTS).status is EntryStatus.IN_FLIGHT

    loader.release()
    assert await asyncio.gather(first, second) == ["shared", "shared"]
    assert loader.calls == 1


@pytest.mark.asyncio
async def test_different_keys_load_independently():
    store = CacheStore()
    a, b = GatedLoader("a"), GatedLoader("b")

    task_a = asyncio.create_task(store.read(PRODUCTS, a))
    task_b = asyncio.create_task(store.read(PRODUCT, b))
    await a.started.wait()
    await b.started.wait()

    b.release()
    assert await task_b == "b"
    assert not task_a.done()
    a.release()
    assert await task_a == "a"


@pytest.mark.asyncio
async def test_invalidate_forces_refetch():
    store = CacheStore()
    loader = CountingLoader("old", "new")

    await store.read(PRODUCT, loader)
    store.invalidate(PRODUCT)

    assert store.entry(PRODUCT).status is EntryStatus.STALE
    assert store.entry(PRODUCT).value == "old"
    assert await store.read(PRODUCT, loader) == "new"
    assert loader.calls == 2


@pytest.mark.asyncio
async def test_invalidation_during_load_discards_the_result():
    store = CacheStore()
    slow = GatedLoader("before-write")

    waiter = asyncio.create_task(store.read(PRODUCT, slow))
    await slow.started.wait()
    store.invalidate(PRODUCT)

    # A read after the invalidation must not join the detached load.
    fresh = CountingLoader("after-write")
    assert await store.read(PRODUCT, fresh) == "after-write"

    slow.release()
    assert await waiter == "before-write"
    assert store.peek(PRODUCT) == "after-write"


@pytest.mark.asyncio
async def test_invalidate_prefix_covers_sub_resources_only():
    store = CacheStore()
    search = CacheKey("products.search", "q=lamp")
    for key in (PRODUCTS, search, PRODUCT):
        await store.read(key, CountingLoader(str(key)))

    invalidated = store.invalidate_prefix("products")

    assert invalidated == sorted([PRODUCTS, search])
    assert store.peek(PRODUCT) == "product?id=1"
    assert store.peek(PRODUCTS) is None
    assert store.peek(search) is None


@pytest.mark.asyncio
async def test_invalidate_matching_exact_key():
    store = CacheStore()
    other = CacheKey("product", "id=2")
    await store.read(PRODUCT, CountingLoader())
    await store.read(other, CountingLoader())

    assert store.invalidate_matching(KeyPattern.parse("product?id=1")) == [PRODUCT]
    assert store.peek(other) == "value"


@pytest.mark.asyncio
async def test_loader_error_reaches_every_waiter_and_is_retried():
    store = CacheStore()
    gate = asyncio.Event()
    calls = 0

    async def flaky():
        nonlocal calls
        calls += 1
        if calls == 1:
            await gate.wait()
            raise RuntimeError("backend down")
        return "recovered"

    first = asyncio.create_task(store.read(PRODUCTS, flaky))
    second = asyncio.create_task(store.read(PRODUCTS, flaky))
    await asyncio.sleep(0)
    gate.set()
    results = await asyncio.gather(first, second, return_exceptions=True)

    assert [type(r) for r in results] == [RuntimeError, RuntimeError]
    entry = store.entry(PRODUCTS)
    assert entry.status is EntryStatus.ERROR
    assert isinstance(entry.error, RuntimeError)

    assert await store.read(PRODUCTS, flaky) == "recovered"
    assert calls == 2
    assert store.entry(PRODUCTS).error is None


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_shared_load():
    store = CacheStore()
    loader = GatedLoader("kept")

    impatient = asyncio.create_task(store.read(PRODUCTS, loader))
    patient = asyncio.create_task(store.read(PRODUCTS, loader))
    await loader.started.wait()
    impatient.cancel()
    await asyncio.sleep(0)

    loader.release()
    assert await patient == "kept"
    assert impatient.cancelled()
    assert store.peek(PRODUCTS) == "kept"


@pytest.mark.asyncio
async def test_subscribers_see_each_transition_until_unsubscribed():
    store = CacheStore()
    seen = []
    unsubscribe = store.subscribe(PRODUCTS, lambda entry: seen.append(entry.status))

    await store.read(PRODUCTS, CountingLoader())
    store.invalidate(PRODUCTS)
    unsubscribe()
    await store.read(PRODUCTS, CountingLoader())

    assert seen == [EntryStatus.IN_FLIGHT, EntryStatus.FRESH, EntryStatus.STALE]


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_break_the_store():
    store = CacheStore()
    store.subscribe(PRODUCTS, lambda entry: 1 / 0)

    assert await store.read(PRODUCTS, CountingLoader("ok")) == "ok"


@pytest.mark.asyncio
async def test_entries_are_immutable_snapshots():
    store = CacheStore()
    await store.read(PRODUCTS, CountingLoader())
    entry = store.entry(PRODUCTS)

    with pytest.raises(AttributeError):
        entry.status = EntryStatus.STALE


@pytest.mark.asyncio
async def test_clear_drops_everything():
    store = CacheStore()
    await store.read(PRODUCTS, CountingLoader())
    store.clear()

    assert store.keys() == []
    assert store.entry(PRODUCTS) is None


@pytest.mark.asyncio
async def test_clear_tells_subscribers_the_value_is_gone():
    store = CacheStore()
    seen = []
    store.subscribe(PRODUCTS, lambda entry: seen.append((entry.status, entry.value)))
    await store.read(PRODUCTS, CountingLoader("mine"))

    store.clear()

    assert seen == [
        (EntryStatus.IN_FLIGHT, None),
        (EntryStatus.FRESH, "mine"),
        (EntryStatus.STALE, None),
    ]
    assert store.entry(PRODUCTS) is None


@pytest.mark.asyncio
async def test_clear_detaches_a_load_in_flight():
    store = CacheStore()
    slow = GatedLoader("old")
    seen = []
    store.subscribe(PRODUCT, lambda entry: seen.append(entry.status))

    waiter = asyncio.create_task(store.read(PRODUCT, slow))
    await slow.started.wait()
    store.clear()
    slow.release()

    assert await waiter == "old"
    assert store.entry(PRODUCT) is None
    assert seen == [EntryStatus.IN_FLIGHT, EntryStatus.STALE]
    assert await store.read(PRODUCT, CountingLoader("new")) == "new"
