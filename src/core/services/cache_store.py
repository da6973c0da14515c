"""Key-addressed query cache with staleness windows and request coalescing.

Per-key lifecycle::

    absent -> in-flight -> fresh -> stale -> in-flight -> fresh ...
                      \\-> error -> in-flight (retry on next read)

The store is single-threaded (asyncio). Identical concurrent reads share one
loader call; reads for different keys load concurrently. Entries handed out
are frozen snapshots, so callers cannot mutate store state.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable

from core.domain.keys import CacheKey, KeyPattern

logger = logging.getLogger(__name__)

Loader = Callable[[], Awaitable[Any]]
Subscriber = Callable[["CacheEntry"], None]
Clock = Callable[[], float]


class EntryStatus(str, Enum):
    FRESH = "fresh"
    STALE = "stale"
    IN_FLIGHT = "in-flight"
    ERROR = "error"


@dataclass(frozen=True)
class CacheEntry:
    key: CacheKey
    value: Any = None
    fetched_at: float | None = None
    stale_after: float | None = None
    status: EntryStatus = EntryStatus.STALE
    error: BaseException | None = None


def _mark_retrieved(future: asyncio.Future[Any]) -> None:
    # Every waiter may have been cancelled; the error already lives in the entry.
    if not future.cancelled():
        future.exception()


@dataclass
class _Pending:
    generation: int
    future: asyncio.Future[Any]


class CacheStore:
    """Process-wide query cache (one instance per running application).

    `default_stale_window` is used when `read` gets no explicit window.
    `clock` must be monotonic; it is injectable for tests.
    """

    def __init__(self, *, default_stale_window: float = 300.0, clock: Clock | None = None) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._pending: dict[CacheKey, _Pending] = {}
        self._generations = itertools.count(1)
        self._subscribers: dict[CacheKey, list[Subscriber]] = {}
        self._default_window = default_stale_window
        self._clock = clock or time.monotonic

    # ---------- reads ----------

    def _is_fresh(self, entry: CacheEntry | None) -> bool:
        if entry is None or entry.status is not EntryStatus.FRESH:
            return False
        return entry.stale_after is not None and self._clock() < entry.stale_after

    def peek(self, key: CacheKey) -> Any:
        """Return the cached value if it is fresh, else None. Never loads."""

        entry = self._entries.get(key)
        return entry.value if self._is_fresh(entry) else None

    def entry(self, key: CacheKey) -> CacheEntry | None:
        """Snapshot of the entry with its effective status (fresh entries past their window read as stale)."""

        entry = self._entries.get(key)
        if entry is not None and entry.status is EntryStatus.FRESH and not self._is_fresh(entry):
            return replace(entry, status=EntryStatus.STALE)
        return entry

    def keys(self) -> list[CacheKey]:
        return list(self._entries)

    async def read(self, key: CacheKey, loader: Loader, stale_window: float | None = None) -> Any:
        """Return the value for `key`, loading it at most once concurrently.

        Fresh entries are served without calling `loader`. If a load for the
        key is already in flight, this awaits it instead of starting another.
        Otherwise the loader runs and its result is stored with
        `stale_after = now + stale_window`. Loader errors propagate to every
        waiting caller and leave the entry in `error` state.
        """

        entry = self._entries.get(key)
        if self._is_fresh(entry):
            logger.debug("cache hit %s", key)
            return entry.value  # type: ignore[union-attr]

        pending = self._pending.get(key)
        if pending is None:
            window = self._default_window if stale_window is None else stale_window
            pending = self._start(key, loader, window)
        else:
            logger.debug("joining in-flight load %s", key)

        # A cancelled caller must not cancel the shared load.
        return await asyncio.shield(pending.future)

    def _start(self, key: CacheKey, loader: Loader, window: float) -> _Pending:
        generation = next(self._generations)
        future: asyncio.Future[Any] = asyncio.ensure_future(self._load(key, loader, window, generation))
        future.add_done_callback(_mark_retrieved)
        pending = _Pending(generation, future)
        self._pending[key] = pending
        previous = self._entries.get(key) or CacheEntry(key)
        self._set(replace(previous, status=EntryStatus.IN_FLIGHT, error=None))
        logger.debug("cache miss %s, loading", key)
        return pending

    async def _load(self, key: CacheKey, loader: Loader, window: float, generation: int) -> Any:
        try:
            value = await loader()
        except BaseException as exc:
            if self._release(key, generation):
                previous = self._entries.get(key) or CacheEntry(key)
                self._set(replace(previous, status=EntryStatus.ERROR, error=exc))
                logger.debug("load failed %s: %r", key, exc)
            raise

        if self._release(key, generation):
            now = self._clock()
            self._set(
                CacheEntry(
                    key=key,
                    value=value,
                    fetched_at=now,
                    stale_after=now + window,
                    status=EntryStatus.FRESH,
                )
            )
        else:
            logger.debug("discarding result for %s: invalidated while in flight", key)
        return value

    def _release(self, key: CacheKey, generation: int) -> bool:
        """Drop the pending slot if this load still owns it; False once detached."""

        pending = self._pending.get(key)
        if pending is None or pending.generation != generation:
            return False
        del self._pending[key]
        return True

    # ---------- invalidation ----------

    def invalidate(self, key: CacheKey) -> None:
        """Force `key` to stale; the next read re-fetches.

        A load already in flight is detached: its current awaiters still get
        its result, but it is not stored and later reads start a new load.
        """

        self._pending.pop(key, None)
        entry = self._entries.get(key)
        if entry is None:
            return
        self._set(replace(entry, status=EntryStatus.STALE))
        logger.debug("invalidated %s", key)

    def invalidate_prefix(self, resource: str) -> list[CacheKey]:
        """Invalidate every key of `resource` and of its dotted sub-resources."""

        return self.invalidate_matching(KeyPattern(resource, nested=True))

    def invalidate_matching(self, pattern: KeyPattern) -> list[CacheKey]:
        targets = {k for k in self._entries if pattern.matches(k)}
        targets.update(k for k in self._pending if pattern.matches(k))
        for key in sorted(targets):
            self.invalidate(key)
        return sorted(targets)

    def clear(self) -> None:
        """Drop every entry and detach pending loads.

        Subscribers are kept and each hears one empty `stale` snapshot for
        its key, so observers stop showing the dropped value.
        """

        dropped = set(self._entries) | set(self._pending)
        self._entries.clear()
        self._pending.clear()
        for key in sorted(dropped):
            if key in self._subscribers:
                self._notify(CacheEntry(key))
        logger.debug("cleared %d cache keys", len(dropped))

    # ---------- subscriptions ----------

    def subscribe(self, key: CacheKey, callback: Subscriber) -> Callable[[], None]:
        """Call `callback(entry)` after every transition of `key`. Returns an unsubscribe function."""

        callbacks = self._subscribers.setdefault(key, [])
        callbacks.append(callback)

        def unsubscribe() -> None:
            current = self._subscribers.get(key)
            if current and callback in current:
                current.remove(callback)
                if not current:
                    del self._subscribers[key]

        return unsubscribe

    def _set(self, entry: CacheEntry) -> None:
        self._entries[entry.key] = entry
        self._notify(entry)

    def _notify(self, entry: CacheEntry) -> None:
        for callback in list(self._subscribers.get(entry.key, ())):
            try:
                callback(entry)
            except Exception:
                logger.exception("cache subscriber failed for %s", entry.key)
