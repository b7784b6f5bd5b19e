"""In-memory cache of result pages keyed by QueryDescriptor.

Entries are immutable snapshots; every transition replaces the stored entry
and notifies the key's observers. Entries go stale after ``stale_time`` and
are evicted once nobody has observed or read them for ``gc_time``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import replace
from typing import Any

from eventfeed.duration import parse_duration
from eventfeed.signals import Signal
from eventfeed.types import CacheEntry, Duration, EntryStatus, QueryDescriptor

logger = logging.getLogger(__name__)

EntryListener = Callable[[CacheEntry], None]


class Observation:
    """Registration of an active consumer of one cache key."""

    __slots__ = ("key", "_listener", "_store")

    def __init__(
        self,
        store: CacheStore,
        key: QueryDescriptor,
        listener: EntryListener | None,
    ) -> None:
        self.key = key
        self._listener = listener
        self._store: CacheStore | None = store

    @property
    def active(self) -> bool:
        return self._store is not None

    def cancel(self) -> None:
        if self._store is not None:
            self._store.unobserve(self)

    def _notify(self, entry: CacheEntry) -> None:
        if self._listener is not None:
            self._listener(entry)


class CacheStore:
    """Read-through cache with stale tracking and observer-aware eviction."""

    def __init__(
        self,
        *,
        stale_time: Duration = "5m",
        gc_time: Duration = "10m",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._stale_time = parse_duration(stale_time)
        self._gc_time = parse_duration(gc_time)
        self._clock = clock
        self._entries: dict[QueryDescriptor, CacheEntry] = {}
        self._observers: dict[QueryDescriptor, list[Observation]] = {}
        self._gc_timers: dict[QueryDescriptor, asyncio.TimerHandle] = {}
        self.invalidated: Signal[QueryDescriptor] = Signal()
        self.evicted: Signal[QueryDescriptor] = Signal()

    @property
    def stale_time(self) -> float:
        return self._stale_time

    @property
    def gc_time(self) -> float:
        return self._gc_time

    def now(self) -> float:
        return self._clock()

    def fresh_until(self) -> float:
        """Stale deadline for data fetched right now."""
        return self.now() + self._stale_time

    def is_stale(self, entry: CacheEntry) -> bool:
        return self.now() >= entry.stale_at

    # -------------------------------------------------------------------------
    # Entry access
    # -------------------------------------------------------------------------

    def get(self, key: QueryDescriptor) -> CacheEntry | None:
        """Return the entry for ``key`` and reset its inactivity clock."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss for %r", key)
            return None
        return self._touch(entry)

    def peek(self, key: QueryDescriptor) -> CacheEntry | None:
        """Return the entry for ``key`` without counting as an access."""
        return self._entries.get(key)

    def get_or_create(self, key: QueryDescriptor) -> CacheEntry:
        entry = self.get(key)
        if entry is not None:
            return entry
        entry = CacheEntry(key=key, last_observed_at=self.now())
        self._entries[key] = entry
        self._schedule_gc(key)
        return entry

    def put(self, key: QueryDescriptor, entry: CacheEntry) -> CacheEntry:
        """Store ``entry`` and notify the key's observers."""
        if entry.key != key:
            raise ValueError(f"Entry for {entry.key!r} stored under {key!r}")
        self._entries[key] = entry
        self._schedule_gc(key)
        for observation in list(self._observers.get(key, ())):
            observation._notify(entry)
        return entry

    def update(self, key: QueryDescriptor, **changes: Any) -> CacheEntry:
        """Replace fields of the entry for ``key``, creating it if needed."""
        entry = self._entries.get(key) or CacheEntry(
            key=key, last_observed_at=self.now()
        )
        return self.put(key, replace(entry, **changes))

    def invalidate(self, key: QueryDescriptor) -> None:
        """Discard cached pages so the next access refetches from page one."""
        self.invalidated.emit(key)
        entry = self._entries.get(key)
        if entry is None:
            return
        logger.debug("Invalidating %r (%d pages)", key, len(entry.pages))
        self.put(
            key,
            replace(
                entry,
                pages=(),
                status=EntryStatus.IDLE,
                error=None,
                stale_at=0.0,
            ),
        )

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def observe(
        self, key: QueryDescriptor, listener: EntryListener | None = None
    ) -> Observation:
        """Register an active consumer; observed entries are never garbage collected."""
        self.get_or_create(key)
        observation = Observation(self, key, listener)
        self._observers.setdefault(key, []).append(observation)
        self._cancel_gc(key)
        return observation

    def unobserve(self, handle: Observation) -> None:
        if handle._store is not self:
            return
        handle._store = None
        observers = self._observers.get(handle.key, [])
        if handle in observers:
            observers.remove(handle)
        if observers:
            return
        self._observers.pop(handle.key, None)
        entry = self._entries.get(handle.key)
        if entry is not None:
            self._touch(entry)
            self._schedule_gc(handle.key)

    def observer_count(self, key: QueryDescriptor) -> int:
        return len(self._observers.get(key, ()))

    # -------------------------------------------------------------------------
    # Garbage collection
    # -------------------------------------------------------------------------

    def collect_garbage(self) -> list[QueryDescriptor]:
        """Evict every unobserved entry inactive for longer than ``gc_time``."""
        evicted = [key for key in list(self._entries) if self._is_collectable(key)]
        for key in evicted:
            self.evict(key)
        return evicted

    def evict(self, key: QueryDescriptor) -> None:
        """Drop the entry for ``key`` now, observed or not."""
        self._cancel_gc(key)
        entry = self._entries.pop(key, None)
        if entry is None:
            return
        logger.debug("Evicted %r (%d pages)", key, len(entry.pages))
        self.evicted.emit(key)

    def clear(self) -> None:
        """Evict every entry."""
        for key in list(self._entries):
            self.evict(key)

    def close(self) -> None:
        """Cancel pending GC timers."""
        for handle in self._gc_timers.values():
            handle.cancel()
        self._gc_timers.clear()

    def keys(self) -> list[QueryDescriptor]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[QueryDescriptor]:
        return iter(list(self._entries))

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _touch(self, entry: CacheEntry) -> CacheEntry:
        touched = replace(entry, last_observed_at=self.now())
        self._entries[entry.key] = touched
        return touched

    def _idle_for(self, entry: CacheEntry) -> float:
        return self.now() - entry.last_observed_at

    def _is_collectable(self, key: QueryDescriptor) -> bool:
        entry = self._entries.get(key)
        if entry is None or self._observers.get(key):
            return False
        return self._idle_for(entry) >= self._gc_time

    def _schedule_gc(self, key: QueryDescriptor, delay: float | None = None) -> None:
        if self._observers.get(key) or key in self._gc_timers:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # No loop: collect_garbage() sweeps manually
        self._gc_timers[key] = loop.call_later(
            self._gc_time if delay is None else delay, self._on_gc_timer, key
        )

    def _cancel_gc(self, key: QueryDescriptor) -> None:
        handle = self._gc_timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _on_gc_timer(self, key: QueryDescriptor) -> None:
        self._gc_timers.pop(key, None)
        entry = self._entries.get(key)
        if entry is None or self._observers.get(key):
            return
        if self._is_collectable(key):
            self.evict(key)
            return
        # Accessed since the timer was set; wait out the remainder
        remaining = max(self._gc_time - self._idle_for(entry), 0.001)
        self._schedule_gc(key, remaining)


__all__ = ["CacheStore", "Observation"]
