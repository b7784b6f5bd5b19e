"""GridController - the consumer-facing state of an infinite event list.

Wires the pieces together:
- QueryKeyResolver turns URL and typed search into the current descriptor
- CacheStore holds pages per descriptor, observed while displayed
- PaginatedFetchEngine fetches and appends pages
- ScrollTrigger asks for the next page when the sentinel shows up

Consumers read ``state`` (or the individual properties) and subscribe to
``changed`` to re-render.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any

from eventfeed.config import Settings
from eventfeed.engine import PaginatedFetchEngine
from eventfeed.resolver import QueryKeyResolver
from eventfeed.schemas import Event
from eventfeed.scroll import ScrollTrigger, VisibilityObserver
from eventfeed.signals import Signal
from eventfeed.sources.base import EventSource
from eventfeed.sources.http import HttpEventSource
from eventfeed.store import CacheStore, Observation
from eventfeed.types import (
    CacheEntry,
    EntryStatus,
    ErrorInfo,
    Order,
    QueryDescriptor,
    SortBy,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GridState:
    """Snapshot of what the event list should show."""

    query: QueryDescriptor
    events: tuple[Event, ...] = ()
    is_loading: bool = False
    is_fetching_next: bool = False
    has_more: bool = False
    error: ErrorInfo | None = None
    total_count: int | None = None

    @classmethod
    def from_entry(cls, query: QueryDescriptor, entry: CacheEntry | None) -> GridState:
        if entry is None:
            return cls(query=query)
        return cls(
            query=query,
            events=tuple(entry.items),
            is_loading=entry.status is EntryStatus.FETCHING and not entry.pages,
            is_fetching_next=entry.status is EntryStatus.FETCHING_NEXT,
            has_more=entry.has_more,
            error=entry.error,
            total_count=entry.total_count,
        )


class GridController:
    """Composes resolver, cache, fetch engine and scroll trigger.

    Usage:
        grid = GridController(MemoryEventSource(events))
        grid.changed.subscribe(render)
        await grid.start()
        grid.type_search("aus")
        grid.attach_sentinel(observer, sentinel)
    """

    def __init__(
        self,
        source: EventSource,
        *,
        settings: Settings | None = None,
        store: CacheStore | None = None,
        resolver: QueryKeyResolver | None = None,
        engine: PaginatedFetchEngine | None = None,
    ) -> None:
        self._settings = settings or Settings()
        if engine is not None:
            self._store = engine.store
            self._engine = engine
        else:
            self._store = store or CacheStore(
                stale_time=self._settings.stale_time,
                gc_time=self._settings.gc_time,
            )
            self._engine = PaginatedFetchEngine(
                source, self._store, page_size=self._settings.page_size
            )
        self._resolver = resolver or QueryKeyResolver(
            debounce=self._settings.search_debounce
        )
        self._observation: Observation | None = None
        self._trigger: ScrollTrigger | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._started = False
        self.changed: Signal[GridState] = Signal()
        self._resolver_subscription = self._resolver.changed.subscribe(
            self._on_query_changed
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GridController:
        """Build a controller talking HTTP to ``settings.api_base_url``."""
        settings = settings or Settings.from_env()
        source = HttpEventSource(
            settings.api_base_url,
            path=settings.events_path,
            timeout=settings.request_timeout,
        )
        return cls(source, settings=settings)

    # -------------------------------------------------------------------------
    # Reactive surface
    # -------------------------------------------------------------------------

    @property
    def query(self) -> QueryDescriptor:
        return self._resolver.current

    @property
    def entry(self) -> CacheEntry | None:
        return self._store.peek(self.query)

    @property
    def state(self) -> GridState:
        return GridState.from_entry(self.query, self.entry)

    @property
    def events(self) -> list[Event]:
        return list(self.state.events)

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def is_fetching_next(self) -> bool:
        return self.state.is_fetching_next

    @property
    def has_more(self) -> bool:
        return self.state.has_more

    @property
    def error(self) -> ErrorInfo | None:
        return self.state.error

    @property
    def total_count(self) -> int | None:
        return self.state.total_count

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def engine(self) -> PaginatedFetchEngine:
        return self._engine

    @property
    def resolver(self) -> QueryKeyResolver:
        return self._resolver

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def set_url_search(self, value: str | None) -> None:
        self._resolver.set_url_search(value)

    def type_search(self, value: str) -> None:
        self._resolver.type(value)

    def set_sort(self, sort_by: SortBy, order: Order) -> None:
        self._resolver.set_sort(sort_by, order)

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def start(self) -> GridState:
        """Begin observing the current query and load it."""
        if not self._started:
            self._started = True
            self._switch(self.query)
        await self._engine.load(self.query)
        return self.state

    async def fetch_next(self) -> GridState:
        await self._engine.fetch_next(self.query)
        return self.state

    async def refetch(self) -> GridState:
        """Drop the current query's pages and load again from page one."""
        await self._engine.refetch(self.query)
        return self.state

    async def refresh(self) -> GridState:
        """Clear typed search text, then refetch whatever query results."""
        self._resolver.clear_local()
        return await self.refetch()

    def attach_sentinel(
        self, observer: VisibilityObserver, sentinel: Any
    ) -> ScrollTrigger:
        """Start loading further pages when ``sentinel`` becomes visible."""
        if self._trigger is not None:
            self._trigger.close()
        self._trigger = ScrollTrigger(
            observer,
            sentinel,
            self._engine_fetch_next,
            self._can_fetch_next,
            root_margin=self._settings.root_margin,
            threshold=self._settings.threshold,
            load_more_delay=self._settings.load_more_delay,
        )
        self._trigger.start()
        return self._trigger

    async def wait_idle(self) -> None:
        """Wait for background loads started by query changes."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        if self._trigger is not None:
            self._trigger.close()
            self._trigger = None
        self._resolver_subscription.cancel()
        self._resolver.close()
        if self._observation is not None:
            self._observation.cancel()
            self._observation = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._engine.aclose()
        self._store.close()
        self.changed.clear()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _engine_fetch_next(self) -> CacheEntry | None:
        return await self._engine.fetch_next(self.query)

    def _can_fetch_next(self) -> bool:
        entry = self.entry
        return entry is not None and entry.has_more and not entry.is_fetching

    def _on_query_changed(self, key: QueryDescriptor) -> None:
        if not self._started:
            return
        self._switch(key)
        self._spawn(self._engine.load(key))

    def _switch(self, key: QueryDescriptor) -> None:
        if self._observation is not None and self._observation.key == key:
            return
        logger.debug("Grid now showing %r", key)
        self._engine.activate(key)
        observation = self._store.observe(key, self._on_entry)
        if self._observation is not None:
            self._observation.cancel()
        self._observation = observation
        self._publish()

    def _on_entry(self, entry: CacheEntry) -> None:
        if entry.key == self.query:
            self._publish()

    def _publish(self) -> None:
        self.changed.emit(self.state)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(_log_task_failure)


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Loading events failed", exc_info=exc)


__all__ = ["GridController", "GridState"]
