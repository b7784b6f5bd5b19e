"""Paginated fetching on top of the CacheStore.

This module sequences every network fetch the pipeline makes:
- fetch_first(): first page, coalesced per key (one request in flight)
- fetch_next(): next page, serialized per key, appended in issue order
- load(): read-through with stale-while-revalidate
- refetch(): invalidate and start again from page one

Each fetch carries a token taken when it starts. The token combines the
engine generation (bumped whenever the active query changes) with a per-key
counter (bumped when the key is invalidated or evicted). A fetch whose token
no longer matches when it completes is dropped without touching the cache.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from eventfeed.errors import EventFeedError, NetworkError, QueryValidationError
from eventfeed.schemas import EventsRequest, EventsResponse
from eventfeed.sources.base import EventSource
from eventfeed.store import CacheStore
from eventfeed.types import (
    CacheEntry,
    EntryStatus,
    ErrorInfo,
    ErrorKind,
    Page,
    QueryDescriptor,
)

logger = logging.getLogger(__name__)

_Token = tuple[int, int]


class PaginatedFetchEngine:
    """Executes page fetches for query descriptors and records them in a store."""

    def __init__(
        self,
        source: EventSource,
        store: CacheStore,
        *,
        page_size: int = 18,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be at least 1")
        self._source = source
        self._store = store
        self._page_size = page_size
        self._generation = 0
        self._active: QueryDescriptor | None = None
        self._key_tokens: dict[QueryDescriptor, int] = {}
        self._first: dict[QueryDescriptor, tuple[_Token, asyncio.Task[CacheEntry]]] = {}
        self._next: dict[QueryDescriptor, tuple[_Token, asyncio.Task[CacheEntry]]] = {}
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._subscriptions = [
            store.invalidated.subscribe(self._supersede),
            store.evicted.subscribe(self._supersede),
        ]

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def active(self) -> QueryDescriptor | None:
        return self._active

    @property
    def generation(self) -> int:
        return self._generation

    def activate(self, key: QueryDescriptor) -> None:
        """Make ``key`` the current query; fetches for earlier queries are dropped."""
        if key == self._active:
            return
        self._generation += 1
        self._active = key
        logger.debug("Activated %r (generation %d)", key, self._generation)

    def in_flight(self, key: QueryDescriptor) -> bool:
        first = self._first.get(key)
        return (first is not None and not first[1].done()) or key in self._next

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def fetch_first(self, key: QueryDescriptor) -> CacheEntry:
        """Fetch the first page of ``key``, joining an in-flight fetch if any.

        A next-page fetch still running for ``key`` is superseded: its page
        belongs to the page list this fetch replaces.
        """
        in_next = self._next.get(key)
        if in_next is not None and in_next[0] == self._token(key):
            self._supersede(key)
        token = self._token(key)
        in_flight = self._first.get(key)
        if in_flight is not None and in_flight[0] == token and not in_flight[1].done():
            logger.debug("Coalescing first-page fetch for %r", key)
            return await asyncio.shield(in_flight[1])

        self._store.update(key, status=EntryStatus.FETCHING, error=None)
        task = asyncio.create_task(self._load_from_start(key, token, 1, False))
        self._track(task)
        self._first[key] = (token, task)
        task.add_done_callback(lambda t: self._forget(self._first, key, t))
        return await asyncio.shield(task)

    async def fetch_next(self, key: QueryDescriptor) -> CacheEntry | None:
        """Append the next page of ``key``.

        A no-op when there is no further page or a fetch for ``key`` is
        already in flight.
        """
        entry = self._store.get(key)
        if entry is None or not entry.has_more:
            logger.debug("No further pages for %r", key)
            return entry
        if entry.is_fetching or key in self._next:
            logger.debug("Ignoring fetch_next for %r while a fetch is in flight", key)
            return entry

        token = self._token(key)
        cursor = entry.pages[-1].cursor
        self._store.update(key, status=EntryStatus.FETCHING_NEXT, error=None)
        task = asyncio.create_task(self._load_next(key, token, cursor))
        self._track(task)
        self._next[key] = (token, task)
        task.add_done_callback(lambda t: self._forget(self._next, key, t))
        return await asyncio.shield(task)

    async def load(self, key: QueryDescriptor) -> CacheEntry:
        """Read-through access used when a consumer starts showing ``key``.

        Fresh data is returned as is; stale data is returned immediately and
        refreshed in the background; a miss fetches the first page. A failed
        first page stays failed until ``refetch``.
        """
        entry = self._store.get(key)
        if entry is None or (not entry.pages and entry.status is not EntryStatus.ERROR):
            return await self.fetch_first(key)
        if not entry.pages:
            return entry
        if self._store.is_stale(entry):
            logger.debug("Serving stale %r while revalidating", key)
            self.revalidate(key)
        else:
            logger.debug("Cache hit for %r", key)
        return entry

    def revalidate(self, key: QueryDescriptor) -> asyncio.Task[CacheEntry] | None:
        """Refresh every loaded page of ``key`` in the background.

        The page list is replaced only once all pages arrive; until then the
        cached pages stay visible.
        """
        entry = self._store.peek(key)
        if entry is None or not entry.pages or entry.is_fetching:
            return None
        token = self._token(key)
        self._store.update(key, status=EntryStatus.FETCHING)
        task = asyncio.create_task(
            self._load_from_start(key, token, len(entry.pages), True)
        )
        self._track(task)
        self._first[key] = (token, task)
        task.add_done_callback(lambda t: self._forget(self._first, key, t))
        return task

    async def refetch(self, key: QueryDescriptor) -> CacheEntry:
        """Discard cached pages for ``key`` and fetch from page one."""
        self._store.invalidate(key)
        return await self.fetch_first(key)

    async def aclose(self) -> None:
        """Cancel outstanding fetches and close the source."""
        for subscription in self._subscriptions:
            subscription.cancel()
        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self._source.close()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _token(self, key: QueryDescriptor) -> _Token:
        return (self._generation, self._key_tokens.get(key, 0))

    def _is_current(self, key: QueryDescriptor, token: _Token) -> bool:
        return token == self._token(key)

    def _supersede(self, key: QueryDescriptor) -> None:
        self._key_tokens[key] = self._key_tokens.get(key, 0) + 1

    async def _request(
        self, key: QueryDescriptor, cursor: str | None
    ) -> EventsResponse:
        request = EventsRequest.build(key, cursor=cursor, limit=self._page_size)
        logger.debug("Fetching %r cursor=%s", key, cursor)
        try:
            return await self._source.fetch_events(request)
        except EventFeedError:
            raise
        except Exception as e:
            raise NetworkError(f"Event source failed: {e}") from e

    def _to_page(self, response: EventsResponse) -> Page:
        return Page(
            items=tuple(response.data),
            cursor=response.next_cursor if response.has_more else None,
            fetched_at=self._store.now(),
            total_count=response.total_count,
        )

    async def _load_from_start(
        self,
        key: QueryDescriptor,
        token: _Token,
        page_count: int,
        background: bool,
    ) -> CacheEntry:
        pages: list[Page] = []
        cursor: str | None = None
        try:
            for _ in range(page_count):
                response = await self._request(key, cursor)
                if not self._is_current(key, token):
                    return self._drop(key)
                page = self._to_page(response)
                pages.append(page)
                cursor = page.cursor
                if cursor is None:
                    break
        except EventFeedError as e:
            if not self._is_current(key, token):
                return self._drop(key)
            kind = (
                ErrorKind.VALIDATION
                if isinstance(e, QueryValidationError)
                else ErrorKind.NETWORK
            )
            logger.warning("Fetching first page of %r failed: %s", key, e)
            error = ErrorInfo(kind=kind, message=str(e), exception=e)
            if background:
                # Stale pages remain the best data available
                return self._store.update(key, status=EntryStatus.ERROR, error=error)
            return self._store.update(
                key, pages=(), status=EntryStatus.ERROR, error=error
            )

        return self._store.update(
            key,
            pages=tuple(pages),
            status=EntryStatus.SUCCESS,
            error=None,
            stale_at=self._store.fresh_until(),
        )

    async def _load_next(
        self, key: QueryDescriptor, token: _Token, cursor: str | None
    ) -> CacheEntry:
        try:
            response = await self._request(key, cursor)
        except EventFeedError as e:
            if not self._is_current(key, token):
                return self._drop(key)
            logger.warning("Fetching next page of %r failed: %s", key, e)
            error = ErrorInfo(
                kind=ErrorKind.PARTIAL_EXTENSION, message=str(e), exception=e
            )
            return self._store.update(key, status=EntryStatus.ERROR, error=error)

        if not self._is_current(key, token):
            return self._drop(key)
        entry = self._store.get_or_create(key)
        return self._store.update(
            key,
            pages=(*entry.pages, self._to_page(response)),
            status=EntryStatus.SUCCESS,
            error=None,
            stale_at=self._store.fresh_until(),
        )

    def _drop(self, key: QueryDescriptor) -> CacheEntry:
        """Discard a superseded result and settle a status it left behind."""
        logger.debug("Dropping superseded response for %r", key)
        entry = self._store.peek(key)
        if entry is None:
            return CacheEntry(key=key)
        if entry.is_fetching and not self._has_current_fetch(key):
            status = EntryStatus.SUCCESS if entry.pages else EntryStatus.IDLE
            return self._store.update(key, status=status)
        return entry

    def _has_current_fetch(self, key: QueryDescriptor) -> bool:
        token = self._token(key)
        for registry in (self._first, self._next):
            in_flight = registry.get(key)
            if in_flight is not None and in_flight[0] == token:
                if not in_flight[1].done():
                    return True
        return False

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(_log_task_failure)

    @staticmethod
    def _forget(
        registry: dict[QueryDescriptor, tuple[_Token, asyncio.Task[CacheEntry]]],
        key: QueryDescriptor,
        task: asyncio.Task[CacheEntry],
    ) -> None:
        in_flight = registry.get(key)
        if in_flight is not None and in_flight[1] is task:
            del registry[key]


def _log_task_failure(task: asyncio.Task[Any]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Fetch task failed", exc_info=exc)


__all__ = ["PaginatedFetchEngine"]
