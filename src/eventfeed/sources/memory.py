"""In-memory event source."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from eventfeed.errors import QueryValidationError
from eventfeed.schemas import Event, EventsRequest, EventsResponse
from eventfeed.types import Order, SortBy


def _matches(event: Event, term: str) -> bool:
    haystacks = (
        event.name,
        event.location,
        event.organizer,
        event.slug,
        event.city or "",
        event.city_slug or "",
    )
    return any(term in value.lower() for value in haystacks)


class MemoryEventSource:
    """Serves pages from a fixed list of events with offset cursors."""

    def __init__(self, events: Iterable[Event], *, latency: float = 0.0) -> None:
        self._events = list(events)
        self._latency = latency
        self.requests: list[EventsRequest] = []

    async def fetch_events(self, request: EventsRequest) -> EventsResponse:
        """Filter, sort and slice the stored events."""
        self.requests.append(request)
        if self._latency:
            await asyncio.sleep(self._latency)

        offset = self._decode_cursor(request.cursor)
        matched = self._query(request.search, request.sort_by, request.order)
        page = matched[offset : offset + request.limit]
        end = offset + len(page)
        has_more = end < len(matched)
        return EventsResponse(
            data=page,
            next_cursor=str(end) if has_more else None,
            has_more=has_more,
            total_count=len(matched),
        )

    async def close(self) -> None:
        """Nothing to release (no-op for memory)."""
        pass

    def _query(self, search: str, sort_by: SortBy, order: Order) -> list[Event]:
        term = search.strip().lower()
        events = [e for e in self._events if not term or _matches(e, term)]
        if sort_by is SortBy.NAME:
            events.sort(key=lambda e: (e.name.lower(), e.id))
        elif sort_by is SortBy.PRICE:
            events.sort(key=lambda e: (e.price, e.id))
        else:
            events.sort(key=lambda e: (e.date, e.id))
        if order is Order.DESC:
            events.reverse()
        return events

    @staticmethod
    def _decode_cursor(cursor: str | None) -> int:
        if cursor is None:
            return 0
        if not cursor.isdigit():
            raise QueryValidationError(f"Invalid cursor: {cursor!r}")
        return int(cursor)
