"""Resolve URL and typed search text into one canonical QueryDescriptor."""

from __future__ import annotations

import logging

from eventfeed.debounce import DebounceFilter
from eventfeed.signals import Signal
from eventfeed.types import Duration, Order, QueryDescriptor, SortBy

logger = logging.getLogger(__name__)


def resolve_query(
    url_search: str | None,
    local_search: str | None,
    *,
    sort_by: SortBy = SortBy.DATE,
    order: Order = Order.ASC,
) -> QueryDescriptor:
    """Merge both search sources. A non-empty URL term always wins."""
    url_term = (url_search or "").strip()
    local_term = (local_search or "").strip()
    return QueryDescriptor(
        search=url_term or local_term,
        sort_by=SortBy(sort_by),
        order=Order(order),
    )


class QueryKeyResolver:
    """Tracks search inputs and publishes the resolved descriptor on change.

    URL changes (navigation) and sort changes apply immediately; typed text
    goes through a DebounceFilter first. ``changed`` fires only when the
    resolved descriptor differs from the previous one.
    """

    def __init__(
        self,
        *,
        debounce: Duration = "300ms",
        sort_by: SortBy = SortBy.DATE,
        order: Order = Order.ASC,
    ) -> None:
        self._url_search = ""
        self._local_search = ""
        self._sort_by = SortBy(sort_by)
        self._order = Order(order)
        self._debounce: DebounceFilter[str] = DebounceFilter(debounce, initial="")
        self._debounce.emitted.subscribe(self._on_local_settled)
        self.changed: Signal[QueryDescriptor] = Signal()
        self._current = self._resolve()

    @property
    def current(self) -> QueryDescriptor:
        return self._current

    @property
    def url_search(self) -> str:
        return self._url_search

    @property
    def local_search(self) -> str:
        """The debounced local search text currently applied."""
        return self._local_search

    @property
    def is_pending(self) -> bool:
        return self._debounce.is_pending

    def set_url_search(self, value: str | None) -> None:
        self._url_search = value or ""
        self._recompute()

    def type(self, value: str) -> None:
        """Record a keystroke; applied once typing pauses."""
        self._debounce.push(value)

    def set_sort(self, sort_by: SortBy, order: Order) -> None:
        self._sort_by = SortBy(sort_by)
        self._order = Order(order)
        self._recompute()

    def clear_local(self) -> None:
        """Clear typed text immediately, including any pending keystrokes."""
        self._debounce.cancel()
        self._local_search = ""
        self._recompute()

    def close(self) -> None:
        self._debounce.close()
        self.changed.clear()

    def _on_local_settled(self, value: str) -> None:
        self._local_search = value
        self._recompute()

    def _resolve(self) -> QueryDescriptor:
        return resolve_query(
            self._url_search,
            self._local_search,
            sort_by=self._sort_by,
            order=self._order,
        )

    def _recompute(self) -> None:
        resolved = self._resolve()
        if resolved == self._current:
            return
        logger.debug("Query changed: %r -> %r", self._current, resolved)
        self._current = resolved
        self.changed.emit(resolved)


__all__ = ["QueryKeyResolver", "resolve_query"]
