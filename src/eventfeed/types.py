"""Core types for the eventfeed pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from eventfeed.schemas import Event

# Duration type alias
Duration = str | int | float  # "300ms", "30s", "5m", "2h", "1d" or seconds


class SortBy(str, Enum):
    DATE = "date"
    NAME = "name"
    PRICE = "price"


class Order(str, Enum):
    ASC = "asc"
    DESC = "desc"


class EntryStatus(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    FETCHING_NEXT = "fetchingNext"
    ERROR = "error"
    SUCCESS = "success"


class ErrorKind(str, Enum):
    NETWORK = "network"
    VALIDATION = "validation"
    PARTIAL_EXTENSION = "partial-extension"


@dataclass(frozen=True, slots=True)
class QueryDescriptor:
    """Canonical query; one cache entry per distinct descriptor."""

    search: str = ""
    sort_by: SortBy = SortBy.DATE
    order: Order = Order.ASC


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """A recorded fetch failure."""

    kind: ErrorKind
    message: str
    exception: BaseException | None = None


@dataclass(frozen=True, slots=True)
class Page:
    """One page of results. A ``None`` cursor means no further pages."""

    items: tuple[Event, ...]
    cursor: str | None
    fetched_at: float
    total_count: int | None = None

    @property
    def has_more(self) -> bool:
        return self.cursor is not None


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Cached pages for a query with fetch status and freshness metadata."""

    key: QueryDescriptor
    pages: tuple[Page, ...] = ()
    status: EntryStatus = EntryStatus.IDLE
    error: ErrorInfo | None = None
    stale_at: float = 0.0  # Monotonic seconds
    last_observed_at: float = 0.0

    @property
    def items(self) -> list[Event]:
        """All items in page order, then item order."""
        return [item for page in self.pages for item in page.items]

    @property
    def has_more(self) -> bool:
        return bool(self.pages) and self.pages[-1].has_more

    @property
    def total_count(self) -> int | None:
        for page in reversed(self.pages):
            if page.total_count is not None:
                return page.total_count
        return None

    @property
    def is_fetching(self) -> bool:
        return self.status in (EntryStatus.FETCHING, EntryStatus.FETCHING_NEXT)
