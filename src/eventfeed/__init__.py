"""eventfeed - Search, pagination and caching for infinite event lists."""

# Composition
from eventfeed.config import Settings
from eventfeed.debounce import DebounceFilter

# Duration parsing
from eventfeed.duration import parse_duration
from eventfeed.engine import PaginatedFetchEngine

# Errors
from eventfeed.errors import (
    EventFeedError,
    MalformedResponseError,
    NetworkError,
    QueryValidationError,
)
from eventfeed.grid import GridController, GridState
from eventfeed.logging_config import setup_logging
from eventfeed.resolver import QueryKeyResolver, resolve_query

# Wire schemas
from eventfeed.schemas import Event, EventsRequest, EventsResponse
from eventfeed.scroll import ObserverOptions, ScrollTrigger, VisibilityObserver
from eventfeed.signals import Signal, Subscription

# Sources
from eventfeed.sources import EventSource, HttpEventSource, MemoryEventSource
from eventfeed.store import CacheStore, Observation

# Core types
from eventfeed.types import (
    CacheEntry,
    Duration,
    EntryStatus,
    ErrorInfo,
    ErrorKind,
    Order,
    Page,
    QueryDescriptor,
    SortBy,
)

__version__ = "0.1.0"

__all__ = [
    "CacheEntry",
    "CacheStore",
    "DebounceFilter",
    "Duration",
    "EntryStatus",
    "ErrorInfo",
    "ErrorKind",
    "Event",
    "EventFeedError",
    "EventSource",
    "EventsRequest",
    "EventsResponse",
    "GridController",
    "GridState",
    "HttpEventSource",
    "MalformedResponseError",
    "MemoryEventSource",
    "NetworkError",
    "Observation",
    "ObserverOptions",
    "Order",
    "Page",
    "PaginatedFetchEngine",
    "QueryDescriptor",
    "QueryKeyResolver",
    "QueryValidationError",
    "ScrollTrigger",
    "Settings",
    "Signal",
    "SortBy",
    "Subscription",
    "VisibilityObserver",
    "parse_duration",
    "resolve_query",
    "setup_logging",
]
