"""Event sources for the eventfeed pipeline."""

from eventfeed.sources.base import EventSource
from eventfeed.sources.http import HttpEventSource
from eventfeed.sources.memory import MemoryEventSource

__all__ = [
    "EventSource",
    "HttpEventSource",
    "MemoryEventSource",
]
