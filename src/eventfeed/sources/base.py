"""Base protocol for event sources."""

from typing import Protocol, runtime_checkable

from eventfeed.schemas import EventsRequest, EventsResponse


@runtime_checkable
class EventSource(Protocol):
    """Async source of event pages.

    Implementations raise ``NetworkError`` (or a subclass) when a page cannot
    be delivered.
    """

    async def fetch_events(self, request: EventsRequest) -> EventsResponse:
        """Fetch one page of events."""
        ...

    async def close(self) -> None:
        """Release any resources held by the source."""
        ...
