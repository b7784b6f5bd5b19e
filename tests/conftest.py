"""Shared pytest fixtures."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from eventfeed import (
    CacheStore,
    Event,
    EventsRequest,
    EventsResponse,
    MemoryEventSource,
    ObserverOptions,
)

_BASE_DATE = datetime(2025, 9, 1, 18, 0, tzinfo=timezone.utc)
_CITIES = ["Austin", "Boston", "Chicago"]


def make_event(id: int, **overrides: Any) -> Event:
    """Build an event with predictable fields."""
    city = _CITIES[id % len(_CITIES)]
    fields: dict[str, Any] = {
        "id": id,
        "slug": f"event-{id}",
        "name": f"Event {id:03d}",
        "date": _BASE_DATE + timedelta(days=id),
        "price": float(id % 7) * 10,
        "location": f"{city} Hall",
        "organizer": f"Organizer {id % 4}",
        "city": city,
        "city_slug": city.lower(),
    }
    fields.update(overrides)
    return Event(**fields)


class PendingCall:
    """A fetch the test answers by hand."""

    def __init__(self, request: EventsRequest) -> None:
        self.request = request
        self.future: asyncio.Future[EventsResponse] = (
            asyncio.get_running_loop().create_future()
        )

    def respond(
        self,
        items: list[Event],
        *,
        next_cursor: str | None = None,
        has_more: bool | None = None,
        total_count: int | None = None,
    ) -> None:
        self.future.set_result(
            EventsResponse(
                data=items,
                next_cursor=next_cursor,
                has_more=next_cursor is not None if has_more is None else has_more,
                total_count=total_count,
            )
        )

    def fail(self, exc: BaseException) -> None:
        self.future.set_exception(exc)


class ControlledSource:
    """Event source whose responses are released by the test."""

    def __init__(self) -> None:
        self.calls: list[PendingCall] = []
        self.closed = False

    async def fetch_events(self, request: EventsRequest) -> EventsResponse:
        call = PendingCall(request)
        self.calls.append(call)
        return await call.future

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeObserver:
    """Visibility observer driven by the test instead of a rendering surface."""

    def __init__(self) -> None:
        self.callbacks: dict[Any, Callable[[bool], None]] = {}
        self.options: dict[Any, ObserverOptions] = {}

    def observe(
        self, element: Any, callback: Callable[[bool], None], options: ObserverOptions
    ) -> None:
        self.callbacks[element] = callback
        self.options[element] = options

    def unobserve(self, element: Any) -> None:
        self.callbacks.pop(element, None)
        self.options.pop(element, None)

    def set_visible(self, element: Any, visible: bool) -> None:
        callback = self.callbacks.get(element)
        if callback is not None:
            callback(visible)


async def settle(rounds: int = 10) -> None:
    """Let scheduled tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def events() -> list[Event]:
    """Forty events, dated one day apart."""
    return [make_event(i) for i in range(1, 41)]


@pytest.fixture
def memory_source(events: list[Event]) -> MemoryEventSource:
    return MemoryEventSource(events)


@pytest.fixture
def controlled_source() -> ControlledSource:
    return ControlledSource()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> CacheStore:
    """Store on a fake clock with a 5 minute freshness window."""
    return CacheStore(stale_time="5m", gc_time="10m", clock=clock)


@pytest.fixture
def observer() -> FakeObserver:
    return FakeObserver()


@pytest.fixture
def event_factory() -> Callable[..., Event]:
    return make_event


@pytest.fixture
def settle_loop() -> Callable[..., Any]:
    return settle
