"""Load the next page when a sentinel element scrolls into view."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from eventfeed.debounce import DebounceFilter
from eventfeed.duration import parse_duration
from eventfeed.types import Duration

logger = logging.getLogger(__name__)

_LENGTH = r"-?\d+(?:\.\d+)?(?:px|%)"
_MARGIN_PATTERN = re.compile(rf"^{_LENGTH}(?:\s+{_LENGTH}){{0,3}}$")

VisibilityCallback = Callable[[bool], None]


@dataclass(frozen=True, slots=True)
class ObserverOptions:
    """Intersection options: a CSS-style root margin and a visibility threshold."""

    root_margin: str = "200px"
    threshold: float = 0.1

    def __post_init__(self) -> None:
        if not _MARGIN_PATTERN.match(self.root_margin.strip()):
            raise ValueError(f"Invalid root margin: {self.root_margin!r}")
        if not 0 <= self.threshold <= 1:
            raise ValueError("threshold must be between 0 and 1")


@runtime_checkable
class VisibilityObserver(Protocol):
    """Capability for watching an element's visibility in a scroll container."""

    def observe(
        self, element: Any, callback: VisibilityCallback, options: ObserverOptions
    ) -> None:
        """Start reporting visibility changes of ``element`` to ``callback``."""
        ...

    def unobserve(self, element: Any) -> None:
        """Stop watching ``element``."""
        ...


class ScrollTrigger:
    """Requests the next page whenever the sentinel becomes visible.

    ``can_fetch`` is consulted on every visibility report; the trigger itself
    never has more than one fetch running, and the engine ignores next-page
    requests while one is in flight, so a sentinel that stays visible yields
    one fetch per page rather than a loop.
    """

    def __init__(
        self,
        observer: VisibilityObserver,
        sentinel: Any,
        fetch_next: Callable[[], Awaitable[Any]],
        can_fetch: Callable[[], bool],
        *,
        root_margin: str = "200px",
        threshold: float = 0.1,
        enabled: bool = True,
        load_more_delay: Duration = 0,
    ) -> None:
        self._observer = observer
        self._sentinel = sentinel
        self._fetch_next = fetch_next
        self._can_fetch = can_fetch
        self._options = ObserverOptions(root_margin=root_margin, threshold=threshold)
        self._enabled = enabled
        self._visible = False
        self._observing = False
        self._task: asyncio.Task[Any] | None = None
        self._delay: DebounceFilter[bool] | None = None
        if parse_duration(load_more_delay) > 0:
            self._delay = DebounceFilter(load_more_delay)
            self._delay.emitted.subscribe(lambda _: self._maybe_fetch())

    @property
    def options(self) -> ObserverOptions:
        return self._options

    @property
    def visible(self) -> bool:
        return self._visible

    @property
    def observing(self) -> bool:
        return self._observing

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._enabled = value
        if value:
            self.check()
        elif self._delay is not None:
            self._delay.cancel()

    @property
    def fetching(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._observing:
            return
        self._observer.observe(self._sentinel, self._on_visibility, self._options)
        self._observing = True

    def stop(self) -> None:
        if not self._observing:
            return
        self._observer.unobserve(self._sentinel)
        self._observing = False
        self._visible = False
        if self._delay is not None:
            self._delay.cancel()

    def close(self) -> None:
        self.stop()
        if self._delay is not None:
            self._delay.close()

    def check(self) -> None:
        """Re-evaluate with the last reported visibility."""
        if self._visible:
            self._request()

    def _on_visibility(self, visible: bool) -> None:
        self._visible = visible
        if visible:
            self._request()
        elif self._delay is not None:
            self._delay.cancel()

    def _request(self) -> None:
        if self._delay is not None:
            self._delay.push(True)
        else:
            self._maybe_fetch()

    def _maybe_fetch(self) -> None:
        if not (self._enabled and self._observing and self._visible):
            return
        if self.fetching or not self._can_fetch():
            return
        logger.debug("Sentinel visible; requesting next page")
        self._task = asyncio.ensure_future(self._fetch_next())
        self._task.add_done_callback(self._on_fetch_done)

    def _on_fetch_done(self, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Loading next page failed", exc_info=exc)


__all__ = ["ObserverOptions", "ScrollTrigger", "VisibilityObserver"]
