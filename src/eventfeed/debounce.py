"""Debounce a rapidly changing value into quiescence-triggered emissions."""

from __future__ import annotations

import asyncio
import logging
from typing import Generic, TypeVar

from eventfeed.duration import parse_duration
from eventfeed.signals import Signal
from eventfeed.types import Duration

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NOTHING = object()


class DebounceFilter(Generic[T]):
    """Emit only the latest pushed value once ``delay`` passes with no new push.

    Usage:
        debounce = DebounceFilter[str]("300ms")
        debounce.emitted.subscribe(print)
        debounce.push("a")
        debounce.push("au")
        debounce.push("aus")  # prints "aus" once, 300ms later
    """

    def __init__(self, delay: Duration = "300ms", *, initial: T | None = None) -> None:
        self._delay = parse_duration(delay)
        self._handle: asyncio.TimerHandle | None = None
        self._pending: object = _NOTHING
        self._closed = False
        self.value: T | None = initial
        self.emitted: Signal[T] = Signal()

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def is_pending(self) -> bool:
        return self._handle is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, value: T) -> None:
        """Replace any pending value and restart the quiet-period timer."""
        if self._closed:
            logger.debug("Ignoring push to closed debounce filter")
            return
        self._cancel_timer()
        self._pending = value
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        """Drop the pending value without emitting it."""
        self._cancel_timer()
        self._pending = _NOTHING

    def flush(self) -> None:
        """Emit the pending value now, if there is one."""
        if self._handle is None:
            return
        self._cancel_timer()
        self._fire()

    def close(self) -> None:
        """Cancel the pending timer. Nothing is emitted after close."""
        self.cancel()
        self._closed = True
        self.emitted.clear()

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        value, self._pending = self._pending, _NOTHING
        if value is _NOTHING or self._closed:
            return
        self.value = value  # type: ignore[assignment]
        self.emitted.emit(value)  # type: ignore[arg-type]


__all__ = ["DebounceFilter"]
