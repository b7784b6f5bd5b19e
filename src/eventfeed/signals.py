"""Minimal publish/subscribe primitives.

Consumers register callbacks on a ``Signal`` and get back a ``Subscription``;
cancelling the subscription removes the callback. Callbacks run synchronously
in subscription order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle for a registered callback."""

    __slots__ = ("_signal", "_callback")

    def __init__(self, signal: Signal[Any], callback: Callable[[Any], None]) -> None:
        self._signal: Signal[Any] | None = signal
        self._callback = callback

    @property
    def active(self) -> bool:
        return self._signal is not None

    def cancel(self) -> None:
        """Remove the callback. Safe to call more than once."""
        if self._signal is not None:
            self._signal._remove(self)
            self._signal = None

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()


class Signal(Generic[T]):
    """A list of callbacks invoked with each emitted value."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(self, callback: Callable[[T], None]) -> Subscription:
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def emit(self, value: T) -> None:
        # Snapshot so callbacks may (un)subscribe while we deliver
        for subscription in list(self._subscriptions):
            if not subscription.active:
                continue
            try:
                subscription._callback(value)
            except Exception:
                logger.exception("Signal callback %r failed", subscription._callback)

    def clear(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.cancel()

    def _remove(self, subscription: Subscription) -> None:
        try:
            self._subscriptions.remove(subscription)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._subscriptions)


__all__ = ["Signal", "Subscription"]
