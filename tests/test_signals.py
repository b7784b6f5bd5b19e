"""Tests for the publish/subscribe primitives."""

from eventfeed import Signal


class TestSignal:
    """Tests for Signal and Subscription."""

    def test_emit_calls_subscribers_in_order(self) -> None:
        signal: Signal[int] = Signal()
        received: list[tuple[str, int]] = []
        signal.subscribe(lambda v: received.append(("a", v)))
        signal.subscribe(lambda v: received.append(("b", v)))

        signal.emit(1)

        assert received == [("a", 1), ("b", 1)]

    def test_cancel_removes_callback(self) -> None:
        signal: Signal[int] = Signal()
        received: list[int] = []
        subscription = signal.subscribe(received.append)

        subscription.cancel()
        subscription.cancel()  # idempotent
        signal.emit(1)

        assert received == []
        assert not subscription.active
        assert len(signal) == 0

    def test_context_manager_cancels(self) -> None:
        signal: Signal[str] = Signal()
        received: list[str] = []
        with signal.subscribe(received.append):
            signal.emit("inside")
        signal.emit("outside")

        assert received == ["inside"]

    def test_failing_callback_does_not_stop_delivery(self) -> None:
        signal: Signal[int] = Signal()
        received: list[int] = []

        def boom(value: int) -> None:
            raise RuntimeError("boom")

        signal.subscribe(boom)
        signal.subscribe(received.append)
        signal.emit(7)

        assert received == [7]

    def test_unsubscribe_during_emit(self) -> None:
        """A callback cancelled by an earlier callback is not invoked."""
        signal: Signal[int] = Signal()
        received: list[int] = []
        second = None

        def first(value: int) -> None:
            assert second is not None
            second.cancel()

        signal.subscribe(first)
        second = signal.subscribe(received.append)
        signal.emit(1)

        assert received == []

    def test_clear(self) -> None:
        signal: Signal[int] = Signal()
        subscription = signal.subscribe(lambda v: None)
        signal.clear()
        assert len(signal) == 0
        assert not subscription.active
