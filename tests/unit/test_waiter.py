from __future__ import annotations

import threading
import time
from typing import Any

import pytest

from osac_provisioner.engine import waiter
from osac_provisioner.engine.errors import (
    ResourceFailed,
    UnexpectedStateError,
    WaitCanceled,
    WaitTimeoutError,
)
from osac_provisioner.engine.waiter import WaitOptions, wait_for_ready

PENDING = {"PENDING_A", "PROGRESSING"}
TARGET = {"READY"}


class FakeClock:
    """Monotonic clock that only advances when the waiter sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, delay: float, cancel: threading.Event | None) -> bool:
        _ = cancel
        self.sleeps.append(delay)
        self.now += delay
        return False


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> FakeClock:
    fake = FakeClock()
    monkeypatch.setattr(waiter, "_sleep", fake.sleep)
    monkeypatch.setattr(waiter.time, "monotonic", fake.monotonic)
    return fake


def _sequence(*labels: str) -> Any:
    """Refresh function returning ``(index, label)`` for each label in turn."""
    calls = iter(enumerate(labels))

    def refresh() -> tuple[int, str]:
        return next(calls)

    return refresh


class TestWaitForReady:
    def test_progressing_then_ready(self, clock: FakeClock) -> None:
        refresh = _sequence("PROGRESSING", "PROGRESSING", "READY")
        result = wait_for_ready(
            refresh, pending=PENDING, target=TARGET, poll_interval=10, min_poll_interval=5
        )
        assert result == 2
        assert clock.sleeps == [5, 10]

    def test_ready_immediately_does_not_sleep(self, clock: FakeClock) -> None:
        assert wait_for_ready(_sequence("READY"), pending=PENDING, target=TARGET) == 0
        assert clock.sleeps == []

    def test_defaults(self, clock: FakeClock) -> None:
        refresh = _sequence("PENDING_A", "PENDING_A", "READY")
        wait_for_ready(refresh, pending=PENDING, target=TARGET)
        assert clock.sleeps == [waiter.DEFAULT_MIN_POLL_INTERVAL, waiter.DEFAULT_POLL_INTERVAL]

    def test_wait_options_defaults(self) -> None:
        opts = WaitOptions()
        assert opts.create_timeout == 30 * 60
        assert opts.update_timeout == 30 * 60
        assert opts.poll_interval == 10
        assert opts.min_poll_interval == 5

    def test_timeout_while_pending(self, clock: FakeClock) -> None:
        def refresh() -> tuple[str, str]:
            return "obj", "PROGRESSING"

        with pytest.raises(WaitTimeoutError) as exc_info:
            wait_for_ready(
                refresh,
                pending=PENDING,
                target=TARGET,
                timeout=25,
                poll_interval=10,
                min_poll_interval=5,
                resource_id="c-1",
            )
        err = exc_info.value
        assert err.resource_id == "c-1"
        assert err.last_state == "PROGRESSING"
        assert clock.sleeps == [5, 10, 10]
        assert err.elapsed <= 25 + 10

    def test_sleep_never_passes_deadline(self, clock: FakeClock) -> None:
        def refresh() -> tuple[str, str]:
            return "obj", "PROGRESSING"

        with pytest.raises(WaitTimeoutError):
            wait_for_ready(
                refresh,
                pending=PENDING,
                target=TARGET,
                timeout=12,
                poll_interval=10,
                min_poll_interval=5,
            )
        assert clock.sleeps == [5, 7]
        assert clock.now == 12

    def test_unexpected_state(self, clock: FakeClock) -> None:
        refresh = _sequence("PROGRESSING", "DELETING")
        with pytest.raises(UnexpectedStateError) as exc_info:
            wait_for_ready(refresh, pending=PENDING, target=TARGET, resource_id="c-1")
        assert exc_info.value.state == "DELETING"
        assert "READY" in exc_info.value.expected
        assert clock.sleeps == [waiter.DEFAULT_MIN_POLL_INTERVAL]

    def test_failure_from_refresh_propagates_without_sleeping(self, clock: FakeClock) -> None:
        def refresh() -> tuple[str, str]:
            raise ResourceFailed("c-1", "CLUSTER_STATE_FAILED")

        with pytest.raises(ResourceFailed):
            wait_for_ready(refresh, pending=PENDING, target=TARGET)
        assert clock.sleeps == []

    def test_refresh_errors_are_not_retried(self, clock: FakeClock) -> None:
        calls = 0

        def refresh() -> tuple[str, str]:
            nonlocal calls
            calls += 1
            raise ConnectionError("unreachable")

        with pytest.raises(ConnectionError):
            wait_for_ready(refresh, pending=PENDING, target=TARGET)
        assert calls == 1

    def test_same_labels_same_outcome(self, clock: FakeClock) -> None:
        labels = ("PROGRESSING", "PENDING_A", "READY")
        first = wait_for_ready(_sequence(*labels), pending=PENDING, target=TARGET)
        second = wait_for_ready(_sequence(*labels), pending=PENDING, target=TARGET)
        assert first == second == 2


class TestRealTime:
    def test_short_timeout_returns_promptly(self) -> None:
        def refresh() -> tuple[str, str]:
            return "obj", "PROGRESSING"

        start = time.monotonic()
        with pytest.raises(WaitTimeoutError):
            wait_for_ready(
                refresh,
                pending=PENDING,
                target=TARGET,
                timeout=0.05,
                poll_interval=0.02,
                min_poll_interval=0.01,
            )
        assert time.monotonic() - start < 0.5


class TestCancellation:
    def test_cancel_set_before_start(self) -> None:
        cancel = threading.Event()
        cancel.set()
        calls = 0

        def refresh() -> tuple[str, str]:
            nonlocal calls
            calls += 1
            return "obj", "PROGRESSING"

        with pytest.raises(WaitCanceled):
            wait_for_ready(refresh, pending=PENDING, target=TARGET, cancel=cancel)
        assert calls == 0

    def test_cancel_interrupts_sleep(self) -> None:
        cancel = threading.Event()
        timer = threading.Timer(0.05, cancel.set)
        timer.start()

        def refresh() -> tuple[str, str]:
            return "obj", "PROGRESSING"

        start = time.monotonic()
        try:
            with pytest.raises(WaitCanceled) as exc_info:
                wait_for_ready(
                    refresh,
                    pending=PENDING,
                    target=TARGET,
                    poll_interval=30,
                    min_poll_interval=30,
                    cancel=cancel,
                    resource_id="c-1",
                )
        finally:
            timer.cancel()
        assert exc_info.value.resource_id == "c-1"
        assert time.monotonic() - start < 5

    def test_cancel_preempts_in_flight_refresh(self) -> None:
        cancel = threading.Event()
        timer = threading.Timer(0.05, cancel.set)
        timer.start()

        def slow_refresh() -> tuple[str, str]:
            time.sleep(1.0)
            return "obj", "READY"

        start = time.monotonic()
        try:
            with pytest.raises(WaitCanceled) as exc_info:
                wait_for_ready(
                    slow_refresh,
                    pending=PENDING,
                    target=TARGET,
                    cancel=cancel,
                    resource_id="c-1",
                )
        finally:
            timer.cancel()
        assert exc_info.value.resource_id == "c-1"
        assert time.monotonic() - start < 0.5

    def test_refresh_result_with_cancel_event(self) -> None:
        cancel = threading.Event()
        result = wait_for_ready(_sequence("READY"), pending=PENDING, target=TARGET, cancel=cancel)
        assert result == 0

    def test_refresh_error_with_cancel_event(self) -> None:
        boom = ConnectionError("unreachable")

        def refresh() -> tuple[str, str]:
            raise boom

        with pytest.raises(ConnectionError) as exc_info:
            wait_for_ready(refresh, pending=PENDING, target=TARGET, cancel=threading.Event())
        assert exc_info.value is boom

    def test_cancel_is_not_a_timeout(self) -> None:
        assert not issubclass(WaitCanceled, WaitTimeoutError)

    def test_keyboard_interrupt_becomes_canceled(self, clock: FakeClock) -> None:
        def refresh() -> tuple[str, str]:
            raise KeyboardInterrupt

        with pytest.raises(WaitCanceled):
            wait_for_ready(refresh, pending=PENDING, target=TARGET)
