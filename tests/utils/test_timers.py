"""Tests for the timer queue primitives."""

import pytest

from tpbot_app.utils.timers import VirtualClock, WallClockScheduler


class TestVirtualClock:

    def test_runs_in_deadline_then_schedule_order(self):
        clock = VirtualClock()
        order = []
        clock.call_later(20, lambda: order.append("b"))
        clock.call_later(10, lambda: order.append("a"))
        clock.call_later(20, lambda: order.append("c"))

        clock.advance(20)

        assert order == ["a", "b", "c"]

    def test_callback_sees_its_own_deadline(self):
        clock = VirtualClock()
        seen = []
        clock.call_later(15, lambda: seen.append(clock.now_ms()))

        clock.advance(100)

        assert seen == [15]
        assert clock.now_ms() == 100

    def test_chained_callbacks_within_window(self):
        clock = VirtualClock()
        seen = []

        def step():
            seen.append(clock.now_ms())
            if len(seen) < 3:
                clock.call_later(10, step)

        clock.call_later(10, step)
        assert clock.advance(100) == 3
        assert seen == [10, 20, 30]

    def test_cancelled_callbacks_skipped(self):
        clock = VirtualClock()
        ran = []
        handle = clock.call_later(5, lambda: ran.append(1))
        handle.cancel()

        clock.advance(10)

        assert ran == []
        assert clock.pending_count() == 0
        assert clock.next_deadline() is None

    def test_negative_delay_rejected(self):
        with pytest.raises(ValueError):
            VirtualClock().call_later(-1, lambda: None)

    def test_run_until_idle(self):
        clock = VirtualClock()
        clock.call_later(300, lambda: clock.call_later(200, lambda: None))

        clock.run_until_idle()

        assert clock.now_ms() == 500
        assert clock.pending_count() == 0

    def test_tasks_never_reenter(self):
        clock = VirtualClock()

        def nested():
            clock.call_later(0, lambda: None)
            clock._run_one(clock._heap[0])

        clock.call_later(0, nested)
        with pytest.raises(RuntimeError):
            clock.advance(0)


class TestWallClockScheduler:

    def test_runs_due_callbacks_until_stopped(self):
        scheduler = WallClockScheduler(idle_poll_ms=1)
        ran = []
        scheduler.call_later(0, lambda: ran.append("first"))
        scheduler.call_later(5, lambda: ran.append("second"))

        scheduler.run_forever(should_stop=lambda: len(ran) == 2)

        assert ran == ["first", "second"]
