"""
Cancellable delayed-task primitives for the cooperative scheduler.

Every wait in the state machine is a scheduled resumption on a TimerQueue.
Tasks run strictly one at a time in (deadline, scheduling order). The queue
itself never runs a task re-entrantly, so handlers do not need locks.

Two concrete queues are provided:
- VirtualClock: deterministic time for tests, advanced explicitly
- WallClockScheduler: production loop on the monotonic clock
"""

import heapq
import itertools
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional


class TimerHandle:
    """Handle to a scheduled callback."""

    __slots__ = ("deadline_ms", "seq", "callback", "cancelled")

    def __init__(self, deadline_ms: int, seq: int, callback: Callable[[], None]):
        self.deadline_ms = deadline_ms
        self.seq = seq
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        self.cancelled = True

    def __lt__(self, other: "TimerHandle") -> bool:
        return (self.deadline_ms, self.seq) < (other.deadline_ms, other.seq)

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "pending"
        return f"<TimerHandle due={self.deadline_ms}ms seq={self.seq} {state}>"


class TimerQueue(ABC):
    """Ordered queue of delayed callbacks."""

    def __init__(self) -> None:
        self._heap: list[TimerHandle] = []
        self._counter = itertools.count()
        self._running_task = False

    @abstractmethod
    def now_ms(self) -> int:
        """Current time in milliseconds on this queue's clock."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Schedule callback to run no earlier than delay_ms from now."""
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be non-negative, got {delay_ms}")
        handle = TimerHandle(self.now_ms() + delay_ms, next(self._counter), callback)
        heapq.heappush(self._heap, handle)
        return handle

    def pending_count(self) -> int:
        """Number of scheduled, non-cancelled callbacks."""
        return sum(1 for handle in self._heap if not handle.cancelled)

    def next_deadline(self) -> Optional[int]:
        """Deadline of the earliest live callback, or None when idle."""
        self._discard_cancelled()
        return self._heap[0].deadline_ms if self._heap else None

    def run_due(self) -> int:
        """Run every callback whose deadline has passed. Returns the count run."""
        ran = 0
        now = self.now_ms()
        while True:
            self._discard_cancelled()
            if not self._heap or self._heap[0].deadline_ms > now:
                return ran
            self._run_one(heapq.heappop(self._heap))
            ran += 1

    def _run_one(self, handle: TimerHandle) -> None:
        if self._running_task:
            raise RuntimeError("TimerQueue task re-entered")
        self._running_task = True
        try:
            handle.callback()
        finally:
            self._running_task = False

    def _discard_cancelled(self) -> None:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)


class VirtualClock(TimerQueue):
    """Deterministic clock for tests; time only moves when advanced."""

    def __init__(self, start_ms: int = 0, max_steps: int = 1_000_000) -> None:
        super().__init__()
        self._now = start_ms
        self.max_steps = max_steps

    def now_ms(self) -> int:
        return self._now

    def advance(self, ms: int) -> int:
        """
        Move time forward by ms, running callbacks at their own deadlines.

        Callbacks scheduled while advancing run in the same call if they
        fall due before the target time.

        Returns:
            Number of callbacks run
        """
        target = self._now + ms
        ran = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            self._now = max(self._now, deadline)
            ran += self.run_due()
            if ran > self.max_steps:
                raise RuntimeError(f"VirtualClock exceeded {self.max_steps} steps")
        self._now = target
        return ran

    def run_until_idle(self, limit_ms: int = 600_000) -> int:
        """Advance until no callbacks remain or limit_ms of virtual time passes."""
        start = self._now
        ran = 0
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline - start > limit_ms:
                return ran
            ran += self.advance(deadline - self._now)


class WallClockScheduler(TimerQueue):
    """Production timer loop on time.monotonic()."""

    def __init__(self, idle_poll_ms: int = 50) -> None:
        super().__init__()
        self._origin = time.monotonic()
        self.idle_poll_ms = idle_poll_ms

    def now_ms(self) -> int:
        return int((time.monotonic() - self._origin) * 1000)

    def run_forever(self, should_stop: Optional[Callable[[], bool]] = None) -> None:
        """Run callbacks as they fall due until should_stop() returns True."""
        while not (should_stop and should_stop()):
            self.run_due()
            deadline = self.next_deadline()
            if deadline is None:
                wait_ms = self.idle_poll_ms
            else:
                wait_ms = min(max(deadline - self.now_ms(), 0), self.idle_poll_ms)
            if wait_ms:
                time.sleep(wait_ms / 1000)
