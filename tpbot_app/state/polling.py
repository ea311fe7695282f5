"""
Interval polling loops for the state machine.

A PollingLoop re-arms itself through a schedule callable after each tick
until its body reports completion or its attempt budget runs out. The loop
checks should_continue on every tick and stops quietly once it is false.
"""

from typing import Callable, Optional

from ..config.defaults import TimingParams
from ..dom.base import DocumentActuator, DocumentObserver
from ..errors import ActionTimeoutError
from ..utils.timers import TimerHandle

ScheduleFn = Callable[[int, Callable[[], None]], TimerHandle]


class PollingLoop:
    """Self-rescheduling poll with an optional attempt budget."""

    def __init__(
        self,
        name: str,
        schedule: ScheduleFn,
        interval_ms: int,
        body: Callable[[], bool],
        should_continue: Callable[[], bool],
        max_attempts: Optional[int] = None,
        on_exhausted: Optional[Callable[[ActionTimeoutError], None]] = None,
    ) -> None:
        self.name = name
        self.schedule = schedule
        self.interval_ms = interval_ms
        self.body = body
        self.should_continue = should_continue
        self.max_attempts = max_attempts
        self.on_exhausted = on_exhausted

        self.attempts = 0
        self.outcome: Optional[str] = None          # done | exhausted | cancelled | failed

    @property
    def active(self) -> bool:
        return self.outcome is None

    def start(self) -> "PollingLoop":
        """Arm the first tick one interval from now."""
        self._arm()
        return self

    def _arm(self) -> None:
        self.schedule(self.interval_ms, self._tick)

    def _tick(self) -> None:
        if not self.active:
            return

        if not self.should_continue():
            self.outcome = "cancelled"
            return

        if self.max_attempts is not None and self.attempts >= self.max_attempts:
            self.outcome = "exhausted"
            if self.on_exhausted:
                self.on_exhausted(ActionTimeoutError(
                    f"{self.name} loop gave up after {self.attempts} attempts",
                    loop_name=self.name,
                    attempts=self.attempts,
                    max_attempts=self.max_attempts,
                ))
            return

        self.attempts += 1
        try:
            done = self.body()
        except Exception:
            self.outcome = "failed"
            raise

        if done:
            self.outcome = "done"
        else:
            self._arm()


class RefreshProtocol:
    """
    Click the page's refresh control, then resume after a settle delay.

    The control is polled for every refresh_interval_ms. When it is found
    and visible it is clicked; when the attempt budget runs out first the
    protocol resumes anyway with a warning, so a missing control cannot
    stall the run. Either way on_complete(trigger) fires refresh_wait_ms
    later. A run that stops mid-protocol ends it without on_complete.
    """

    def __init__(
        self,
        observer: DocumentObserver,
        actuator: DocumentActuator,
        locator: str,
        timing: TimingParams,
        schedule: ScheduleFn,
        should_continue: Callable[[], bool],
        note: Callable[..., None],
    ) -> None:
        self.observer = observer
        self.actuator = actuator
        self.locator = locator
        self.timing = timing
        self.schedule = schedule
        self.should_continue = should_continue
        self.note = note

    def run(self, on_complete: Callable[[str], None]) -> PollingLoop:
        def click_when_visible() -> bool:
            button = self.observer.find_by_path_expr(self.locator)
            if button is None or not self.observer.is_visible(button):
                return False
            self.note("info", "Clicking refresh control")
            self.actuator.click(button)
            self._resume(on_complete, "refresh_clicked")
            return True

        def give_up(error: ActionTimeoutError) -> None:
            self.note(
                "warning",
                "Refresh control not found, reloading anyway",
                attempts=error.attempts,
            )
            self._resume(on_complete, "refresh_exhausted")

        return PollingLoop(
            name="refresh",
            schedule=self.schedule,
            interval_ms=self.timing.refresh_interval_ms,
            body=click_when_visible,
            should_continue=self.should_continue,
            max_attempts=self.timing.refresh_max_attempts,
            on_exhausted=give_up,
        ).start()

    def _resume(self, on_complete: Callable[[str], None], trigger: str) -> None:
        self.schedule(self.timing.refresh_wait_ms, lambda: on_complete(trigger))
