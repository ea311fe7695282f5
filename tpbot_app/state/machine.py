"""
Ticket purchase state machine.

TicketBot owns the current state and drives it by scheduling ticks on a
TimerQueue. Each tick dispatches to exactly one state handler. Handlers
never block: every wait is a scheduled continuation, and a handler that
schedules one is not re-entered until it fires.

Flow: Idle → LoggingIn → Loading → (PreSale | Error | Searching) →
Selecting → WaitingReturn → Loading ... until stopped.
"""

from collections import deque
from typing import Callable, Optional

from ..classifier.pricing import format_thousands
from ..config.defaults import TimingParams
from ..config.settings import BotConfig
from ..dom.base import (
    ENTER_KEY,
    DocumentActuator,
    DocumentObserver,
    ElementHandle,
    valid_area_buttons,
)
from ..dom.selectors import DEFAULT_CATALOG, SelectorCatalog
from ..errors import ActionTimeoutError, AmbiguousStateError, StateTransitionError
from ..logging.config import get_logger, get_state_logger, log_state_transition
from ..utils.timers import TimerHandle, TimerQueue
from .models import (
    LEGAL_TRANSITIONS,
    RESTING_STATES,
    BotState,
    LoginAttemptTimer,
    TransitionRecord,
)
from .polling import PollingLoop, RefreshProtocol
from .search import collect_candidates, rank_candidates, select_target

logger = get_logger(__name__)
state_logger = get_state_logger(__name__)

HISTORY_LIMIT = 256


class TicketBot:
    """
    Cooperative state machine for one ticketing page.

    Only start() and stop() are public commands; tick() is driven by the
    bot's own scheduled continuations.
    """

    def __init__(
        self,
        observer: DocumentObserver,
        actuator: DocumentActuator,
        timers: TimerQueue,
        catalog: SelectorCatalog = DEFAULT_CATALOG,
        timing: Optional[TimingParams] = None,
        config: Optional[BotConfig] = None,
    ) -> None:
        self.logger = logger
        self.state_logger = state_logger

        self.observer = observer
        self.actuator = actuator
        self.timers = timers
        self.catalog = catalog
        self.timing = timing or TimingParams()

        self.state = BotState.IDLE
        self.config = config or BotConfig()
        self.login_timer = LoginAttemptTimer()
        self.history: deque[TransitionRecord] = deque(maxlen=HISTORY_LIMIT)
        self.purchases = 0

        # Bumped by every command; continuations from older runs are dropped
        self._epoch = 0
        # Bumped on every state entry and guarded retry; stale continuations are dropped
        self._step = 0

        self._handlers: dict[BotState, Callable[[], None]] = {
            BotState.IDLE: self._handle_idle,
            BotState.LOGGING_IN: self._handle_logging_in,
            BotState.LOADING: self._handle_loading,
            BotState.PRE_SALE: self._handle_pre_sale,
            BotState.ERROR: self._handle_error,
            BotState.SEARCHING: self._handle_searching,
            BotState.SELECTING: self._handle_selecting,
            BotState.WAITING_RETURN: self._handle_waiting_return,
            BotState.STOPPED: self._handle_stopped,
        }

    @property
    def running(self) -> bool:
        return self.config.running

    # --- commands -----------------------------------------------------

    def start(self, config: BotConfig) -> None:
        """Begin a new run from LoggingIn with the given configuration."""
        self._epoch += 1
        self.config = config.merged(running=True)
        self.logger.info("Bot started", epoch=self._epoch, **self.config.summary())
        self._enter(BotState.LOGGING_IN, trigger="start_command")

    def stop(self) -> None:
        """Stop the run. Idempotent; pending continuations are dropped."""
        self._epoch += 1
        self.config = self.config.merged(running=False)
        self._note("warning", "Bot stopping", state=self.state.value)
        self._enter(BotState.STOPPED, trigger="stop_command")

    # --- scheduling ---------------------------------------------------

    def tick(self) -> None:
        """Run the handler for the current state once."""
        if not self.running and self.state not in RESTING_STATES:
            self._note("warning", "Run no longer active, stopping", state=self.state.value)
            self.transition_to(BotState.STOPPED, trigger="not_running")
            return

        try:
            self._handlers[self.state]()
        except Exception as e:
            self._handle_failure(e)

    def transition_to(self, new_state: BotState, trigger: str, resume: bool = True) -> None:
        """
        Apply a handler-requested transition and schedule the next tick.

        Raises:
            StateTransitionError: new_state is not reachable from the current state
        """
        if new_state not in LEGAL_TRANSITIONS[self.state]:
            raise StateTransitionError(
                f"Illegal transition {self.state.value} -> {new_state.value}",
                current_state=self.state.value,
                attempted_transition=new_state.value,
                context={"trigger": trigger},
            )
        self._enter(new_state, trigger, resume)

    def _enter(self, new_state: BotState, trigger: str, resume: bool = True) -> None:
        previous = self.state
        self.history.append(TransitionRecord(
            from_state=previous,
            to_state=new_state,
            trigger=trigger,
            at_ms=self.timers.now_ms(),
        ))
        if self.config.debug:
            log_state_transition(self.state_logger, previous.value, new_state.value, trigger)
        else:
            self.state_logger.debug(
                "State transition",
                from_state=previous.value,
                to_state=new_state.value,
                trigger=trigger,
            )

        self.state = new_state
        self._step += 1
        if resume:
            self._after(0, self.tick)

    def _after(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """
        Schedule a continuation bound to the current run and state step.

        A continuation is dropped if the bot has since entered a state or
        retried after a failure. While the run is inactive outside a resting
        state, the continuation runs the guarded tick instead, so the next
        transition is to Stopped.
        """
        epoch, step = self._epoch, self._step

        def run() -> None:
            if epoch != self._epoch or step != self._step:
                return
            if not self.running and self.state not in RESTING_STATES:
                self.tick()
                return
            try:
                callback()
            except Exception as e:
                self._handle_failure(e)

        return self.timers.call_later(delay_ms, run)

    def _handle_failure(self, error: Exception) -> None:
        """Top-level guard: log with the current state and retry it after a backoff."""
        self.logger.error(
            "State handler failed",
            state=self.state.value,
            error=str(error),
            error_type=type(error).__name__,
            exc_info=True,
        )
        # Continuations still pending from the failed step must not fire
        self._step += 1
        self._after(self.timing.state_transition_ms, self.tick)

    def _note(self, level: str, event: str, **kw) -> None:
        """Progress messages; demoted to debug unless the run has debug on."""
        method = level if self.config.debug else "debug"
        getattr(self.logger, method)(event, **kw)

    def _go(self, new_state: BotState, trigger: str) -> Callable[[], None]:
        return lambda: self.transition_to(new_state, trigger)

    def _poll(
        self,
        name: str,
        interval_ms: int,
        body: Callable[[], bool],
        max_attempts: Optional[int] = None,
        on_exhausted: Optional[Callable[[ActionTimeoutError], None]] = None,
    ) -> PollingLoop:
        return PollingLoop(
            name=name,
            schedule=self._after,
            interval_ms=interval_ms,
            body=body,
            should_continue=lambda: self.running,
            max_attempts=max_attempts,
            on_exhausted=on_exhausted,
        ).start()

    def _refresh_then_reload(self) -> PollingLoop:
        protocol = RefreshProtocol(
            observer=self.observer,
            actuator=self.actuator,
            locator=self.catalog.ticket_area.refresh_button,
            timing=self.timing,
            schedule=self._after,
            should_continue=lambda: self.running,
            note=self._note,
        )
        return protocol.run(lambda trigger: self.transition_to(BotState.LOADING, trigger))

    def _area_buttons(self) -> list[ElementHandle]:
        return valid_area_buttons(self.observer, self.catalog.ticket_area)

    # --- state handlers -----------------------------------------------

    def _handle_idle(self) -> None:
        self._note("info", "Bot idle")

    def _handle_logging_in(self) -> None:
        config = self.config
        login = self.catalog.login

        if not config.has_credentials:
            self._note("info", "No credentials configured, skipping login")
            self.transition_to(BotState.LOADING, trigger="no_credentials")
            return

        phone = self.observer.find_first(login.phone)
        password = self.observer.find_first(login.password)
        if phone is None or password is None:
            self._note("info", "Login form not found, assuming logged in")
            self.transition_to(BotState.LOADING, trigger="no_login_form")
            return

        if (phone.value == config.account and password.value == config.password
                and self.observer.find_by_path_expr(login.submit_button) is None):
            self._note("info", "Credentials filled and no login button, assuming logged in")
            self.transition_to(BotState.LOADING, trigger="already_filled")
            return

        now = self.timers.now_ms()
        if not self.login_timer.cooldown_elapsed(now, self.timing.login_cooldown_ms):
            self._note("info", "Login cooling down", last_attempt_ms=self.login_timer.last_attempt_ms)
            self._after(self.timing.login_retry_ms, self._go(BotState.LOGGING_IN, "login_cooldown"))
            return

        self.login_timer.mark(now)
        self._note("info", "Filling login form")
        self.actuator.set_field_value(phone, config.account)
        self.actuator.set_field_value(password, config.password)
        self._after(self.timing.login_submit_delay_ms, lambda: self._submit_login(password))
        self._after(self.timing.login_retry_ms, self._go(BotState.LOADING, "login_submitted"))

    def _submit_login(self, field: ElementHandle) -> None:
        self.actuator.simulate_key_press(field, ENTER_KEY)
        self.logger.info("Login submitted")

    def _handle_loading(self) -> None:
        if self.observer.find_by_path_expr(self.catalog.dialog.confirm_button) is not None:
            self._note("warning", "Error dialog detected")
            self.transition_to(BotState.ERROR, trigger="error_dialog")
            return

        buttons = self._area_buttons()
        if not buttons:
            self._note("info", "Area list empty, waiting for render")
            self._after(self.timing.button_check_ms, self._recheck_empty_areas)
            return

        count = len(buttons)
        self._after(self.timing.dom_stability_ms, lambda: self._confirm_stable_areas(count))

    def _recheck_empty_areas(self) -> None:
        if self._area_buttons():
            self.transition_to(BotState.LOADING, trigger="areas_rendered")
        else:
            self._note("warning", "Area list still empty, refreshing")
            self._refresh_then_reload()

    def _confirm_stable_areas(self, expected: int) -> None:
        buttons = self._area_buttons()
        if len(buttons) != expected:
            self._note("info", "Area list still changing", expected=expected, found=len(buttons))
            self.transition_to(BotState.LOADING, trigger="dom_unstable")
            return

        if self.catalog.status_text.pre_sale in buttons[0].text:
            self._note("info", "Sale has not opened yet")
            self.transition_to(BotState.PRE_SALE, trigger="pre_sale")
            return

        self.logger.info("Ticket list loaded", areas=expected)
        self.transition_to(BotState.SEARCHING, trigger="page_ready")

    def _handle_pre_sale(self) -> None:
        self._note("info", "Waiting for sale to open, refreshing")
        self._refresh_then_reload()

    def _handle_error(self) -> None:
        confirm = self.observer.find_by_path_expr(self.catalog.dialog.confirm_button)
        if confirm is None:
            self._note("info", "Error dialog already closed")
            self.transition_to(BotState.LOADING, trigger="dialog_gone")
            return

        self._note("info", "Dismissing error dialog")
        self.actuator.click(confirm)
        self._after(self.timing.error_dialog_ms, self._go(BotState.LOADING, "dialog_dismissed"))

    def _handle_searching(self) -> None:
        buttons = self._area_buttons()
        if not buttons:
            self._note("warning", "No areas to search, refreshing")
            self._refresh_then_reload()
            return

        ranked = rank_candidates(
            collect_candidates(buttons, self.config, self.catalog.status_text)
        )
        try:
            target = select_target(ranked)
        except AmbiguousStateError as e:
            self._note("warning", "Target area status unknown, refreshing", price=e.price)
            self._refresh_then_reload()
            return

        if target is None:
            self._note("warning", "No matching area available, refreshing", mode=self.config.price_mode)
            self._refresh_then_reload()
            return

        self.logger.info(
            "Target area found",
            price=format_thousands(target.price),
            status=target.availability.label,
            priority=target.rank == 0,
        )
        self.actuator.click(target.handle)
        self.transition_to(BotState.SELECTING, trigger="area_clicked")

    def _handle_selecting(self) -> None:
        self._poll(
            "quantity",
            self.timing.quantity_poll_ms,
            self._select_quantity,
            max_attempts=self.timing.quantity_max_attempts,
            on_exhausted=self._on_quantity_timeout,
        )

    def _select_quantity(self) -> bool:
        quantity = self.catalog.quantity
        plus_icons = self.observer.query_all(quantity.plus_button)
        next_button = self.observer.find_by_path_expr(quantity.next_button)

        if plus_icons:
            plus = plus_icons[0].closest(quantity.plus_button_host)
            if plus is not None:
                self._note("info", "Setting ticket quantity", count=self.config.ticket_count)
                for _ in range(self.config.ticket_count):
                    self.actuator.click(plus)

        if next_button is None:
            return False

        self.logger.info("Quantity set, continuing to checkout", count=self.config.ticket_count)
        self.actuator.click(next_button)
        self.transition_to(BotState.WAITING_RETURN, trigger="next_clicked")
        return True

    def _on_quantity_timeout(self, error: ActionTimeoutError) -> None:
        self.logger.error(
            "Quantity controls never appeared, searching again",
            loop=error.loop_name,
            attempts=error.attempts,
        )
        self.transition_to(BotState.SEARCHING, trigger="selection_timeout")

    def _handle_waiting_return(self) -> None:
        self.purchases += 1
        self.logger.info("Purchase flow complete", purchases=self.purchases)
        self._poll("return_watch", self.timing.return_check_ms, self._detect_return)

    def _detect_return(self) -> bool:
        if self.observer.find_by_path_expr(self.catalog.ticket_area.refresh_button) is None:
            return False
        self._note("info", "Back on ticket list, restarting search")
        self._after(self.timing.return_detected_ms, self._go(BotState.LOADING, "returned_to_list"))
        return True

    def _handle_stopped(self) -> None:
        self._note("info", "Bot stopped")
        self.transition_to(BotState.IDLE, trigger="stopped", resume=False)
