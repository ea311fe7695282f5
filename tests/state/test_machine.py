"""Tests for the purchase flow state machine."""

import pytest

from tpbot_app.errors import StateTransitionError
from tpbot_app.state.models import BotState


def wire_purchase_flow(page, text="搖滾A區 NT$2,800 熱賣中"):
    """Area click reveals quantity controls; next leaves for checkout."""
    quantity = page.catalog.quantity

    def leave_for_checkout(_):
        for locator in (quantity.plus_button, quantity.plus_button_host, quantity.next_button):
            page.doc.remove_matching(locator)

    def open_quantity(_):
        page.add_quantity_controls(on_next=leave_for_checkout)

    page.add_refresh()
    return page.add_area(text, on_click=open_quantity)


def _logging_in(page, config):
    page.add_login_form()
    return config.merged(account="0912345678", password="secret"), 0


def _loading(page, config):
    page.add_area("搖滾A區 NT$2,800 熱賣中")
    return config, 0


def _pre_sale(page, config):
    page.add_area("搖滾A區 NT$2,800 開賣時間 10/20 12:00")
    return config, 50


def _error(page, config):
    page.add_dialog()
    return config, 0


def _searching(page, config):
    page.add_area("搖滾A區 NT$9,999 熱賣中")
    return config, 50


def _selecting(page, config):
    page.add_area("搖滾A區 NT$2,800 熱賣中")
    return config, 50


def _waiting_return(page, config):
    wire_purchase_flow(page)
    return config, 60


# Page setup and settle time that leave the bot in each active state
RUN_TO_STATE = {
    BotState.LOGGING_IN: _logging_in,
    BotState.LOADING: _loading,
    BotState.PRE_SALE: _pre_sale,
    BotState.ERROR: _error,
    BotState.SEARCHING: _searching,
    BotState.SELECTING: _selecting,
    BotState.WAITING_RETURN: _waiting_return,
}


class TestHappyPath:
    """Full cycle: LoggingIn → Loading → Searching → Selecting → WaitingReturn → Loading."""

    def test_initial_state_is_idle(self, make_bot):
        bot = make_bot()
        assert bot.state == BotState.IDLE
        assert bot.running is False

    def test_start_enters_logging_in(self, make_bot, start_config):
        bot = make_bot()
        bot.start(start_config)
        assert bot.state == BotState.LOGGING_IN
        assert bot.running is True

    def test_full_purchase_cycle(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config)

        clock.advance(0)
        assert bot.state == BotState.LOADING

        # DOM stability window
        clock.advance(50)
        assert bot.state == BotState.SELECTING
        assert page.clicks_on("area-1") == 1

        # First quantity poll
        clock.advance(10)
        assert bot.state == BotState.WAITING_RETURN
        assert page.clicks_on("plus-host") == 1
        assert page.clicks_on("next") == 1
        assert bot.purchases == 1

        # Return detected on first check, Loading after the settle delay
        clock.advance(50)
        assert bot.state == BotState.WAITING_RETURN
        clock.advance(500)
        assert bot.state == BotState.LOADING

        visited = [record.to_state for record in bot.history]
        assert visited[:6] == [
            BotState.LOGGING_IN,
            BotState.LOADING,
            BotState.SEARCHING,
            BotState.SELECTING,
            BotState.WAITING_RETURN,
            BotState.LOADING,
        ]

    def test_plus_clicked_once_per_ticket(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config.merged(ticket_count=3))

        clock.advance(60)

        assert page.clicks_on("plus-host") == 3
        assert page.clicks_on("next") == 1

    def test_waits_for_return_to_ticket_list(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config)
        clock.advance(60)

        page.doc.remove_matching(page.catalog.ticket_area.refresh_button)
        clock.advance(5000)
        assert bot.state == BotState.WAITING_RETURN

        page.add_refresh()
        clock.advance(50)
        clock.advance(500)
        assert bot.state == BotState.LOADING
        assert bot.history[-1].trigger == "returned_to_list"


class TestTransitions:

    def test_history_is_a_connected_chain(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config)
        clock.advance(2000)

        records = list(bot.history)
        assert records[0].from_state == BotState.IDLE
        for previous, current in zip(records, records[1:]):
            assert current.from_state == previous.to_state

    def test_illegal_transition_rejected(self, make_bot):
        bot = make_bot()
        bot.state = BotState.SEARCHING

        with pytest.raises(StateTransitionError) as exc_info:
            bot.transition_to(BotState.PRE_SALE, trigger="test")

        assert exc_info.value.current_state == "searching"
        assert exc_info.value.attempted_transition == "pre_sale"
        assert bot.state == BotState.SEARCHING

    def test_self_reentry_recorded(self, make_bot, clock, start_config):
        bot = make_bot()
        bot.start(start_config)
        clock.advance(0)

        bot.transition_to(BotState.LOADING, trigger="test_reentry")

        assert bot.history[-1].from_state == BotState.LOADING
        assert bot.history[-1].to_state == BotState.LOADING


class TestStop:
    """Stop is accepted from any state and the bot settles in Idle."""

    def test_stop_settles_in_idle(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config)
        clock.advance(0)

        bot.stop()
        assert bot.state == BotState.STOPPED
        assert bot.running is False

        clock.advance(0)
        assert bot.state == BotState.IDLE

    def test_stop_is_idempotent(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config)
        clock.advance(0)

        bot.stop()
        bot.stop()
        clock.advance(5000)

        assert bot.state == BotState.IDLE
        assert page.clicks_on("area-1") == 0

    def test_no_actions_after_stop(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config)
        clock.advance(50)
        assert bot.state == BotState.SELECTING

        bot.stop()
        actions_before = len(page.doc.actions)
        clock.advance(5000)

        assert len(page.doc.actions) == actions_before
        assert clock.pending_count() == 0

    def test_cleared_running_flag_moves_to_stopped(self, make_bot, page, clock, start_config):
        page.add_area("搖滾A區 NT$2,800 熱賣中")
        bot = make_bot()
        bot.start(start_config)
        clock.advance(0)
        assert bot.state == BotState.LOADING

        # Flag cleared out-of-band rather than through stop()
        bot.config = bot.config.merged(running=False)
        clock.advance(50)

        assert bot.state == BotState.IDLE
        assert [r.to_state for r in bot.history][-2:] == [BotState.STOPPED, BotState.IDLE]

    @pytest.mark.parametrize("state", [
        BotState.LOGGING_IN,
        BotState.LOADING,
        BotState.PRE_SALE,
        BotState.ERROR,
        BotState.SEARCHING,
        BotState.SELECTING,
        BotState.WAITING_RETURN,
    ])
    def test_cleared_running_flag_stops_from_every_active_state(
        self, make_bot, page, clock, start_config, state
    ):
        config, settle_ms = RUN_TO_STATE[state](page, start_config)
        bot = make_bot()
        bot.start(config)
        clock.advance(settle_ms)
        assert bot.state == state

        seen = len(bot.history)
        actions_before = len(page.doc.actions)
        bot.config = bot.config.merged(running=False)
        clock.advance(1000)

        after = list(bot.history)[seen:]
        assert after[0].from_state == state
        assert after[0].to_state == BotState.STOPPED
        assert after[0].trigger == "not_running"
        assert bot.state == BotState.IDLE
        assert len(page.doc.actions) == actions_before

    def test_polling_loop_winds_down_when_run_ends(self, make_bot, page, clock, start_config):
        # No areas and no refresh control: Loading enters the refresh protocol
        bot = make_bot()
        bot.start(start_config)
        clock.advance(100)

        bot.config = bot.config.merged(running=False)
        clock.advance(200)

        assert bot.state == BotState.IDLE
        assert bot.history[-2].trigger == "not_running"

    def test_restart_after_stop(self, make_bot, page, clock, start_config):
        wire_purchase_flow(page)
        bot = make_bot()
        bot.start(start_config)
        clock.advance(0)
        bot.stop()
        clock.advance(0)

        bot.start(start_config)
        clock.advance(50)

        assert bot.state == BotState.SELECTING
