"""Tests for state machine data models."""

from tpbot_app.state.models import (
    LEGAL_TRANSITIONS,
    RESTING_STATES,
    Availability,
    AvailabilityStatus,
    BotState,
    LoginAttemptTimer,
)


class TestLegalTransitions:

    def test_every_state_has_an_entry(self):
        assert set(LEGAL_TRANSITIONS) == set(BotState)

    def test_every_active_state_can_stop(self):
        for state in BotState:
            if state != BotState.STOPPED:
                assert BotState.STOPPED in LEGAL_TRANSITIONS[state], state

    def test_stopped_only_settles_to_idle(self):
        assert LEGAL_TRANSITIONS[BotState.STOPPED] == {BotState.IDLE, BotState.STOPPED}

    def test_resting_states(self):
        assert RESTING_STATES == {BotState.IDLE, BotState.STOPPED}

    def test_state_values_are_strings(self):
        assert BotState.WAITING_RETURN == "waiting_return"


class TestAvailability:

    def test_unknown_is_not_actionable(self):
        unknown = Availability(available=True, status=AvailabilityStatus.UNKNOWN)
        assert unknown.actionable is False

    def test_available_is_actionable(self):
        assert Availability(True, AvailabilityStatus.AVAILABLE).actionable is True


class TestLoginAttemptTimer:

    def test_first_attempt_always_allowed(self):
        assert LoginAttemptTimer().cooldown_elapsed(0, 3000) is True

    def test_cooldown_window(self):
        timer = LoginAttemptTimer()
        timer.mark(1000)
        assert timer.cooldown_elapsed(3999, 3000) is False
        assert timer.cooldown_elapsed(4000, 3000) is True
