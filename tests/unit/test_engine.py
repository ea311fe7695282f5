"""Unit tests for the command coordinator."""

import json

import pytest
from unittest.mock import Mock

from tpbot_app.config.settings import BotConfig
from tpbot_app.engine import TicketBotEngine
from tpbot_app.errors import PersistenceError
from tpbot_app.persistence.config_store import JsonConfigStore
from tpbot_app.state.models import BotState

START_REQUEST = {
    "action": "START",
    "config": {
        "url": "https://tickets.example.com/activity/123",
        "targetPrices": [2800],
        "ticketCount": 2,
    },
}


@pytest.fixture
def store(tmp_path):
    return JsonConfigStore(str(tmp_path / "storage.json"))


@pytest.fixture
def engine(page, clock, store, tmp_path):
    engine = TicketBotEngine(page.doc, page.doc, clock, store, config_dir=tmp_path)
    engine.logger = Mock()
    engine.bot.logger = Mock()
    engine.bot.state_logger = Mock()
    return engine


class TestCommands:

    def test_start_persists_and_runs(self, engine, store):
        assert engine.handle_command(START_REQUEST) is True

        assert engine.state == BotState.LOGGING_IN
        stored = store.load()
        assert stored.running is True
        assert stored.ticket_count == 2
        assert stored.target_prices == (2800,)

    def test_invalid_start_rejected(self, engine, store):
        request = {"action": "START", "config": {"url": "https://x.example", "targetPrices": []}}

        assert engine.handle_command(request) is False

        assert engine.state == BotState.IDLE
        assert store.load().running is False
        engine.logger.error.assert_called_once()

    def test_malformed_values_rejected_before_merge(self, engine):
        request = {"action": "START", "config": {"url": "https://x.example", "ticketCount": "many"}}
        assert engine.handle_command(request) is False

    def test_stop_persists(self, engine, store, clock):
        engine.handle_command(START_REQUEST)
        clock.advance(0)

        assert engine.handle_command({"action": "STOP"}) is True
        clock.advance(0)

        assert engine.state == BotState.IDLE
        assert store.load().running is False
        assert store.load().target_prices == (2800,)

    def test_stop_survives_storage_failure(self, engine, clock):
        engine.handle_command(START_REQUEST)
        engine.store = Mock()
        engine.store.update.side_effect = PersistenceError("disk full", operation="save")

        assert engine.handle_command({"action": "STOP"}) is True
        assert engine.bot.running is False

    def test_stop_halts_bot_when_stored_record_is_invalid(self, engine, store, clock, tmp_path):
        engine.handle_command(START_REQUEST)
        clock.advance(0)
        bad_record = {"ticketConfig": {"ticketCount": "abc"}}
        (tmp_path / "storage.json").write_text(json.dumps(bad_record), encoding="utf-8")

        assert engine.handle_command({"action": "STOP"}) is True
        clock.advance(0)

        assert engine.bot.running is False
        assert engine.state == BotState.IDLE
        assert engine.logger.error.call_args[0][0] == "Cannot persist stop request"

    def test_unknown_action(self, engine):
        assert engine.handle_command({"action": "PAUSE"}) is False
        engine.logger.error.assert_called_once_with("Unknown command rejected", action="PAUSE")


class TestBoot:

    def test_boot_idle(self, engine, store):
        config = engine.boot()
        assert config == BotConfig()
        assert engine.state == BotState.IDLE

    def test_boot_idle_on_corrupt_store(self, engine, tmp_path):
        (tmp_path / "storage.json").write_text("{not json", encoding="utf-8")

        assert engine.boot() == BotConfig()
        assert engine.state == BotState.IDLE
        assert engine.logger.error.call_args[0][0] == "Stored config unreadable, booting idle"

    def test_boot_resumes_persisted_run(self, engine, store):
        store.save(BotConfig(running=True, target_prices=(2800,), url="https://x.example"))

        engine.boot()

        assert engine.state == BotState.LOGGING_IN
        assert engine.bot.config.target_prices == (2800,)

    def test_timing_overrides_from_config_dir(self, page, clock, store, tmp_path):
        (tmp_path / "timing.yaml").write_text("timing:\n  login_cooldown_ms: 4000\n", encoding="utf-8")

        engine = TicketBotEngine(page.doc, page.doc, clock, store, config_dir=tmp_path)

        assert engine.bot.timing.login_cooldown_ms == 4000
