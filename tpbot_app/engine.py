"""
Command coordinator for the ticket bot.

Wires configuration loading, the persisted run record and the state
machine together, and translates START/STOP commands from a control
surface into bot commands.
"""

from pathlib import Path
from typing import Any, Optional, Union

import structlog

from .config.loader import ConfigLoader
from .config.settings import BotConfig
from .config.validation import ConfigValidator
from .dom.base import DocumentActuator, DocumentObserver
from .errors import PersistenceError
from .persistence.config_store import JsonConfigStore
from .state.machine import TicketBot
from .state.models import BotState
from .utils.timers import TimerQueue

logger = structlog.get_logger(__name__)

START = "START"
STOP = "STOP"


class TicketBotEngine:
    """
    Main coordinator for one bot instance.

    Manages the command pipeline:
    Command → Validation → Config Store → State Machine
    """

    def __init__(
        self,
        observer: DocumentObserver,
        actuator: DocumentActuator,
        scheduler: TimerQueue,
        store: JsonConfigStore,
        config_dir: Optional[Union[str, Path]] = None,
        timing_overrides: Optional[dict[str, Any]] = None,
    ) -> None:
        self.logger = logger
        self.store = store
        self.scheduler = scheduler

        self.config_loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
        self.timing = self.config_loader.load_timing(timing_overrides)
        self.catalog = self.config_loader.load_selector_catalog()

        self.bot = TicketBot(
            observer=observer,
            actuator=actuator,
            timers=scheduler,
            catalog=self.catalog,
            timing=self.timing,
        )

        self.logger.info("Ticket bot engine initialized", config_dir=str(self.config_loader.config_dir))

    @property
    def state(self) -> BotState:
        return self.bot.state

    def boot(self) -> BotConfig:
        """
        Load the persisted record; resume the run if it was left running.

        Returns:
            The loaded configuration
        """
        try:
            config = self.store.load()
        except PersistenceError as e:
            self.logger.error("Stored config unreadable, booting idle", error=str(e), target=e.target)
            config = BotConfig()
        self.bot.config = config

        if config.running:
            self.logger.info("Resuming persisted run", **config.summary())
            self.bot.start(config)
        else:
            self.logger.info("Engine booted idle")
        return config

    def handle_command(self, message: dict[str, Any]) -> bool:
        """
        Dispatch a control message.

        Args:
            message: {"action": "START", "config": {...}} or {"action": "STOP"}

        Returns:
            True if the command was accepted
        """
        action = (message or {}).get("action")

        if action == START:
            return self.start(message.get("config") or {})
        if action == STOP:
            return self.stop()

        self.logger.error("Unknown command rejected", action=action)
        return False

    def start(self, overrides: dict[str, Any]) -> bool:
        """Validate, persist with running=True and start the bot."""
        validation_errors = ConfigValidator.validate_bot_config(overrides)
        if not validation_errors:
            config = self.bot.config.merged(overrides, running=True)
            validation_errors = ConfigValidator.validate_start_request(config.to_record())

        if validation_errors:
            error_msgs = [f"{err.field}: {err.message} (got: {err.value})" for err in validation_errors]
            self.logger.error("Start request validation failed", errors=error_msgs)
            return False

        try:
            self.store.save(config)
        except PersistenceError as e:
            self.logger.error("Cannot persist start request", error=str(e), target=e.target)
            return False

        self.bot.start(config)
        return True

    def stop(self) -> bool:
        """Stop the bot, then persist running=False."""
        self.bot.stop()
        try:
            self.store.update(running=False)
        except PersistenceError as e:
            # Stopping must not depend on storage being healthy
            self.logger.error("Cannot persist stop request", error=str(e), target=e.target)
        return True
