"""Pytest configuration and shared fixtures."""

import pytest
from typing import Callable, Optional
from unittest.mock import Mock

from tpbot_app.config.defaults import TimingParams
from tpbot_app.config.settings import BotConfig
from tpbot_app.dom.memory import MemoryDocument, MemoryElement
from tpbot_app.dom.selectors import DEFAULT_CATALOG, SelectorCatalog
from tpbot_app.state.machine import TicketBot
from tpbot_app.utils.timers import VirtualClock


class TicketPage:
    """Builds a MemoryDocument shaped like the ticketing site's event page."""

    def __init__(self, catalog: SelectorCatalog = DEFAULT_CATALOG):
        self.doc = MemoryDocument()
        self.catalog = catalog
        self._areas = 0

    def add_login_form(self, phone_value: str = "", password_value: str = "",
                       submit: bool = True) -> tuple:
        login = self.catalog.login
        phone = self.doc.add("phone", login.phone[0], value=phone_value)
        password = self.doc.add("password", login.password[0], value=password_value)
        button = self.doc.add("login-submit", login.submit_button) if submit else None
        return phone, password, button

    def add_area(self, text: str, parent: Optional[MemoryElement] = None,
                 on_click: Optional[Callable] = None) -> MemoryElement:
        self._areas += 1
        return self.doc.add(
            f"area-{self._areas}",
            self.catalog.ticket_area.area_buttons,
            text=text,
            parent=parent,
            on_click=on_click,
        )

    def add_tabs(self) -> MemoryElement:
        return self.doc.add("tabs", self.catalog.ticket_area.exclude_tabs)

    def add_refresh(self, visible: bool = True,
                    on_click: Optional[Callable] = None) -> MemoryElement:
        return self.doc.add(
            "refresh", self.catalog.ticket_area.refresh_button,
            text="更新票數", visible=visible, on_click=on_click,
        )

    def add_dialog(self, on_click: Optional[Callable] = None) -> MemoryElement:
        return self.doc.add(
            "dialog-confirm", self.catalog.dialog.confirm_button,
            text="確定", on_click=on_click,
        )

    def add_quantity_controls(self, with_next: bool = True,
                              on_next: Optional[Callable] = None) -> tuple:
        quantity = self.catalog.quantity
        host = self.doc.add("plus-host", quantity.plus_button_host)
        self.doc.add("plus-icon", quantity.plus_button, parent=host)
        next_button = None
        if with_next:
            next_button = self.doc.add("next", quantity.next_button, text="下一步", on_click=on_next)
        return host, next_button

    def clicks_on(self, name: str) -> int:
        return sum(1 for action in self.doc.actions_of("click") if action.element.name == name)


@pytest.fixture
def clock() -> VirtualClock:
    """Deterministic timer queue starting at t=0."""
    return VirtualClock()


@pytest.fixture
def page() -> TicketPage:
    """Empty ticketing page; tests add the regions they need."""
    return TicketPage()


@pytest.fixture
def timing() -> TimingParams:
    return TimingParams()


@pytest.fixture
def make_bot(page, clock, timing) -> Callable[..., TicketBot]:
    """Factory for a TicketBot on the page fixture with mock loggers."""

    def factory(**config_fields) -> TicketBot:
        bot = TicketBot(page.doc, page.doc, clock, catalog=page.catalog, timing=timing)
        bot.logger = Mock()
        bot.state_logger = Mock()
        bot.config = BotConfig().merged(**config_fields)
        return bot

    return factory


@pytest.fixture
def start_config() -> BotConfig:
    """Targeted run for the 2,800 area with debug logging on."""
    return BotConfig(target_prices=(2800,), debug=True)
