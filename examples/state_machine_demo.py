#!/usr/bin/env python3
"""
State Machine Demo - TPBot

This script walks the bot through a scripted ticketing page on virtual
time, showing how a run moves through its states:
- LoggingIn → Loading → PreSale while the sale has not opened
- Refresh until the areas go on sale
- Searching → Selecting → WaitingReturn once the target area is hot
- Stop from any state

Run: python examples/state_machine_demo.py
"""

from tpbot_app.config.settings import BotConfig
from tpbot_app.dom.memory import MemoryDocument
from tpbot_app.dom.selectors import DEFAULT_CATALOG
from tpbot_app.logging.config import configure_logging
from tpbot_app.state.machine import TicketBot
from tpbot_app.utils.timers import VirtualClock

CATALOG = DEFAULT_CATALOG


class DemoTicketPage:
    """Event page that opens the sale on the second refresh."""

    def __init__(self):
        self.doc = MemoryDocument()
        self.refreshes = 0
        self.doc.add("phone", CATALOG.login.phone[0])
        self.doc.add("password", CATALOG.login.password[0], on_key=self.on_login_submit)
        self.doc.add("login-submit", CATALOG.login.submit_button, text="登入")
        self.doc.add(
            "refresh", CATALOG.ticket_area.refresh_button,
            text="更新票數", on_click=self.on_refresh,
        )
        self.render_areas(open_sale=False)

    def render_areas(self, open_sale: bool):
        self.doc.remove_matching(CATALOG.ticket_area.area_buttons)
        self.doc.add("tab", CATALOG.ticket_area.area_buttons, text="搖滾區")
        if open_sale:
            self.doc.add("area-rock", CATALOG.ticket_area.area_buttons,
                         text="搖滾A區 NT$3,200 已售完")
            self.doc.add("area-floor", CATALOG.ticket_area.area_buttons,
                         text="二樓B區 NT$2,800 剩餘 12", on_click=self.on_area_click)
        else:
            self.doc.add("area-rock", CATALOG.ticket_area.area_buttons,
                         text="搖滾A區 NT$3,200 開賣時間 10/20 12:00")

    def on_login_submit(self, element, key):
        for locator in (*CATALOG.login.phone[:1], *CATALOG.login.password[:1], CATALOG.login.submit_button):
            self.doc.remove_matching(locator)

    def on_refresh(self, element):
        self.refreshes += 1
        self.render_areas(open_sale=self.refreshes >= 2)

    def on_area_click(self, element):
        host = self.doc.add("plus-host", CATALOG.quantity.plus_button_host)
        self.doc.add("plus-icon", CATALOG.quantity.plus_button, parent=host)
        self.doc.add("next", CATALOG.quantity.next_button, text="下一步", on_click=self.on_next)

    def on_next(self, element):
        for locator in (CATALOG.quantity.plus_button, CATALOG.quantity.plus_button_host,
                        CATALOG.quantity.next_button):
            self.doc.remove_matching(locator)


def print_history(bot: TicketBot):
    print("\n📊 STATE TRANSITION SUMMARY")
    print("=" * 50)
    for record in bot.history:
        print(f"  t={record.at_ms:>5}ms  {record.from_state.value:>14} → "
              f"{record.to_state.value:<14} ({record.trigger})")


def print_actions(page: DemoTicketPage):
    print("\n🖱️  PAGE ACTIONS")
    print("=" * 50)
    for action in page.doc.actions:
        value = f" = {action.value!r}" if action.value else ""
        print(f"  {action.kind:<5} {action.element.name}{value}")


def main():
    print("🎫 TPBot State Machine Demo")
    print("=" * 50)
    configure_logging(level="INFO")

    clock = VirtualClock()
    page = DemoTicketPage()
    bot = TicketBot(page.doc, page.doc, clock)

    config = BotConfig(
        target_prices=(3200, 2800),
        priority_price=3200,
        ticket_count=2,
        account="0912345678",
        password="demo-password",
        debug=True,
    )
    bot.start(config)

    # Run until the first purchase flow hands off to checkout
    while bot.purchases == 0 and clock.now_ms() < 60_000:
        clock.advance(10)

    bot.stop()
    clock.advance(0)

    print_history(bot)
    print_actions(page)
    print(f"\n✅ Finished in state {bot.state.value} after {clock.now_ms()}ms virtual time, "
          f"{page.refreshes} refreshes")


if __name__ == "__main__":
    main()
