"""
Selector catalog for the ticketing site's markup.

Pure data: where each semantic region of the page lives. Each locator is
either an ordered tuple of CSS fallbacks (first match wins), a single CSS
selector, or an XPath expression. The catalog is versioned with the site's
markup and can be overridden from selectors.yaml without code changes.
"""

from dataclasses import asdict, dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class LoginSelectors:
    phone: tuple[str, ...] = (
        "input[type='tel']",
        "input[name*='phone']",
        "#MazPhoneNumberInput-20_phone_number",
    )
    password: tuple[str, ...] = (
        "input[type='password']",
        "#input-26",
    )
    submit_button: str = "//button[contains(., '登入') or contains(., '登錄') or contains(., 'Login')]"


@dataclass(frozen=True)
class TicketAreaSelectors:
    area_buttons: str = "button.v-expansion-panel-header"
    exclude_tabs: str = ".v-tabs"
    refresh_button: str = "//span[contains(text(), '更新票數')]"


@dataclass(frozen=True)
class QuantitySelectors:
    plus_button: str = "button i.mdi-plus"
    plus_button_host: str = "button"          # ancestor that receives the click
    next_button: str = "//button/span[contains(text(), '下一步')]"


@dataclass(frozen=True)
class DialogSelectors:
    confirm_button: str = "//span[contains(text(), '確定')]"


@dataclass(frozen=True)
class StatusText:
    pre_sale: str = "開賣時間"
    hot_selling: str = "熱賣中"
    sold_out: str = "已售完"
    remaining_zero: str = "剩餘 0"
    remaining_pattern: str = r"剩餘\s*(\d+)"


@dataclass(frozen=True)
class SelectorCatalog:
    login: LoginSelectors = LoginSelectors()
    ticket_area: TicketAreaSelectors = TicketAreaSelectors()
    quantity: QuantitySelectors = QuantitySelectors()
    dialog: DialogSelectors = DialogSelectors()
    status_text: StatusText = StatusText()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SelectorCatalog":
        """Rebuild a catalog from nested mappings; missing groups keep defaults."""
        login = dict(data.get("login", {}))
        for fallbacks in ("phone", "password"):
            if fallbacks in login:
                value = login[fallbacks]
                login[fallbacks] = (value,) if isinstance(value, str) else tuple(value)

        return cls(
            login=LoginSelectors(**login),
            ticket_area=TicketAreaSelectors(**data.get("ticket_area", {})),
            quantity=QuantitySelectors(**data.get("quantity", {})),
            dialog=DialogSelectors(**data.get("dialog", {})),
            status_text=StatusText(**data.get("status_text", {})),
        )


DEFAULT_CATALOG = SelectorCatalog()
