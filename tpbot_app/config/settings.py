"""
Run configuration for the ticket bot.

BotConfig is an immutable snapshot. The config store owns the persisted
record; the state machine only ever reads a snapshot and replaces it
wholesale on start/stop commands.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Mapping, Optional

from .defaults import BotDefaults

# Persisted record key -> BotConfig field
RECORD_KEYS = {
    "isRunning": "running",
    "ticketCount": "ticket_count",
    "grabAll": "grab_all",
    "targetPrices": "target_prices",
    "priorityPrice": "priority_price",
    "account": "account",
    "password": "password",
    "debug": "debug",
    "url": "url",
}


def _unique_prices(prices: Iterable[Any]) -> tuple[int, ...]:
    """Ordered, de-duplicated integer prices."""
    seen: dict[int, None] = {}
    for price in prices:
        seen.setdefault(int(price), None)
    return tuple(seen)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(frozen=True)
class BotConfig:
    """Run configuration consumed by the state machine each cycle."""

    running: bool = False
    ticket_count: int = BotDefaults.ticket_count
    grab_all: bool = BotDefaults.grab_all
    target_prices: tuple[int, ...] = field(default_factory=tuple)
    priority_price: Optional[int] = None
    account: str = ""
    password: str = ""
    debug: bool = BotDefaults.debug
    url: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "BotConfig":
        """Build from a persisted record; camelCase and snake_case keys are accepted."""
        return cls().merged(record)

    def merged(self, overrides: Optional[Mapping[str, Any]] = None, **changes: Any) -> "BotConfig":
        """Return a copy with overrides applied, then keyword changes."""
        values: dict[str, Any] = {}
        for key, value in (overrides or {}).items():
            name = RECORD_KEYS.get(key, key)
            if name in self.__dataclass_fields__:
                values[name] = value
        values.update(changes)

        if "target_prices" in values:
            values["target_prices"] = _unique_prices(values["target_prices"] or ())
        if "priority_price" in values:
            values["priority_price"] = _optional_int(values["priority_price"])
        if "ticket_count" in values:
            values["ticket_count"] = int(values["ticket_count"])
        for flag in ("running", "grab_all", "debug"):
            if flag in values:
                values[flag] = bool(values[flag])
        for text in ("account", "password", "url"):
            if text in values:
                values[text] = (values[text] or "").strip()

        return replace(self, **values)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase record."""
        record = {}
        for key, name in RECORD_KEYS.items():
            value = getattr(self, name)
            record[key] = list(value) if name == "target_prices" else value
        return record

    @property
    def has_credentials(self) -> bool:
        return bool(self.account and self.password)

    @property
    def price_mode(self) -> str:
        """'all' scans every area by its largest number; 'targeted' matches target prices."""
        return "all" if self.grab_all else "targeted"

    def matches_priority(self, price: Optional[int]) -> bool:
        """True when price equals the configured priority price."""
        return bool(self.priority_price) and price == self.priority_price

    def summary(self) -> dict[str, Any]:
        """Loggable view of the configuration, without the password."""
        return {
            "running": self.running,
            "ticket_count": self.ticket_count,
            "price_mode": self.price_mode,
            "target_prices": list(self.target_prices),
            "priority_price": self.priority_price,
            "account": self.account or None,
            "debug": self.debug,
            "url": self.url or None,
        }
