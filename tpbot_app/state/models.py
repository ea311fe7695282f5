"""
State machine data models for the ticket purchase flow.

This module defines the bot's state enumeration, availability results,
ephemeral area candidates and the small records the scheduler owns.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class BotState(str, Enum):
    """Purchase flow states."""
    IDLE = "idle"
    LOGGING_IN = "logging_in"
    LOADING = "loading"
    PRE_SALE = "pre_sale"
    SEARCHING = "searching"
    SELECTING = "selecting"
    WAITING_RETURN = "waiting_return"
    ERROR = "error"
    STOPPED = "stopped"


# Targets each state's handler may request. start/stop are commands and
# bypass this table.
LEGAL_TRANSITIONS: dict[BotState, frozenset[BotState]] = {
    BotState.IDLE: frozenset({BotState.LOGGING_IN, BotState.STOPPED}),
    BotState.LOGGING_IN: frozenset({BotState.LOGGING_IN, BotState.LOADING, BotState.STOPPED}),
    BotState.LOADING: frozenset({
        BotState.LOADING, BotState.ERROR, BotState.PRE_SALE,
        BotState.SEARCHING, BotState.STOPPED,
    }),
    BotState.PRE_SALE: frozenset({BotState.LOADING, BotState.STOPPED}),
    BotState.ERROR: frozenset({BotState.LOADING, BotState.STOPPED}),
    BotState.SEARCHING: frozenset({BotState.LOADING, BotState.SELECTING, BotState.STOPPED}),
    BotState.SELECTING: frozenset({BotState.WAITING_RETURN, BotState.SEARCHING, BotState.STOPPED}),
    BotState.WAITING_RETURN: frozenset({BotState.LOADING, BotState.STOPPED}),
    BotState.STOPPED: frozenset({BotState.IDLE, BotState.STOPPED}),
}

# States that are at rest while the run is not active
RESTING_STATES = frozenset({BotState.IDLE, BotState.STOPPED})


class AvailabilityStatus(str, Enum):
    """Availability classification of one area."""
    AVAILABLE = "available"
    SOLD_OUT = "sold_out"
    INSUFFICIENT_STOCK = "insufficient_stock"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Availability:
    """Result of classifying an area's status text."""
    available: bool
    status: AvailabilityStatus
    remaining: Optional[int] = None
    label: str = ""

    @property
    def actionable(self) -> bool:
        """Available with a known status; UNKNOWN is never acted on."""
        return self.available and self.status != AvailabilityStatus.UNKNOWN


@dataclass(frozen=True)
class AreaCandidate:
    """An area button that passed availability and price matching this cycle."""
    handle: Any                                      # ElementHandle from the observer
    price: int
    availability: Availability
    rank: int                                        # 0 = priority price tier
    index: int                                       # Position among valid area buttons


@dataclass
class LoginAttemptTimer:
    """Last login submission time; enforces the resubmission cooldown."""
    last_attempt_ms: Optional[int] = None

    def cooldown_elapsed(self, now_ms: int, cooldown_ms: int) -> bool:
        if self.last_attempt_ms is None:
            return True
        return now_ms - self.last_attempt_ms >= cooldown_ms

    def mark(self, now_ms: int) -> None:
        self.last_attempt_ms = now_ms


@dataclass(frozen=True)
class TransitionRecord:
    """One applied transition, kept in the scheduler's bounded history."""
    from_state: BotState
    to_state: BotState
    trigger: str
    at_ms: int
