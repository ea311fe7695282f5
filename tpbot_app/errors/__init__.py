"""
Error classification for the ticket bot.

Exceptions are grouped by how the state machine recovers from them:
observation errors are absorbed by re-polling or a refresh cycle,
recoverable errors restart a phase, and bot failures are logged by the
top-level guard in the scheduler.
"""

from .observation import (
    ObservationError,
    TransientObservationMiss,
    AmbiguousStateError,
)
from .system_failures import (
    BotFailureError,
    StateTransitionError,
    PersistenceError,
)
from .recovery import (
    RecoverableError,
    ActionTimeoutError,
)

__all__ = [
    # Observation Errors
    "ObservationError",
    "TransientObservationMiss",
    "AmbiguousStateError",
    # Bot Failures
    "BotFailureError",
    "StateTransitionError",
    "PersistenceError",
    # Recovery Categories
    "RecoverableError",
    "ActionTimeoutError",
]
