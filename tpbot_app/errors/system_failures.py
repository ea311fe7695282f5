"""
Bot failure error classifications.

These exceptions represent faults in the bot itself or in its
configuration storage, as opposed to conditions on the observed page.
"""

from typing import Optional, Dict, Any


class BotFailureError(Exception):
    """Base class for failures that are not resolved by re-polling."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class StateTransitionError(BotFailureError):
    """A handler requested a transition outside the legal transition table."""

    def __init__(self, message: str, current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class PersistenceError(BotFailureError):
    """Configuration record could not be read, decoded or written."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
