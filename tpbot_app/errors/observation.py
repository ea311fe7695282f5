"""
Observation error classifications for document reads.

These exceptions describe reads of the ticketing page that did not yield
a usable answer. They are always handled inside the state machine by
re-polling or by a refresh-and-revalidate cycle.
"""

from typing import Optional, Dict, Any


class ObservationError(Exception):
    """Base class for document observations that can be retried."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class TransientObservationMiss(ObservationError):
    """An element was detached or not yet present when it was read."""

    def __init__(self, message: str, locator: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.locator = locator


class AmbiguousStateError(ObservationError):
    """Classification returned Unknown where a decision is required."""

    def __init__(self, message: str, status: Optional[str] = None,
                 price: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status
        self.price = price
