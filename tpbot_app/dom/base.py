"""Base classes for reading and mutating the ticketing page document."""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union

from ..classifier.availability import is_category_label
from ..errors import TransientObservationMiss
from .selectors import TicketAreaSelectors

ENTER_KEY = "Enter"


class ElementHandle(ABC):
    """Opaque reference to a region of the observed document."""

    @property
    @abstractmethod
    def text(self) -> str:
        """Rendered text of the element (innerText)."""
        pass

    @property
    @abstractmethod
    def value(self) -> str:
        """Current value of a form field; empty for other elements."""
        pass

    @abstractmethod
    def closest(self, selector: str) -> Optional["ElementHandle"]:
        """Nearest ancestor-or-self matching a CSS selector."""
        pass


class DocumentObserver(ABC):
    """Side-effect-free queries against the current document."""

    @abstractmethod
    def find_first(self, selectors: Union[str, Sequence[str]]) -> Optional[ElementHandle]:
        """
        First element matching any selector, trying selectors in order.

        Args:
            selectors: One CSS selector or an ordered list of fallbacks

        Returns:
            Matching handle, or None when nothing matches
        """
        pass

    @abstractmethod
    def find_by_path_expr(self, expr: str) -> Optional[ElementHandle]:
        """First element matching an XPath expression, or None."""
        pass

    @abstractmethod
    def is_visible(self, handle: ElementHandle) -> bool:
        """True when the element takes part in layout."""
        pass

    @abstractmethod
    def query_all(self, selector: str) -> list[ElementHandle]:
        """All elements matching a CSS selector, in document order."""
        pass


class DocumentActuator(ABC):
    """
    Mutations of the document.

    Calls are fire-and-forget: an element that detached before the call
    lands is not an error, the state machine observes the outcome on its
    next poll instead.
    """

    @abstractmethod
    def set_field_value(self, handle: ElementHandle, value: str) -> None:
        """Clear and set a field, firing input and change notifications."""
        pass

    @abstractmethod
    def click(self, handle: ElementHandle) -> None:
        pass

    @abstractmethod
    def simulate_key_press(self, handle: ElementHandle, key: str = ENTER_KEY) -> None:
        """Dispatch keydown, keypress and keyup for key on the element."""
        pass


def valid_area_buttons(
    observer: DocumentObserver,
    selectors: TicketAreaSelectors,
) -> list[ElementHandle]:
    """
    Area buttons that represent purchasable areas.

    Group tab labels and buttons inside the tab strip are excluded.
    """
    buttons = []
    for button in observer.query_all(selectors.area_buttons):
        try:
            if is_category_label(button.text):
                continue
            if button.closest(selectors.exclude_tabs) is not None:
                continue
        except TransientObservationMiss:
            # Detached mid-read; the next poll sees the re-rendered list
            continue
        buttons.append(button)
    return buttons
