"""
In-memory document implementing the observer and actuator contracts.

Elements declare which locators (CSS selectors or XPath expressions) they
answer to; there is no selector engine. Page behavior is scripted through
per-element on_click / on_key callbacks, which lets tests and demos model
a page that re-renders in response to the bot's actions.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Sequence, Union

from ..errors import TransientObservationMiss
from .base import ENTER_KEY, DocumentActuator, DocumentObserver, ElementHandle


@dataclass
class Action:
    """One mutation performed through the actuator."""
    kind: str                                   # "fill", "click" or "key"
    element: "MemoryElement"
    value: Optional[str] = None


class MemoryElement(ElementHandle):
    """Element of a MemoryDocument."""

    def __init__(
        self,
        document: "MemoryDocument",
        name: str,
        text: str = "",
        value: str = "",
        matches: Iterable[str] = (),
        parent: Optional["MemoryElement"] = None,
        visible: bool = True,
        on_click: Optional[Callable[["MemoryElement"], None]] = None,
        on_key: Optional[Callable[["MemoryElement", str], None]] = None,
    ) -> None:
        self.document = document
        self.name = name
        self._text = text
        self._value = value
        self.matches = set(matches)
        self.parent = parent
        self.visible = visible
        self.on_click = on_click
        self.on_key = on_key
        self.attached = True
        self.clicks = 0

    @property
    def text(self) -> str:
        if not self.attached:
            raise TransientObservationMiss("Element detached", locator=self.name)
        return self._text

    @text.setter
    def text(self, value: str) -> None:
        self._text = value

    @property
    def value(self) -> str:
        if not self.attached:
            raise TransientObservationMiss("Element detached", locator=self.name)
        return self._value

    @value.setter
    def value(self, value: str) -> None:
        self._value = value

    def closest(self, selector: str) -> Optional["MemoryElement"]:
        node: Optional[MemoryElement] = self
        while node is not None:
            if selector in node.matches:
                return node
            node = node.parent
        return None

    def __repr__(self) -> str:
        return f"<MemoryElement {self.name!r}>"


@dataclass
class MemoryDocument(DocumentObserver, DocumentActuator):
    """Scriptable document used by the test suite and the demo."""

    elements: list[MemoryElement] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)

    # --- building -----------------------------------------------------

    def add(self, name: str, matches: Union[str, Iterable[str]] = (), **kwargs) -> MemoryElement:
        """Append an element that answers to the given locator(s)."""
        if isinstance(matches, str):
            matches = (matches,)
        element = MemoryElement(self, name, matches=matches, **kwargs)
        self.elements.append(element)
        return element

    def remove(self, element: MemoryElement) -> None:
        """Detach an element; stale handles raise on read."""
        element.attached = False
        self.elements = [e for e in self.elements if e is not element]

    def remove_matching(self, locator: str) -> None:
        for element in [e for e in self.elements if locator in e.matches]:
            self.remove(element)

    def clear(self) -> None:
        for element in list(self.elements):
            self.remove(element)

    def get(self, name: str) -> Optional[MemoryElement]:
        return next((e for e in self.elements if e.name == name), None)

    def actions_of(self, kind: str) -> list[Action]:
        return [a for a in self.actions if a.kind == kind]

    # --- observer -----------------------------------------------------

    def find_first(self, selectors: Union[str, Sequence[str]]) -> Optional[MemoryElement]:
        if isinstance(selectors, str):
            selectors = [selectors]
        for selector in selectors:
            for element in self.elements:
                if selector in element.matches:
                    return element
        return None

    def find_by_path_expr(self, expr: str) -> Optional[MemoryElement]:
        return self.find_first(expr)

    def is_visible(self, handle: ElementHandle) -> bool:
        return isinstance(handle, MemoryElement) and handle.attached and handle.visible

    def query_all(self, selector: str) -> list[MemoryElement]:
        return [e for e in self.elements if selector in e.matches]

    # --- actuator -----------------------------------------------------

    def set_field_value(self, handle: ElementHandle, value: str) -> None:
        if not self._live(handle):
            return
        handle.value = value
        self.actions.append(Action("fill", handle, value))

    def click(self, handle: ElementHandle) -> None:
        if not self._live(handle):
            return
        handle.clicks += 1
        self.actions.append(Action("click", handle))
        if handle.on_click:
            handle.on_click(handle)

    def simulate_key_press(self, handle: ElementHandle, key: str = ENTER_KEY) -> None:
        if not self._live(handle):
            return
        self.actions.append(Action("key", handle, key))
        if handle.on_key:
            handle.on_key(handle, key)

    @staticmethod
    def _live(handle: ElementHandle) -> bool:
        return isinstance(handle, MemoryElement) and handle.attached
