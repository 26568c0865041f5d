"""Observable state cells.

Cells are written and read on the event loop thread. Subscribers are
notified synchronously, in subscription order, every time a value is set.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Event(Generic[T]):
    """One-shot wrapper for messages that must be shown only once."""

    def __init__(self, content: T) -> None:
        self._content = content
        self.has_been_handled = False

    def get_content_if_not_handled(self) -> T | None:
        """Return the content the first time, None afterwards."""
        if self.has_been_handled:
            return None
        self.has_been_handled = True
        return self._content

    def peek_content(self) -> T:
        """Return the content whether or not it has been handled."""
        return self._content

    def __repr__(self) -> str:
        return f"Event({self._content!r}, handled={self.has_been_handled})"


class ObservableCell(Generic[T]):
    """A value holder that notifies subscribers on every set."""

    def __init__(self, name: str, initial: T) -> None:
        self.name = name
        self._value = initial
        self._subscribers: list[Callable[[str, T], None]] = []

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._value = new_value
        for subscriber in list(self._subscribers):
            try:
                subscriber(self.name, new_value)
            except Exception:
                logger.exception("Subscriber failed for cell %s", self.name)

    def subscribe(self, callback: Callable[[str, T], None]) -> Callable[[], None]:
        """Register a subscriber; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def __repr__(self) -> str:
        return f"ObservableCell({self.name}={self._value!r})"


@dataclass
class StateChange:
    """A single cell update as seen by a stream subscriber."""

    cell: str
    value: Any


class CellGroup:
    """Named set of cells that can be streamed as one change feed."""

    def __init__(self, cells: list[ObservableCell]) -> None:
        self.cells = {cell.name: cell for cell in cells}

    def changes(self, maxsize: int = 0) -> tuple[asyncio.Queue, Callable[[], None]]:
        """Open a change feed.

        Returns:
            Tuple of (queue of StateChange, close function)
        """
        queue: asyncio.Queue[StateChange] = asyncio.Queue(maxsize=maxsize)

        def on_change(name: str, value: Any) -> None:
            try:
                queue.put_nowait(StateChange(name, value))
            except asyncio.QueueFull:
                logger.warning("Change feed full, dropping update for %s", name)

        unsubscribers = [cell.subscribe(on_change) for cell in self.cells.values()]

        def close() -> None:
            for unsubscribe in unsubscribers:
                unsubscribe()

        return queue, close

    def values(self) -> dict[str, Any]:
        return {name: cell.value for name, cell in self.cells.items()}
