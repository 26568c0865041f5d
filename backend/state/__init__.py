"""Session state: observable cells, view derivations and the controller."""

from state.controller import ChatController
from state.observable import CellGroup, Event, ObservableCell, StateChange
from state.registry import SessionRegistry

__all__ = [
    "ChatController",
    "CellGroup",
    "Event",
    "ObservableCell",
    "StateChange",
    "SessionRegistry",
]
