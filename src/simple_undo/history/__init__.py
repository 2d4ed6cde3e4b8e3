"""History container and the operation records it replays."""

from .operations import Command, Operation, RecordedOperation, in_place
from .state import StateCloner, clone_state, resolve_cloner
from .undo import HistoryConsumedError, HistoryStats, Undo

__all__ = [
    "Undo",
    "HistoryStats",
    "HistoryConsumedError",
    "Command",
    "Operation",
    "RecordedOperation",
    "in_place",
    "StateCloner",
    "clone_state",
    "resolve_cloner",
]
