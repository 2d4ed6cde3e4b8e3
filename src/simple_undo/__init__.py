"""Linear undo/redo for arbitrary cloneable state."""

from .history import (
    Command,
    HistoryConsumedError,
    HistoryStats,
    RecordedOperation,
    Undo,
    clone_state,
    in_place,
)

__all__ = [
    "Command",
    "HistoryConsumedError",
    "HistoryStats",
    "RecordedOperation",
    "in_place",
    "Undo",
    "clone_state",
    "history",
    "runtime",
]

__version__ = "0.1.0"
