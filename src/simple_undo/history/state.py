"""Value-duplication strategies for tracked state."""

from __future__ import annotations

import copy
from typing import Callable, Optional, TypeVar

TState = TypeVar("TState")

StateCloner = Callable[[TState], TState]


def clone_state(state: TState) -> TState:
    """Return an independent copy of ``state``.

    Objects exposing a zero-argument ``clone()`` method are asked to copy
    themselves; everything else goes through ``copy.deepcopy``.
    """

    clone_method = getattr(state, "clone", None)
    if callable(clone_method) and not isinstance(state, type):
        return clone_method()
    return copy.deepcopy(state)


def resolve_cloner(clone: Optional[StateCloner] = None) -> StateCloner:
    if clone is None:
        return clone_state
    if not callable(clone):
        raise TypeError("clone must be callable")
    return clone


__all__ = ["StateCloner", "TState", "clone_state", "resolve_cloner"]
