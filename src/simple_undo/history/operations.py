"""Recorded mutation operations replayed by the history container."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Callable, Generic, Protocol, TypeVar, Union, runtime_checkable

from .state import TState

TState_contra = TypeVar("TState_contra", contravariant=True)


@runtime_checkable
class Command(Protocol[TState_contra]):
    """Explicit command object mutating a state in place (or returning a new one)."""

    def apply(self, state: TState_contra) -> Any:
        ...


Operation = Union[Callable[[TState], Any], Command[TState]]


def _describe(op: object) -> str:
    if isinstance(op, Command) and not callable(op):
        return type(op).__name__
    name = getattr(op, "__name__", None)
    if name:
        return str(name)
    # functools.partial and other wrappers
    inner = getattr(op, "func", None)
    if inner is not None:
        return _describe(inner)
    return type(op).__name__


@dataclass(frozen=True, slots=True)
class RecordedOperation(Generic[TState]):
    """Immutable record of one mutation, owned by the container.

    The handler must only capture independent values: it is invoked again on
    fresh copies of the initial state whenever the history is replayed.
    """

    handler: Callable[[TState], Any]
    label: str = ""

    def __post_init__(self) -> None:
        if not callable(self.handler):
            raise TypeError("handler must be callable")
        if not self.label:
            object.__setattr__(self, "label", _describe(self.handler))

    @classmethod
    def from_operation(
        cls, op: Operation[TState], *, label: str | None = None
    ) -> "RecordedOperation[TState]":
        if isinstance(op, RecordedOperation):
            return op if label is None else cls(op.handler, label)
        if isinstance(op, Command) and not callable(op):
            return cls(op.apply, label or type(op).__name__)
        if not callable(op):
            raise TypeError(
                f"Operation must be callable or expose apply(state), got {type(op).__name__}"
            )
        return cls(op, label or "")

    def __call__(self, state: TState) -> TState:
        """Apply the handler and return the resulting state.

        Handlers either mutate ``state`` in place and return ``None``, or
        return a replacement value (needed for immutable states such as
        ``int`` or ``str``).
        """

        result = self.handler(state)
        return state if result is None else result


def in_place(handler: Callable[[TState], Any]) -> Callable[[TState], None]:
    """Wrap a mutating callable so its return value never replaces the state.

    ``dict.pop``, ``dict.setdefault`` and ``list.pop`` mutate in place but
    return an element; without the wrapper that element becomes the state.
    """

    if not callable(handler):
        raise TypeError("handler must be callable")

    @functools.wraps(handler)
    def apply(state: TState) -> None:
        handler(state)

    return apply


__all__ = ["Command", "Operation", "RecordedOperation", "in_place"]
