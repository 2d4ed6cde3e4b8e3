"""Linear undo/redo container replaying recorded operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, List, Optional

from simple_undo.runtime import telemetry

from .operations import Operation, RecordedOperation
from .state import StateCloner, TState, resolve_cloner


@dataclass(slots=True)
class HistoryStats:
    """Lightweight snapshot describing the cursor position."""

    applied_count: int
    recorded_count: int

    @property
    def undo_depth(self) -> int:
        return self.applied_count

    @property
    def redo_depth(self) -> int:
        return self.recorded_count - self.applied_count


class HistoryConsumedError(RuntimeError):
    """Raised when a container is used after ``unwrap``."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"Cannot {operation}: the history was already unwrapped")
        self.operation = operation


class Undo(Generic[TState]):
    """Wraps a state and records every update so it can be undone or redone.

    The container keeps a copy of the initial state and the ordered list of
    applied operations. ``undo`` rebuilds the current state by replaying the
    remaining prefix onto a fresh copy of the initial state, so operations
    never need an inverse. They must however be deterministic and only touch
    the state they are given.

    An operation mutates the state in place and returns ``None``, or returns
    the replacement state when the value is immutable::

        counter = Undo(0)
        counter.update(lambda value: value + 10)
        counter.update(lambda value: value - 3)
        counter.undo()
        assert counter.state == 10

        text = Undo([])
        text.update(lambda chars: chars.append("a"))
        text.update(lambda chars: chars.append("b"))
        text.undo()
        assert text.state == ["a"]

    Any non-``None`` return value replaces the state, so mutators that return
    an element need ``in_place``::

        fields = Undo({"a": 1, "b": 2})
        fields.update(lambda d: d.pop("a"))            # state becomes 1
        fields.update(in_place(lambda d: d.pop("a")))  # state stays a dict
    """

    def __init__(
        self,
        state: TState,
        *,
        clone: Optional[StateCloner] = None,
        logger_name: Optional[str] = None,
    ) -> None:
        self._clone = resolve_cloner(clone)
        self._initial_state: TState = self._clone(state)
        self._current_state: TState = self._clone(state)
        self._operations: List[RecordedOperation[TState]] = []
        self._applied_count = 0
        self._revision = 0
        self._consumed = False
        self._logger_name = logger_name

    # -- read access -----------------------------------------------------

    @property
    def state(self) -> TState:
        """The current state. Treat it as read-only: mutate through ``update``."""

        self._ensure_alive("read state")
        return self._current_state

    @property
    def applied_count(self) -> int:
        self._ensure_alive("read applied_count")
        return self._applied_count

    def __len__(self) -> int:
        self._ensure_alive("read history length")
        return len(self._operations)

    def __bool__(self) -> bool:
        # an empty history is still a live container
        return True

    def revision(self) -> int:
        self._ensure_alive("read revision")
        return self._revision

    def can_undo(self) -> bool:
        self._ensure_alive("check undo")
        return self._applied_count > 0

    def can_redo(self) -> bool:
        self._ensure_alive("check redo")
        return self._applied_count < len(self._operations)

    def stats(self) -> HistoryStats:
        self._ensure_alive("read stats")
        return HistoryStats(
            applied_count=self._applied_count,
            recorded_count=len(self._operations),
        )

    def history_labels(self) -> tuple[str, ...]:
        self._ensure_alive("read history labels")
        return tuple(op.label for op in self._operations)

    # -- transitions -----------------------------------------------------

    def update(self, op: Operation[TState], *, label: Optional[str] = None) -> None:
        """Apply ``op`` to the current state and record it.

        Updating after an undo discards every operation that could still have
        been redone.
        """

        self._ensure_alive("update")
        recorded = RecordedOperation.from_operation(op, label=label)
        with telemetry.span(
            "history::update",
            logger_name=self._logger_name,
            component="history",
            metadata={"label": recorded.label, "applied": self._applied_count},
        ) as handle:
            if self._applied_count != len(self._operations):
                discarded = len(self._operations) - self._applied_count
                del self._operations[self._applied_count :]
                handle.add_metadata("discarded", discarded)
                telemetry.record_event(
                    "history.truncate",
                    data={"discarded": discarded, "kept": self._applied_count},
                    logger_name=self._logger_name,
                )
            self._current_state = recorded(self._current_state)
            self._operations.append(recorded)
            self._applied_count += 1
            self._revision += 1

    def undo(self) -> None:
        """Undo the last applied update. Does nothing when none is applied."""

        self._ensure_alive("undo")
        if self._applied_count == 0:
            self._record_noop("undo")
            return
        with telemetry.span(
            "history::undo",
            logger_name=self._logger_name,
            component="history",
            metadata={"applied": self._applied_count - 1},
        ):
            self._applied_count -= 1
            self._current_state = self._replay(self._applied_count)
            self._revision += 1

    def redo(self) -> None:
        """Reapply the next undone update. Does nothing at the end of history."""

        self._ensure_alive("redo")
        if self._applied_count == len(self._operations):
            self._record_noop("redo")
            return
        with telemetry.span(
            "history::redo",
            logger_name=self._logger_name,
            component="history",
            metadata={"applied": self._applied_count + 1},
        ):
            op = self._operations[self._applied_count]
            self._current_state = op(self._current_state)
            self._applied_count += 1
            self._revision += 1

    def unwrap(self) -> TState:
        """Return the current state and drop the history.

        The container cannot be used afterwards.
        """

        self._ensure_alive("unwrap")
        state = self._current_state
        telemetry.record_event(
            "history.unwrap",
            data={
                "applied": self._applied_count,
                "recorded": len(self._operations),
            },
            logger_name=self._logger_name,
        )
        self._consumed = True
        self._operations = []
        self._applied_count = 0
        del self._initial_state
        del self._current_state
        return state

    # -- internals -------------------------------------------------------

    def _replay(self, count: int) -> TState:
        state = self._clone(self._initial_state)
        for op in self._operations[:count]:
            state = op(state)
        return state

    def _record_noop(self, operation: str) -> None:
        telemetry.record_event(
            "history.noop",
            level="debug",
            data={"operation": operation, "applied": self._applied_count},
            logger_name=self._logger_name,
        )

    def _ensure_alive(self, operation: str) -> None:
        if self._consumed:
            raise HistoryConsumedError(operation)

    def __repr__(self) -> str:
        if self._consumed:
            return f"{type(self).__name__}(<unwrapped>)"
        return (
            f"{type(self).__name__}({self._current_state!r}, "
            f"applied={self._applied_count}, recorded={len(self._operations)})"
        )
