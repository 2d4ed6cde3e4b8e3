from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

import pytest

from simple_undo import HistoryConsumedError, HistoryStats, Undo


@dataclass
class Counter:
    count: int = 0


@dataclass
class Form:
    fields: dict[str, str] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)


def add(amount: int) -> Callable[[Counter], None]:
    def apply(counter: Counter) -> None:
        counter.count += amount

    return apply


def set_to(value: int) -> Callable[[Counter], None]:
    def apply(counter: Counter) -> None:
        counter.count = value

    return apply


def replay_directly(initial: Counter, ops: List[Callable[[Counter], None]]) -> Counter:
    state = Counter(initial.count)
    for op in ops:
        op(state)
    return state


def test_construct_starts_empty() -> None:
    history = Undo(Counter(3))

    assert history.state == Counter(3)
    assert history.applied_count == 0
    assert len(history) == 0
    assert history.stats() == HistoryStats(applied_count=0, recorded_count=0)
    assert not history.can_undo()
    assert not history.can_redo()


def test_construct_does_not_alias_caller_state() -> None:
    original = Form(fields={"name": "ada"})
    history = Undo(original)

    history.update(lambda form: form.fields.update(name="grace"))

    assert original.fields == {"name": "ada"}
    assert history.state.fields == {"name": "grace"}


def test_it_can_undo_and_redo_updates() -> None:
    counter = Undo(Counter())
    counter.update(set_to(5))
    assert counter.state.count == 5
    counter.update(add(3))
    assert counter.state.count == 8

    counter.undo()
    assert counter.state.count == 5
    counter.undo()
    assert counter.state.count == 0

    counter.redo()
    assert counter.state.count == 5
    counter.redo()
    assert counter.state.count == 8


def test_numeric_scenario_with_immutable_state() -> None:
    value = Undo(0)

    value.update(lambda v: v + 10)
    assert value.state == 10
    value.update(lambda v: v - 3)
    assert value.state == 7

    value.undo()
    assert value.state == 10
    value.undo()
    assert value.state == 0
    value.redo()
    assert value.state == 10
    value.redo()
    assert value.state == 7


def test_it_does_nothing_on_too_many_undo_or_redo() -> None:
    counter = Undo(Counter(3))
    counter.undo()
    assert counter.state.count == 3
    counter.redo()
    assert counter.state.count == 3

    counter.update(set_to(8))
    assert counter.state.count == 8
    for _ in range(3):
        counter.undo()
    assert counter.state.count == 3
    assert counter.applied_count == 0
    for _ in range(4):
        counter.redo()
    assert counter.state.count == 8
    assert counter.applied_count == 1


def test_boundary_noops_do_not_bump_revision() -> None:
    counter = Undo(Counter())
    counter.undo()
    counter.redo()
    assert counter.revision() == 0

    counter.update(add(1))
    counter.redo()
    assert counter.revision() == 1

    counter.undo()
    counter.undo()
    assert counter.revision() == 2


def test_it_discards_previous_updates_when_updating_after_an_undo() -> None:
    counter = Undo(Counter())
    for _ in range(5):
        counter.update(add(2))
    assert counter.state.count == 10

    counter.undo()
    counter.undo()
    counter.undo()
    assert counter.state.count == 4
    counter.redo()
    assert counter.state.count == 6

    counter.update(add(10))
    assert counter.state.count == 16
    assert len(counter) == 4
    assert not counter.can_redo()

    counter.redo()
    counter.redo()
    assert counter.state.count == 16

    counter.undo()
    counter.undo()
    assert counter.state.count == 4
    counter.redo()
    counter.redo()
    assert counter.state.count == 16


@pytest.mark.parametrize("undone", [1, 2, 3, 4])
def test_update_after_undo_leaves_new_edit_as_only_forward_step(undone: int) -> None:
    counter = Undo(Counter())
    for amount in (1, 2, 3, 4):
        counter.update(add(amount))
    for _ in range(undone):
        counter.undo()

    counter.update(set_to(100))

    assert counter.stats() == HistoryStats(
        applied_count=5 - undone, recorded_count=5 - undone
    )
    counter.redo()
    assert counter.state.count == 100
    counter.undo()
    counter.redo()
    assert counter.state.count == 100


@pytest.mark.parametrize(
    "amounts",
    [
        (),
        (1,),
        (5, -2, 7),
        (3, 3, 3, 3, 3, 3, 3, 3),
        (10, -10, 10, -10, 1),
    ],
)
def test_replay_equivalence(amounts: tuple[int, ...]) -> None:
    initial = Counter(11)
    ops = [add(amount) for amount in amounts]
    history = Undo(initial)

    for op in ops:
        history.update(op)

    assert history.state == replay_directly(initial, ops)
    for applied in range(len(ops), 0, -1):
        history.undo()
        assert history.state == replay_directly(initial, ops[: applied - 1])


@pytest.mark.parametrize("steps", [1, 2, 6])
def test_undo_then_redo_leaves_state_unchanged(steps: int) -> None:
    form = Undo(Form())
    for index in range(steps):
        form.update(lambda f, i=index: f.tags.append(f"tag-{i}"))
        form.update(lambda f, i=index: f.fields.__setitem__(f"k{i}", str(i)))
    before = Form(fields=dict(form.state.fields), tags=list(form.state.tags))

    form.undo()
    form.redo()

    assert form.state == before


def test_undo_never_mutates_initial_snapshot() -> None:
    form = Undo(Form(tags=["base"]))
    form.update(lambda f: f.tags.append("one"))
    form.update(lambda f: f.tags.append("two"))

    form.undo()
    form.undo()
    form.undo()
    assert form.state.tags == ["base"]

    form.redo()
    form.redo()
    assert form.state.tags == ["base", "one", "two"]


def test_custom_clone_strategy_is_used_for_construction_and_replay() -> None:
    calls: List[List[int]] = []

    def clone(values: List[int]) -> List[int]:
        copied = list(values)
        calls.append(copied)
        return copied

    history = Undo([1, 2], clone=clone)
    assert len(calls) == 2

    history.update(lambda values: values.append(3))
    history.undo()

    assert len(calls) == 3
    assert history.state == [1, 2]


def test_state_clone_method_is_preferred() -> None:
    @dataclass
    class Document:
        lines: List[str]
        clones: int = 0

        def clone(self) -> "Document":
            return Document(list(self.lines), self.clones + 1)

    history = Undo(Document(["a"]))
    history.update(lambda doc: doc.lines.append("b"))
    history.undo()

    assert history.state.lines == ["a"]
    assert history.state.clones == 2


def test_non_callable_clone_is_rejected() -> None:
    with pytest.raises(TypeError):
        Undo(Counter(), clone="deepcopy")  # type: ignore[arg-type]


def test_unwrap_returns_current_state() -> None:
    message = Undo("")
    message.update(lambda text: text + "Hello ")
    message.update(lambda text: text + "world !")
    visible = message.state

    result = message.unwrap()

    assert result == "Hello world !"
    assert result is visible


def test_unwrap_after_undo_returns_visible_state() -> None:
    counter = Undo(Counter())
    counter.update(add(10))
    counter.update(add(5))
    counter.undo()
    visible = counter.state

    assert counter.unwrap() is visible
    assert visible.count == 10


@pytest.mark.parametrize(
    "call",
    [
        lambda h: h.update(add(1)),
        lambda h: h.undo(),
        lambda h: h.redo(),
        lambda h: h.unwrap(),
        lambda h: h.state,
        lambda h: h.stats(),
        lambda h: len(h),
    ],
)
def test_container_is_unusable_after_unwrap(call: Callable[[Undo[Counter]], object]) -> None:
    counter = Undo(Counter())
    counter.update(add(1))
    counter.unwrap()

    with pytest.raises(HistoryConsumedError):
        call(counter)


def test_failing_operation_propagates_and_is_not_recorded() -> None:
    counter = Undo(Counter())
    counter.update(add(1))

    def explode(_: Counter) -> None:
        raise ZeroDivisionError("boom")

    with pytest.raises(ZeroDivisionError):
        counter.update(explode)

    assert len(counter) == 1
    assert counter.applied_count == 1
    assert counter.state.count == 1


def test_history_labels_follow_truncation() -> None:
    counter = Undo(Counter())
    counter.update(add(1), label="first")
    counter.update(add(2), label="second")
    counter.update(add(3))
    assert counter.history_labels() == ("first", "second", "apply")

    counter.undo()
    counter.undo()
    counter.update(set_to(0), label="reset")

    assert counter.history_labels() == ("first", "reset")


def test_repr_reports_cursor() -> None:
    counter = Undo(Counter())
    counter.update(add(1))
    counter.undo()

    assert repr(counter) == "Undo(Counter(count=0), applied=0, recorded=1)"
    counter.unwrap()
    assert repr(counter) == "Undo(<unwrapped>)"


def test_empty_history_is_truthy() -> None:
    history = Undo(Counter())
    existing = None

    assert len(history) == 0
    assert history
    assert (existing or history) is history
