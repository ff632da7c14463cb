"""Steps that halt a workflow so a person can review intermediate data."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

from .events import StepEnd, to_json_value
from .metrics import ExecutionContext
from .steps import Step

T = TypeVar("T")


class CheckpointError(Exception):
    """Raised when a workflow reaches a checkpoint.

    ``data`` holds the step's input converted to JSON values, so the run
    can be resumed later from the remaining steps with (possibly edited) data.
    """

    def __init__(self, step_name: str, data: Any) -> None:
        super().__init__(f"Workflow paused at checkpoint '{step_name}'")
        self.step_name = step_name
        self.data = data


def _halt(name: str, value: Any, ctx: ExecutionContext) -> None:
    data = to_json_value(value)
    ctx.emit(StepEnd(step_name=name, duration_ms=0))
    raise CheckpointError(name, data)


class CheckpointStep(Step[T, T]):
    """A step that always halts, raising :class:`CheckpointError` with its input."""

    def __init__(self, name: str) -> None:
        self.name = str(name)

    async def run(self, value: T, ctx: ExecutionContext) -> T:
        _halt(self.name, value, ctx)
        return value  # unreachable; _halt always raises


class ConditionalCheckpointStep(Step[T, T]):
    """A checkpoint that halts only when ``predicate(value)`` is true.

    Otherwise the input is passed through unchanged.
    """

    def __init__(self, name: str, predicate: Callable[[T], bool]) -> None:
        self.name = str(name)
        self.predicate = predicate

    async def run(self, value: T, ctx: ExecutionContext) -> T:
        if self.predicate(value):
            _halt(self.name, value, ctx)
        return value