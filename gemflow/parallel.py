"""Apply a step to many inputs concurrently."""

from __future__ import annotations

from typing import TypeVar

from .batch import _gather_bounded
from .metrics import ExecutionContext
from .steps import Step

I = TypeVar("I")
O = TypeVar("O")

_DEFAULT_CONCURRENCY = 4


class ParallelMapStep(Step[list[I], list[O]]):
    """Run a worker step on each input, at most ``concurrency`` at a time.

    ``concurrency`` is at least 1. All inputs are processed before the
    first failure, in input order, is raised.
    """

    def __init__(self, worker: Step[I, O], concurrency: int) -> None:
        self.worker = worker
        self.concurrency = max(1, concurrency)

    async def run(self, value: list[I], ctx: ExecutionContext) -> list[O]:
        inputs = list(value)
        if not inputs:
            return []
        return await _gather_bounded([self.worker.run(item, ctx) for item in inputs], self.concurrency)


class ParallelMapBuilder:
    """Fluent builder for :class:`ParallelMapStep`; concurrency defaults to 4."""

    def __init__(self, worker: Step[I, O]) -> None:
        self.worker = worker
        self._concurrency = _DEFAULT_CONCURRENCY

    def concurrency(self, limit: int) -> "ParallelMapBuilder":
        """Set the concurrency limit (at least 1)."""
        self._concurrency = max(1, limit)
        return self

    def build(self) -> ParallelMapStep:
        """Build the parallel map step."""
        return ParallelMapStep(self.worker, self._concurrency)