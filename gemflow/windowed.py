"""Process items in fixed-size windows with a shared context."""

from __future__ import annotations

from typing import Generic, TypeVar

from .batch import BatchStep
from .metrics import ExecutionContext
from .steps import Step

Item = TypeVar("Item")
Ctx = TypeVar("Ctx")
Out = TypeVar("Out")


class WindowedContextStep(Step[tuple[list[Item], Ctx], list[Out]], Generic[Item, Ctx, Out]):
    """Split items into windows and run each window concurrently with the same context.

    The input is ``(items, context)``; results are flattened into one list.
    ``window_size`` and ``concurrency`` are at least 1.
    """

    def __init__(
        self,
        worker: Step[tuple[list[Item], Ctx], list[Out]],
        window_size: int,
        concurrency: int,
    ) -> None:
        self._batch = BatchStep(worker, window_size, concurrency)

    @property
    def window_size(self) -> int:
        return self._batch.batch_size

    @property
    def concurrency(self) -> int:
        return self._batch.concurrency

    async def run(self, value: tuple[list[Item], Ctx], ctx: ExecutionContext) -> list[Out]:
        return await self._batch.run(value, ctx)