"""Chunked concurrent processing with a shared context."""

from __future__ import annotations

import asyncio
from typing import Any, Generic, Sequence, TypeVar

from .metrics import ExecutionContext
from .steps import Step

Item = TypeVar("Item")
Ctx = TypeVar("Ctx")
Out = TypeVar("Out")
I = TypeVar("I")
O = TypeVar("O")


async def _gather_bounded(coros: Sequence[Any], limit: int) -> list[Any]:
    """Await ``coros`` with at most ``limit`` running at once.

    All are awaited to completion; the first failure in input order is
    then raised.
    """
    semaphore = asyncio.Semaphore(limit)

    async def guarded(coro: Any) -> Any:
        async with semaphore:
            return await coro

    results = await asyncio.gather(*(guarded(c) for c in coros), return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class BatchStep(Step[tuple[list[Item], Ctx], list[Out]], Generic[Item, Ctx, Out]):
    """Split items into batches and run a worker on each batch concurrently.

    The input is ``(items, context)``; the worker receives
    ``(batch, context)`` and returns a list, and the lists are flattened.
    ``batch_size`` and ``concurrency`` are at least 1.
    """

    def __init__(
        self,
        worker: Step[tuple[list[Item], Ctx], list[Out]],
        batch_size: int,
        concurrency: int,
    ) -> None:
        self.worker = worker
        self.batch_size = max(1, batch_size)
        self.concurrency = max(1, concurrency)

    async def run(self, value: tuple[list[Item], Ctx], ctx: ExecutionContext) -> list[Out]:
        items, context = value
        items = list(items)
        if not items:
            return []

        chunks = [items[start : start + self.batch_size] for start in range(0, len(items), self.batch_size)]
        results = await _gather_bounded(
            [self.worker.run((chunk, context), ctx) for chunk in chunks], self.concurrency
        )
        return [output for chunk_result in results for output in chunk_result]


class SingleItemAdapter(Step[tuple[list[I], Any], list[O]]):
    """Run a single-item step over each item of a batch, in order."""

    def __init__(self, inner: Step[I, O]) -> None:
        self.inner = inner

    async def run(self, value: tuple[list[I], Any], ctx: ExecutionContext) -> list[O]:
        inputs, _ = value
        return [await self.inner.run(item, ctx) for item in inputs]