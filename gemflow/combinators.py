"""Step combinators: sequential chaining, tapping and instrumentation."""

from __future__ import annotations

import inspect
import time
from typing import Any, Callable, Generic, TypeVar

from .events import StepEnd, StepError, StepStart
from .metrics import ExecutionContext
from .steps import Step

I = TypeVar("I")
M = TypeVar("M")
O = TypeVar("O")
S = TypeVar("S", bound=Step)


class ChainStep(Step[I, O]):
    """Run two steps in sequence; the first one's output feeds the second."""

    def __init__(self, first: Step[I, M], second: Step[M, O]) -> None:
        self.first = first
        self.second = second

    async def run(self, value: I, ctx: ExecutionContext) -> O:
        intermediate = await self.first.run(value, ctx)
        return await self.second.run(intermediate, ctx)


class ChainTupleStep(Step[I, "tuple[M, O]"]):
    """Run two steps in sequence and return both the intermediate and final results."""

    def __init__(self, first: Step[I, M], second: Step[M, O]) -> None:
        self.first = first
        self.second = second

    async def run(self, value: I, ctx: ExecutionContext) -> tuple[M, O]:
        intermediate = await self.first.run(value, ctx)
        output = await self.second.run(intermediate, ctx)
        return intermediate, output


class TapStep(Step[I, O]):
    """Run a side-effect function on an inner step's output and pass it through.

    The function receives the output and the execution context; if it
    returns an awaitable, that is awaited before the output is returned.
    """

    def __init__(self, inner: Step[I, O], func: Callable[[O, ExecutionContext], Any]) -> None:
        self.inner = inner
        self.func = func

    async def run(self, value: I, ctx: ExecutionContext) -> O:
        output = await self.inner.run(value, ctx)
        result = self.func(output, ctx)
        if inspect.isawaitable(result):
            await result
        return output


class InstrumentedStep(Step[I, O], Generic[I, O]):
    """Wrap a step so that it emits start, end and error events under a name."""

    def __init__(self, inner: Step[I, O], name: str) -> None:
        self.inner = inner
        self.name = str(name)

    async def run(self, value: I, ctx: ExecutionContext) -> O:
        ctx.emit(StepStart(step_name=self.name, input_type=type(value).__qualname__))
        start = time.perf_counter()
        try:
            output = await self.inner.run(value, ctx)
        except Exception as exc:
            ctx.emit(StepError(step_name=self.name, message=str(exc)))
            raise
        duration_ms = int((time.perf_counter() - start) * 1000)
        ctx.emit(StepEnd(step_name=self.name, duration_ms=duration_ms))
        return output