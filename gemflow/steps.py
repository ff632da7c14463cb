"""The core step abstraction and simple step types."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from .metrics import ExecutionContext

I = TypeVar("I")
O = TypeVar("O")
N = TypeVar("N")


class Step(ABC, Generic[I, O]):
    """A unit of asynchronous work that turns an input into an output."""

    @abstractmethod
    async def run(self, value: I, ctx: ExecutionContext) -> O:
        """Execute the step with ``value`` in the given context."""

    def then(self, next_step: "Step[O, N]") -> "Step[I, N]":
        """Chain with ``next_step``; this step's output becomes its input."""
        from .combinators import ChainStep

        return ChainStep(self, next_step)

    def then_tuple(self, next_step: "Step[O, N]") -> "Step[I, tuple[O, N]]":
        """Chain with ``next_step``, returning both intermediate and final results."""
        from .combinators import ChainTupleStep

        return ChainTupleStep(self, next_step)

    def map(self, func: Callable[[O], N]) -> "MapStep":
        """Transform this step's output with ``func``."""
        return MapStep(self, func)

    def tap(self, func: Callable[[O, ExecutionContext], Any]) -> "Step[I, O]":
        """Run ``func`` on the output and context, passing the output through unchanged."""
        from .combinators import TapStep

        return TapStep(self, func)

    def named(self, name: str) -> "Step[I, O]":
        """Wrap this step so that it emits start, end and error events under ``name``."""
        from .combinators import InstrumentedStep

        return InstrumentedStep(self, name)


class LambdaStep(Step[I, O]):
    """A step built from a function of the input.

    The function may be a coroutine function or return a plain value.
    """

    def __init__(self, func: Callable[[I], Union[Awaitable[O], O]]) -> None:
        self.func = func

    async def run(self, value: I, ctx: ExecutionContext) -> O:
        result = self.func(value)
        if inspect.isawaitable(result):
            result = await result
        return result


class MapStep(Step[I, N]):
    """A step that applies a function to the output of an inner step."""

    def __init__(self, inner: Step[I, O], func: Callable[[O], N]) -> None:
        self.inner = inner
        self.func = func

    async def run(self, value: I, ctx: ExecutionContext) -> N:
        output = await self.inner.run(value, ctx)
        return self.func(output)