"""Workflows that carry a mutable state object across steps."""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from .metrics import ExecutionContext, WorkflowMetrics
from .steps import Step

S = TypeVar("S")
I = TypeVar("I")
O = TypeVar("O")

logger = logging.getLogger(__name__)


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class StateStep(ABC, Generic[S]):
    """A workflow step that operates on shared mutable state."""

    @abstractmethod
    async def run(self, state: S, ctx: ExecutionContext) -> None:
        """Update ``state`` in place."""


class LambdaStateStep(StateStep[S]):
    """A state step built from a function of the state and context."""

    def __init__(self, func: Callable[[S, ExecutionContext], Union[Awaitable[None], None]]) -> None:
        self.func = func

    async def run(self, state: S, ctx: ExecutionContext) -> None:
        await _resolve(self.func(state, ctx))


class StepAdapter(StateStep[S]):
    """Let a regular step take part in a stateful workflow.

    ``getter`` derives the step's input from the state; ``setter`` stores
    the step's output back into the state.
    """

    def __init__(
        self,
        step: Step[I, O],
        getter: Callable[[S], I],
        setter: Callable[[S, O], Any],
    ) -> None:
        self.inner = step
        self.getter = getter
        self.setter = setter

    async def run(self, state: S, ctx: ExecutionContext) -> None:
        value = self.getter(state)
        output = await self.inner.run(value, ctx)
        self.setter(state, output)


class StateWorkflow(Generic[S]):
    """Runs state steps in order over one state object."""

    def __init__(self, state: S) -> None:
        self.state = state
        self.steps: list[StateStep[S]] = []
        self.name: str | None = None

    def with_name(self, name: str) -> "StateWorkflow[S]":
        """Name the workflow for logging."""
        self.name = str(name)
        return self

    def step(self, step: StateStep[S]) -> "StateWorkflow[S]":
        """Add a state step."""
        self.steps.append(step)
        return self

    def step_fn(
        self, func: Callable[[S, ExecutionContext], Union[Awaitable[None], None]]
    ) -> "StateWorkflow[S]":
        """Add a function-based state step."""
        return self.step(LambdaStateStep(func))

    def with_adapter(
        self,
        step: Step[I, O],
        getter: Callable[[S], I],
        setter: Callable[[S, O], Any],
    ) -> "StateWorkflow[S]":
        """Add a regular step with getter and setter adapters."""
        return self.step(StepAdapter(step, getter, setter))

    async def run(self) -> tuple[S, WorkflowMetrics]:
        """Run with a fresh context, returning the final state and metrics."""
        return await self.run_with_context(ExecutionContext())

    async def run_with_context(self, ctx: ExecutionContext) -> tuple[S, WorkflowMetrics]:
        """Run with ``ctx``, returning the final state and a metrics snapshot.

        A failing step is recorded in the context's failures and its
        exception re-raised; later steps do not run.
        """
        state = self.state
        if self.name is not None:
            logger.info("Starting state workflow: %s", self.name)

        for step in self.steps:
            try:
                await step.run(state, ctx)
            except Exception as exc:
                ctx.record_failure(str(exc))
                if self.name is not None:
                    logger.error("State workflow '%s' failed: %s", self.name, exc)
                raise
            ctx.record_step()

        metrics = ctx.snapshot()
        if self.name is not None:
            logger.info(
                "State workflow '%s' completed. Steps: %d, Tokens: %d",
                self.name,
                metrics.steps_completed,
                metrics.total_token_count,
            )
        return state, metrics