"""A top-level container that runs a step and collects metrics."""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

from .metrics import ExecutionContext, WorkflowMetrics
from .steps import Step

I = TypeVar("I")
O = TypeVar("O")

logger = logging.getLogger(__name__)


class Workflow(Generic[I, O]):
    """Wraps a step (or pipeline of steps) and runs it with metrics collection."""

    def __init__(self, step: Step[I, O]) -> None:
        self.step = step
        self.name: str | None = None

    def with_name(self, name: str) -> "Workflow[I, O]":
        """Name the workflow for logging."""
        self.name = str(name)
        return self

    async def run(self, value: I) -> tuple[O, WorkflowMetrics]:
        """Run with a fresh context; return the output and a metrics snapshot.

        A failure is recorded in the context's metrics and re-raised.
        """
        ctx = ExecutionContext()
        if self.name is not None:
            logger.info("Starting workflow: %s", self.name)

        try:
            output = await self.step.run(value, ctx)
        except Exception as exc:
            ctx.record_failure(str(exc))
            if self.name is not None:
                logger.error("Workflow '%s' failed: %s", self.name, exc)
            raise

        metrics = ctx.snapshot()
        if self.name is not None:
            logger.info(
                "Workflow '%s' completed. Steps: %d, Tokens: %d (Prompt: %d, Completion: %d)",
                self.name,
                metrics.steps_completed,
                metrics.total_token_count,
                metrics.prompt_token_count,
                metrics.candidates_token_count,
            )
        return output, metrics

    async def run_with_context(self, value: I, ctx: ExecutionContext) -> O:
        """Run with an existing context, so metrics can be shared across workflows."""
        if self.name is not None:
            logger.info("Starting workflow: %s", self.name)

        try:
            output = await self.step.run(value, ctx)
        except Exception as exc:
            ctx.record_failure(str(exc))
            if self.name is not None:
                logger.error("Workflow '%s' failed: %s", self.name, exc)
            raise

        if self.name is not None:
            logger.info("Workflow '%s' completed", self.name)
        return output