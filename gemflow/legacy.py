"""A simple named workflow step built from a function."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, TypeVar, Union

from .metrics import ExecutionContext
from .steps import Step

I = TypeVar("I")
O = TypeVar("O")

logger = logging.getLogger(__name__)


class WorkflowStep(Step[I, O]):
    """A named step wrapping a function of the input.

    The function may be a coroutine function or return a plain value.
    The execution context is optional and not used.
    """

    def __init__(self, name: str, action: Callable[[I], Union[Awaitable[O], O]]) -> None:
        self.name = str(name)
        self.action = action

    async def run(self, value: I, ctx: ExecutionContext | None = None) -> O:
        logger.info("Running workflow step '%s'", self.name)
        result = self.action(value)
        if inspect.isawaitable(result):
            result = await result
        return result