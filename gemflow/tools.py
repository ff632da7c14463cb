"""A registry of callable tools offered to the model."""

from __future__ import annotations

import copy
import inspect
from typing import Any, Awaitable, Callable, Union

from .events import to_json_value
from .schema import validation_errors

Handler = Callable[[Any], Union[Awaitable[Any], Any]]


class ToolError(Exception):
    """Raised when a tool cannot be executed or its handler fails."""


def _declaration(
    name: str,
    description: str,
    parameters: dict[str, Any] | None,
    response: dict[str, Any] | None,
) -> dict[str, Any]:
    decl: dict[str, Any] = {"name": name, "description": description}
    if parameters is not None:
        decl["parameters"] = copy.deepcopy(parameters)
    if response is not None:
        decl["response"] = copy.deepcopy(response)
    return {"functionDeclarations": [decl]}


class ToolRegistry:
    """Tool definitions plus optional handlers that resolve tool calls.

    Every builder method returns a new registry; the original is unchanged.
    """

    def __init__(self) -> None:
        self._tools: list[dict[str, Any]] = []
        self._handlers: dict[str, Callable[[Any], Awaitable[Any]]] = {}

    def _derive(
        self,
        tool: dict[str, Any],
        handler: tuple[str, Callable[[Any], Awaitable[Any]]] | None = None,
    ) -> "ToolRegistry":
        registry = ToolRegistry()
        registry._tools = [*self._tools, tool]
        registry._handlers = dict(self._handlers)
        if handler is not None:
            registry._handlers[handler[0]] = handler[1]
        return registry

    def register(
        self,
        name: str,
        description: str,
        parameters: dict[str, Any] | None = None,
        response: dict[str, Any] | None = None,
    ) -> "ToolRegistry":
        """Declare a function tool without a handler."""
        return self._derive(_declaration(name, description, parameters, response))

    def register_with_handler(
        self,
        name: str,
        description: str,
        handler: Handler,
        parameters: dict[str, Any] | None = None,
        response: dict[str, Any] | None = None,
    ) -> "ToolRegistry":
        """Declare a function tool and the function that answers its calls.

        The handler receives the call's arguments and may be a coroutine
        function. When ``parameters`` is given, arguments are validated
        against it before the handler runs.
        """
        param_schema = copy.deepcopy(parameters) if parameters is not None else None

        async def wrapper(args: Any) -> Any:
            if param_schema is not None:
                issues = validation_errors(param_schema, args)
                if issues is not None:
                    raise ToolError(f"invalid arguments for tool '{name}': {issues}")
            result = handler(args)
            if inspect.isawaitable(result):
                result = await result
            try:
                return to_json_value(result)
            except (TypeError, ValueError) as exc:
                raise ToolError(str(exc)) from exc

        return self._derive(_declaration(name, description, parameters, response), (name, wrapper))

    def with_tool(self, tool: dict[str, Any]) -> "ToolRegistry":
        """Add an existing tool definition."""
        return self._derive(copy.deepcopy(tool))

    def with_google_search(self) -> "ToolRegistry":
        """Add the Google Search grounding tool."""
        return self.with_tool({"googleSearch": {}})

    def with_code_execution(self) -> "ToolRegistry":
        """Add the code execution tool."""
        return self.with_tool({"codeExecution": {}})

    def definitions(self) -> list[dict[str, Any]]:
        """Return copies of all tool definitions, in registration order."""
        return copy.deepcopy(self._tools)

    async def execute(self, name: str, args: Any) -> Any:
        """Run the handler registered for ``name`` and return its JSON result.

        Raises :class:`ToolError` when no handler exists or the handler fails.
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise ToolError(f"No handler registered for tool: {name}")
        try:
            return await handler(args)
        except ToolError:
            raise
        except Exception as exc:
            raise ToolError(str(exc)) from exc

    def register_tool(self, registrar: Callable[["ToolRegistry"], "ToolRegistry"]) -> "ToolRegistry":
        """Apply a registrar function that adds one or more tools."""
        return registrar(self)