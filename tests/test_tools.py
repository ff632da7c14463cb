import pytest

from gemflow.tools import ToolError, ToolRegistry

PARAMS = {
    "type": "object",
    "properties": {"symbol": {"type": "string"}},
    "required": ["symbol"],
}
RESPONSE = {"type": "object", "properties": {"price": {"type": "number"}}}


def test_register_adds_declaration():
    registry = ToolRegistry().register("get_price", "Look up price", PARAMS, RESPONSE)
    defs = registry.definitions()
    assert len(defs) == 1
    decl = defs[0]["functionDeclarations"][0]
    assert decl["name"] == "get_price"
    assert decl["description"] == "Look up price"
    assert decl["parameters"] == PARAMS
    assert decl["response"] == RESPONSE


def test_builder_does_not_mutate_original():
    base = ToolRegistry()
    extended = base.register("a", "A")
    assert base.definitions() == []
    assert len(extended.definitions()) == 1


def test_builtin_tools_in_order():
    registry = ToolRegistry().with_google_search().with_code_execution()
    defs = registry.definitions()
    assert [next(iter(d)) for d in defs] == ["googleSearch", "codeExecution"]


def test_definitions_are_copies():
    registry = ToolRegistry().register("a", "A", PARAMS)
    defs = registry.definitions()
    defs[0]["functionDeclarations"][0]["name"] = "changed"
    assert registry.definitions()[0]["functionDeclarations"][0]["name"] == "a"


@pytest.mark.asyncio
async def test_execute_sync_handler():
    registry = ToolRegistry().register_with_handler(
        "echo", "Echo", lambda args: {"got": args["symbol"]}, PARAMS
    )
    assert await registry.execute("echo", {"symbol": "ABC"}) == {"got": "ABC"}


@pytest.mark.asyncio
async def test_execute_async_handler():
    async def handler(args):
        return {"price": len(args["symbol"])}

    registry = ToolRegistry().register_with_handler("price", "Price", handler, PARAMS, RESPONSE)
    assert await registry.execute("price", {"symbol": "ABCD"}) == {"price": 4}


@pytest.mark.asyncio
async def test_missing_handler_raises():
    registry = ToolRegistry().register("declared_only", "No handler")
    with pytest.raises(ToolError, match="No handler registered for tool: declared_only"):
        await registry.execute("declared_only", {})


@pytest.mark.asyncio
async def test_handler_failure_becomes_tool_error():
    def handler(args):
        raise RuntimeError("backend down")

    registry = ToolRegistry().register_with_handler("fails", "Fails", handler)
    with pytest.raises(ToolError, match="backend down"):
        await registry.execute("fails", {})


@pytest.mark.asyncio
async def test_invalid_arguments_rejected():
    calls = []
    registry = ToolRegistry().register_with_handler(
        "price", "Price", lambda args: calls.append(args) or {}, PARAMS
    )
    with pytest.raises(ToolError, match="invalid arguments"):
        await registry.execute("price", {"symbol": 5})
    assert calls == []


@pytest.mark.asyncio
async def test_unserializable_result_raises():
    registry = ToolRegistry().register_with_handler("bad", "Bad", lambda args: object())
    with pytest.raises(ToolError):
        await registry.execute("bad", {})


@pytest.mark.asyncio
async def test_handlers_isolated_between_registries():
    base = ToolRegistry().register_with_handler("one", "One", lambda args: 1)
    extended = base.register_with_handler("two", "Two", lambda args: 2)
    assert await extended.execute("one", {}) == 1
    assert await extended.execute("two", {}) == 2
    with pytest.raises(ToolError):
        await base.execute("two", {})


@pytest.mark.asyncio
async def test_register_tool_applies_registrar():
    def registrar(registry):
        return registry.register_with_handler("double", "Double", lambda args: args["n"] * 2)

    registry = ToolRegistry().register_tool(registrar)
    assert registry.definitions()[0]["functionDeclarations"][0]["name"] == "double"
    assert await registry.execute("double", {"n": 21}) == 42


def test_with_tool_copies_definition():
    tool = {"functionDeclarations": [{"name": "x", "description": "X"}]}
    registry = ToolRegistry().with_tool(tool)
    tool["functionDeclarations"][0]["name"] = "y"
    assert registry.definitions()[0]["functionDeclarations"][0]["name"] == "x"