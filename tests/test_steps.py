import pytest

from gemflow.events import StepEnd, StepStart
from gemflow.metrics import ExecutionContext
from gemflow.steps import LambdaStep, MapStep, Step


async def _double(x):
    return x * 2


async def _add_ten(x):
    return x + 10


async def _fail(_x):
    raise ValueError("step failed")


@pytest.mark.asyncio
async def test_lambda_step_async_function():
    step = LambdaStep(_double)
    assert await step.run(5, ExecutionContext()) == 10


@pytest.mark.asyncio
async def test_lambda_step_plain_function():
    step = LambdaStep(lambda s: s.upper())
    assert await step.run("abc", ExecutionContext()) == "ABC"


@pytest.mark.asyncio
async def test_lambda_step_propagates_error():
    with pytest.raises(ValueError, match="step failed"):
        await LambdaStep(_fail).run(1, ExecutionContext())


@pytest.mark.asyncio
async def test_map_transforms_output():
    step = LambdaStep(_double).map(lambda x: (x, str(x)))
    assert isinstance(step, MapStep)
    assert await step.run(5, ExecutionContext()) == (10, "10")


@pytest.mark.asyncio
async def test_map_step_chains_repeatedly():
    step = MapStep(LambdaStep(str), len).map(lambda n: n == len("12345"))
    assert await step.run(12345, ExecutionContext()) is True


@pytest.mark.asyncio
async def test_map_skips_func_on_error():
    calls = []
    step = LambdaStep(_fail).map(calls.append)
    with pytest.raises(ValueError):
        await step.run(1, ExecutionContext())
    assert calls == []


@pytest.mark.asyncio
async def test_then_chains_steps():
    pipeline = LambdaStep(_double).then(LambdaStep(_add_ten))
    assert await pipeline.run(5, ExecutionContext()) == 20


@pytest.mark.asyncio
async def test_then_tuple_keeps_intermediate():
    pipeline = LambdaStep(_double).then_tuple(LambdaStep(_add_ten))
    assert await pipeline.run(5, ExecutionContext()) == (10, 20)


@pytest.mark.asyncio
async def test_tap_sees_output_and_passes_it_through():
    seen = []
    pipeline = LambdaStep(_double).tap(lambda out, ctx: seen.append(out))
    result = await pipeline.run(5, ExecutionContext())
    assert result == 10
    assert seen == [result]


@pytest.mark.asyncio
async def test_named_emits_start_and_end():
    ctx = ExecutionContext()
    result = await LambdaStep(_double).named("Double").run(5, ctx)
    traces = ctx.trace_snapshot()
    assert result == 10
    assert [type(t.event) for t in traces] == [StepStart, StepEnd]
    assert all(t.event.step_name == "Double" for t in traces)


def test_step_is_abstract():
    with pytest.raises(TypeError):
        Step()


class _Custom(Step):
    async def run(self, value, ctx):
        ctx.record_step()
        return value


@pytest.mark.asyncio
async def test_custom_step_receives_context():
    ctx = ExecutionContext()
    assert await _Custom().map(lambda v: v).run("x", ctx) == "x"
    assert ctx.snapshot().steps_completed == 1