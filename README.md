# gemflow

Building blocks for multi-step, asynchronous pipelines around structured model
output:

- **Steps** (`gemflow.steps`, `gemflow.combinators`): small async units that compose.
- **Tracing and metrics** (`gemflow.events`, `gemflow.metrics`): a record of what a run did.
- **Workflows** (`gemflow.workflow`, `gemflow.state`): runners that collect metrics.
- **Concurrency** (`gemflow.parallel`, `gemflow.batch`, `gemflow.windowed`).
- **Human in the loop** (`gemflow.checkpoint`, `gemflow.session`).
- **Tool registries** (`gemflow.tools`): named async handlers for function calls.
- **JSON helpers** (`gemflow.schema`, `gemflow.jsontext`).

## Installation

```
pip install gemflow
```

With the test dependencies:

```
pip install "gemflow[test]"
```

## Steps

A `Step` (in `gemflow.steps`) turns an input into an output; its
`run(value, ctx)` method is a coroutine and `ctx` is an
`ExecutionContext`. `LambdaStep` wraps a function, which may be a coroutine
function or return a plain value. Every step has these combinators:

- `then(next_step)` chains two steps (`ChainStep`).
- `then_tuple(next_step)` chains two steps and returns
  `(intermediate, final)` (`ChainTupleStep`).
- `map(func)` transforms the output (`MapStep`).
- `tap(func)` calls `func(output, ctx)` and passes the output through
  unchanged (`TapStep`); an awaitable result is awaited.
- `named(name)` wraps the step in an `InstrumentedStep`, which emits
  `StepStart`, then `StepEnd` with the duration on success or `StepError` with
  the message on failure. The failure is re-raised.

```python
import asyncio

from gemflow.metrics import ExecutionContext
from gemflow.steps import LambdaStep


async def double(x):
    return x * 2


async def add_ten(x):
    return x + 10


async def main():
    pipeline = LambdaStep(double).named("Double").then(LambdaStep(add_ten))
    ctx = ExecutionContext()
    print(await pipeline.run(5, ctx))  # 20
    for entry in ctx.trace_snapshot():
        print(entry.to_json())


asyncio.run(main())
```

`gemflow.legacy.WorkflowStep(name, action)` is a named step built from a
function; it logs its name when run and ignores the context.

## Tracing and metrics

`ExecutionContext` holds a `WorkflowMetrics` object and a list of
`TraceEntry` records. A lock guards both, so steps running at the same time
can share one context. The context has these methods:

- `emit(event)` appends an event with a Unix timestamp in milliseconds.
- `emit_artifact(step_name, key, data)` records an `Artifact` event. The data
  is converted to JSON values, or replaced by `"<serialization_error>"` if it
  cannot be converted.
- `record_step()`, `record_failure(error)` and `record_outcome(outcome)` update
  the metrics. The outcome needs `usage` (a `UsageMetadata` or `None`),
  `network_attempts` and `parse_attempts`.
- `snapshot()` and `trace_snapshot()` return copies of the metrics and the
  trace log.
- `clear_traces()` empties the trace log.

Each event type in `gemflow.events` serializes through `to_dict()` as
`{"type": ..., "payload": {...}}`. The event types are `StepStart`, `StepEnd`,
`Artifact`, and `StepError`, whose type is `"Error"`. `TraceEntry.to_dict()`
and `to_json()` put the timestamp beside the event's fields.
`to_json_value(data)` converts the following to plain JSON values:

- dataclasses;
- enums;
- tuples and sets;
- objects with a `to_dict` method.

## Workflows

`gemflow.workflow.Workflow` wraps a step. `run(value)` runs it in a fresh
context and returns `(output, metrics)`. `run_with_context(value, ctx)` uses a
context you pass in. In both cases a failure is recorded in the context's
failures and re-raised. `with_name(name)` turns on log messages.

```python
from gemflow.workflow import Workflow

result, metrics = await Workflow(pipeline).with_name("Example").run(5)
print(metrics.steps_completed, metrics.total_token_count)
```

`gemflow.state.StateWorkflow(state)` runs `StateStep`s in order over one
mutable state object. Steps are added in three ways:

- `step_fn(func)` adds a function of `(state, ctx)`.
- `with_adapter(step, getter, setter)` plugs in an ordinary `Step`. The getter
  reads the step's input from the state and the setter writes its output back.
- `step(state_step)` adds any other `StateStep`.

`run()` and `run_with_context(ctx)` return `(state, metrics)`. Each successful
step counts as a completed step. The first failure is recorded, and later steps
do not run.

## Concurrency

Each of these steps keeps at most `concurrency` tasks running at once, and never
fewer than 1. All tasks run to completion; then the first failure, in input
order, is raised.

- `gemflow.parallel.ParallelMapStep(worker, concurrency)` runs a worker over a
  list of inputs and keeps the input order. `ParallelMapBuilder(worker)`
  defaults to a concurrency of 4.
- `gemflow.batch.BatchStep(worker, batch_size, concurrency)` takes
  `(items, context)`. It splits the items into chunks and passes each
  `(chunk, context)` to the worker, which returns a list; the lists are
  flattened into one result.
- `gemflow.windowed.WindowedContextStep(worker, window_size, concurrency)`
  behaves the same way, with fixed-size windows.
- `gemflow.batch.SingleItemAdapter(step)` runs a single-item step over each item
  of a `(items, context)` batch in order, ignoring the context.

## Checkpoints

`gemflow.checkpoint.CheckpointStep(name)` always halts the pipeline. It emits a
`StepEnd` event and raises `CheckpointError`, which carries `step_name` and the
input converted to JSON values in `data`. A person can then review or edit the
data before the remaining steps run. `ConditionalCheckpointStep(name,
predicate)` halts only when `predicate(value)` is true; otherwise it passes the
value through.

```python
from gemflow.checkpoint import CheckpointError, CheckpointStep
from gemflow.metrics import ExecutionContext
from gemflow.steps import LambdaStep


async def draft(topic):
    return {"topic": topic, "text": "..."}


async def save(document):
    return document


pipeline = LambdaStep(draft).then(CheckpointStep("ReviewDraft")).then(LambdaStep(save))
try:
    await pipeline.run("pricing", ExecutionContext())
except CheckpointError as paused:
    print(paused.step_name, paused.data)
```

## Interactive sessions

`gemflow.session.InteractiveSession(config, output=None)` keeps four things
together:

- an accepted configuration;
- the output derived from it;
- a history of `SessionEntry` records, each with an id, a UTC timestamp, an
  `EntryKind`, a `Message`, and metadata;
- an optional `PendingChange`.

Its methods:

- `build_context()` returns the anchored system prompt and the history's
  messages. The prompt contains the configuration, the output, and any pending
  patch.
- `accept_change()` makes the pending change's configuration active and
  returns it.
- `decline_change()` drops the pending change.

Both `accept_change()` and `decline_change()` raise `SessionError` when nothing
is pending.

- `apply_manual_change(new_config, new_output, effect=None)` records a user
  edit as a state-change entry and clears any pending change. It returns the
  JSON Patch from the old configuration to the new one.
- `update_output(output)` replaces the derived output.

A `PendingChange` is staged by setting `session.pending_change` yourself.

`json_diff(old, new)` computes an RFC 6902 patch with these rules:

- objects are compared key by key;
- arrays are compared index by index;
- other differences become `replace` operations.

## Tools

`gemflow.tools.ToolRegistry` holds tool declarations and async handlers. Each
builder method returns a new registry and leaves the original unchanged:

- `register` declares a tool without a handler.
- `register_with_handler` declares a tool with a handler. When a `parameters`
  schema is given, the arguments are validated against it before the handler
  runs.
- `with_tool` adds an existing tool definition.
- `with_google_search` adds the Google Search tool.
- `with_code_execution` adds the code execution tool.
- `register_tool` applies a registrar function to the registry.

`definitions()` returns copies of the declarations. `execute(name, args)` runs
the handler and returns its result as JSON values. It raises `ToolError` when no
handler is registered, the arguments are invalid, or the handler fails.

```python
from gemflow.tools import ToolRegistry


async def lookup(args):
    return {"price": 42.0}


registry = ToolRegistry().register_with_handler(
    "get_price",
    "Look up a price",
    lookup,
    {"type": "object", "properties": {"symbol": {"type": "string"}}},
    {"type": "object", "properties": {"price": {"type": "number"}}},
)
result = await registry.execute("get_price", {"symbol": "ABC"})
```

## JSON helpers

In `gemflow.schema`:

- `clean_schema_for_gemini(value)` strips keywords that strict schema mode
  rejects, in place. Property names are kept, as are `title` and
  `additionalProperties`.
- `to_standard_json_schema(schema)` returns a copy with `nullable: true`
  rewritten as a `[T, "null"]` type.
- `schema_hash(value)` returns the SHA-256 hex digest of the compact JSON. Key
  order counts.
- `compile_validator(schema)` builds a `jsonschema` validator. It raises
  `SchemaCompileError` for an invalid schema.
- `validation_errors(schema, value)` returns the issues as
  `"<pointer>: <message>"` joined by `"; "`. It returns `None` when the value is
  valid or the schema cannot be compiled.

In `gemflow.jsontext`, `clean_json_text(text)` pulls the JSON out of a model
reply:

- It takes the body of a Markdown code fence.
- Failing that, it takes the span from the first `{` or `[` to the last `}` or
  `]`.
- Failing both, it returns the trimmed text.

## What the package does not do

gemflow does not contact a model service. It has no client, no request builder,
no response streaming and no automatic refinement. It has no ready-made steps
that ask a model to route, reduce or review data. Write such steps yourself as
`Step` subclasses and report their usage through
`ExecutionContext.record_outcome`. Sessions have no chat or change-request
methods that call a model, and nothing is persisted to storage.