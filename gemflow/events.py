"""Structured workflow events and timestamped trace entries."""

from __future__ import annotations

import dataclasses
import enum
import json
import math
import time
from dataclasses import dataclass, field
from typing import Any, ClassVar


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def to_json_value(data: Any) -> Any:
    """Convert ``data`` into plain JSON-compatible values.

    Dataclasses become objects, enums their values, tuples and sets arrays,
    and objects with a ``to_dict`` method are converted through it.
    Non-finite floats become ``None``. Raises ``TypeError`` for anything else.
    """
    if data is None or isinstance(data, (bool, str)):
        return data
    if isinstance(data, enum.Enum):
        return to_json_value(data.value)
    if isinstance(data, int):
        return data
    if isinstance(data, float):
        return data if math.isfinite(data) else None
    if isinstance(data, dict):
        converted = {}
        for key, value in data.items():
            if isinstance(key, bool) or not isinstance(key, (str, int)):
                raise TypeError(f"JSON object keys must be strings, got {type(key).__name__}")
            converted[str(key)] = to_json_value(value)
        return converted
    if isinstance(data, (list, tuple, set, frozenset)):
        return [to_json_value(item) for item in data]
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        return {f.name: to_json_value(getattr(data, f.name)) for f in dataclasses.fields(data)}
    to_dict = getattr(data, "to_dict", None)
    if callable(to_dict):
        return to_json_value(to_dict())
    raise TypeError(f"{type(data).__name__} is not JSON serializable")


@dataclass(frozen=True)
class WorkflowEvent:
    """Base class for events emitted during workflow execution."""

    event_type: ClassVar[str] = "Event"

    def to_dict(self) -> dict[str, Any]:
        """Return the event as ``{"type": ..., "payload": {...}}``."""
        payload = {f.name: to_json_value(getattr(self, f.name)) for f in dataclasses.fields(self)}
        return {"type": self.event_type, "payload": payload}


@dataclass(frozen=True)
class StepStart(WorkflowEvent):
    """A step has started execution."""

    event_type: ClassVar[str] = "StepStart"

    step_name: str
    input_type: str


@dataclass(frozen=True)
class StepEnd(WorkflowEvent):
    """A step has finished successfully."""

    event_type: ClassVar[str] = "StepEnd"

    step_name: str
    duration_ms: int


@dataclass(frozen=True)
class Artifact(WorkflowEvent):
    """An intermediate artifact produced during execution."""

    event_type: ClassVar[str] = "Artifact"

    step_name: str
    key: str
    data: Any


@dataclass(frozen=True)
class StepError(WorkflowEvent):
    """An error occurred during step execution."""

    event_type: ClassVar[str] = "Error"

    step_name: str
    message: str


@dataclass(frozen=True)
class TraceEntry:
    """A workflow event stamped with Unix epoch milliseconds."""

    event: WorkflowEvent
    timestamp: int = field(default_factory=_now_ms)

    def to_dict(self) -> dict[str, Any]:
        """Return the entry with the event's fields flattened beside the timestamp."""
        return {"timestamp": self.timestamp, **self.event.to_dict()}

    def to_json(self) -> str:
        """Serialize the entry as compact JSON."""
        return json.dumps(self.to_dict(), separators=(",", ":"))