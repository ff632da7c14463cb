"""Metrics and the shared execution context for workflow runs."""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass, field
from typing import Any

from .events import Artifact, TraceEntry, WorkflowEvent, to_json_value


@dataclass
class UsageMetadata:
    """Token usage reported for one generation."""

    prompt_token_count: int | None = None
    candidates_token_count: int | None = None
    total_token_count: int | None = None


@dataclass
class WorkflowMetrics:
    """Aggregated metrics for a workflow execution."""

    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0
    network_attempts: int = 0
    parse_attempts: int = 0
    steps_completed: int = 0
    failures: list[str] = field(default_factory=list)

    def add_usage(self, usage: UsageMetadata | None) -> None:
        """Add token counts from a response's usage metadata, if any."""
        if usage is None:
            return
        self.prompt_token_count += usage.prompt_token_count or 0
        self.candidates_token_count += usage.candidates_token_count or 0
        self.total_token_count += usage.total_token_count or 0

    def record_attempts(self, network: int, parse: int) -> None:
        """Record network and parse attempt counts."""
        self.network_attempts += network
        self.parse_attempts += parse

    def record_failure(self, error: str) -> None:
        """Record a failure message."""
        self.failures.append(error)

    def record_step(self) -> None:
        """Increment the completed-steps counter."""
        self.steps_completed += 1


class ExecutionContext:
    """Context shared by every step of a workflow.

    The same instance may be handed to concurrently running steps; all
    updates to metrics and traces are guarded by a lock.
    """

    def __init__(self) -> None:
        self.metrics = WorkflowMetrics()
        self.traces: list[TraceEntry] = []
        self._lock = threading.Lock()

    def record_outcome(self, outcome: Any) -> None:
        """Record usage and attempt counts from a generation outcome.

        The outcome needs ``usage``, ``network_attempts`` and ``parse_attempts``.
        """
        with self._lock:
            self.metrics.add_usage(outcome.usage)
            self.metrics.record_attempts(outcome.network_attempts, outcome.parse_attempts)

    def record_step(self) -> None:
        """Increment the completed-steps counter."""
        with self._lock:
            self.metrics.record_step()

    def record_failure(self, error: Any) -> None:
        """Record a failure message."""
        with self._lock:
            self.metrics.record_failure(str(error))

    def snapshot(self) -> WorkflowMetrics:
        """Return an independent copy of the current metrics."""
        with self._lock:
            return copy.deepcopy(self.metrics)

    def emit(self, event: WorkflowEvent) -> None:
        """Append a timestamped event to the trace log."""
        entry = TraceEntry(event)
        with self._lock:
            self.traces.append(entry)

    def emit_artifact(self, step_name: str, key: str, data: Any) -> None:
        """Emit an artifact event, converting ``data`` to JSON values."""
        try:
            json_data = to_json_value(data)
        except (TypeError, ValueError):
            json_data = "<serialization_error>"
        self.emit(Artifact(step_name=step_name, key=key, data=json_data))

    def trace_snapshot(self) -> list[TraceEntry]:
        """Return a copy of the trace log."""
        with self._lock:
            return list(self.traces)

    def clear_traces(self) -> None:
        """Remove all trace entries."""
        with self._lock:
            self.traces.clear()