"""Stateful human-in-the-loop sessions over a configuration and its derived output."""

from __future__ import annotations

import enum
import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

from .events import to_json_value

C = TypeVar("C")
O = TypeVar("O")


class SessionError(Exception):
    """Raised when a session operation cannot be carried out."""


class Role(enum.Enum):
    """Author of a message."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class Message:
    """A single text message with its role."""

    role: Role
    text: str


@dataclass(frozen=True)
class EntryKind:
    """Classification of a history entry.

    ``kind`` is one of ``"Conversation"``, ``"StateChange"`` or ``"SystemNote"``;
    the summaries are only set for state changes.
    """

    kind: str
    patch_summary: str | None = None
    effect_summary: str | None = None

    @classmethod
    def conversation(cls) -> "EntryKind":
        return cls("Conversation")

    @classmethod
    def state_change(cls, patch_summary: str, effect_summary: str | None = None) -> "EntryKind":
        return cls("StateChange", patch_summary, effect_summary)

    @classmethod
    def system_note(cls) -> "EntryKind":
        return cls("SystemNote")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class SessionEntry:
    """A history entry with metadata for persistence and display."""

    kind: EntryKind
    message: Message
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_now)
    metadata: dict[str, str] = field(default_factory=dict)

    @staticmethod
    def new_chat(role: Role, text: str) -> "SessionEntry":
        """A conversation entry."""
        return SessionEntry(EntryKind.conversation(), Message(role, str(text)))

    @staticmethod
    def new_state_change(
        patch_summary: str,
        effect_summary: str | None,
        message_role: Role,
        message_text: str,
    ) -> "SessionEntry":
        """An entry recording a change of state."""
        return SessionEntry(
            EntryKind.state_change(str(patch_summary), effect_summary),
            Message(message_role, str(message_text)),
        )

    @staticmethod
    def new_system_note(text: str) -> "SessionEntry":
        """A system note, carried as a user message."""
        return SessionEntry(EntryKind.system_note(), Message(Role.USER, str(text)))

    def with_meta(self, key: str, value: str) -> "SessionEntry":
        """Attach a metadata item and return the entry."""
        self.metadata[str(key)] = str(value)
        return self


@dataclass
class ChangeEffect:
    """Observed impact of a change."""

    description: str
    is_positive: bool | None = None


@dataclass
class PendingChange(Generic[C]):
    """A proposed change awaiting approval."""

    proposed_config: C
    patch: list[dict[str, Any]]
    reasoning: str | None = None


def _escape_token(token: str) -> str:
    return token.replace("~", "~0").replace("/", "~1")


def _same_scalar(a: Any, b: Any) -> bool:
    return type(a) is type(b) and a == b


def json_diff(old: Any, new: Any) -> list[dict[str, Any]]:
    """Compute a JSON Patch (RFC 6902) turning ``old`` into ``new``.

    Both arguments are converted to JSON values first. Objects are compared
    key by key and arrays index by index; other differences become replaces.
    """
    operations: list[dict[str, Any]] = []
    _diff_into(to_json_value(old), to_json_value(new), "", operations)
    return operations


def _diff_into(old: Any, new: Any, path: str, ops: list[dict[str, Any]]) -> None:
    if isinstance(old, dict) and isinstance(new, dict):
        for key in old:
            if key not in new:
                ops.append({"op": "remove", "path": f"{path}/{_escape_token(key)}"})
        for key, value in old.items():
            if key in new:
                _diff_into(value, new[key], f"{path}/{_escape_token(key)}", ops)
        for key, value in new.items():
            if key not in old:
                ops.append({"op": "add", "path": f"{path}/{_escape_token(key)}", "value": value})
        return
    if isinstance(old, list) and isinstance(new, list):
        common = min(len(old), len(new))
        for index, (a, b) in enumerate(zip(old[:common], new[:common])):
            _diff_into(a, b, f"{path}/{index}", ops)
        for index in range(len(old) - 1, common - 1, -1):
            ops.append({"op": "remove", "path": f"{path}/{index}"})
        for index in range(common, len(new)):
            ops.append({"op": "add", "path": f"{path}/{index}", "value": new[index]})
        return
    if isinstance(old, (dict, list)) or isinstance(new, (dict, list)) or not _same_scalar(old, new):
        ops.append({"op": "replace", "path": path, "value": new})


def _pretty(value: Any) -> str:
    return json.dumps(to_json_value(value), indent=2, ensure_ascii=False)


def _compact(value: Any) -> str:
    return json.dumps(to_json_value(value), separators=(",", ":"), ensure_ascii=False)


class InteractiveSession(Generic[C, O]):
    """Manages an accepted configuration, its derived output, history and a pending change."""

    def __init__(self, config: C, output: O | None = None) -> None:
        self.config = config
        self.output = output
        self.history: list[SessionEntry] = []
        self.pending_change: PendingChange[C] | None = None

    def update_output(self, output: O | None) -> None:
        """Replace the derived output after recomputing it externally."""
        self.output = output

    def build_context(self) -> tuple[str, list[Message]]:
        """Return the anchored system prompt and the history's messages."""
        system_prompt = (
            "ROLE: You are an assistant managing a configuration workflow.\n"
            "\n"
            "=== CURRENT CONFIGURATION (TRUTH) ===\n"
            f"{_pretty(self.config)}\n"
            "\n"
            "=== DERIVED OUTPUT ===\n"
            f"{_pretty(self.output)}\n"
            "\n"
            "INSTRUCTIONS:\n"
            "- Treat the configuration above as the source of truth; older values in history may be stale.\n"
            "- Use history for rationale and prior discussion, but resolve conflicts in favor of the configuration block.\n"
        )
        if self.pending_change is not None:
            system_prompt += "\nPENDING CHANGE:\n" + _pretty(self.pending_change.patch)
        return system_prompt, [entry.message for entry in self.history]

    def accept_change(self) -> C:
        """Promote the pending change to the active configuration."""
        if self.pending_change is None:
            raise SessionError("No pending change to accept")
        pending, self.pending_change = self.pending_change, None
        self.config = pending.proposed_config
        self.history.append(SessionEntry.new_system_note("Change accepted."))
        return self.config

    def decline_change(self) -> None:
        """Discard the pending change."""
        if self.pending_change is None:
            raise SessionError("No pending change to decline")
        self.pending_change = None
        self.history.append(SessionEntry.new_system_note("Change declined."))

    def apply_manual_change(
        self, new_config: C, new_output: O, effect: ChangeEffect | None = None
    ) -> list[dict[str, Any]]:
        """Apply a user-made change, update the output and record the effect.

        Returns the patch from the old configuration to the new one.
        """
        patch = json_diff(self.config, new_config)
        output_patch = json_diff(self.output, new_output) if self.output is not None else None

        self.config = new_config
        self.output = new_output
        self.pending_change = None

        text = (
            "SYSTEM UPDATE: The user manually modified the configuration.\n"
            f"Technical Changes: {_compact(patch)}\n"
        )
        if output_patch:
            text += f"Automatic Output Delta: {_compact(output_patch)}\n"

        effect_summary = None
        if effect is not None:
            text += f"Observed Effect on Output: {effect.description}\n"
            effect_summary = effect.description

        entry = SessionEntry.new_state_change(
            "Manual configuration update", effect_summary, Role.USER, text
        ).with_meta("type", "manual_override")
        self.history.append(entry)
        return patch