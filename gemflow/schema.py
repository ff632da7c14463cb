"""Schema cleaning, hashing and validation for structured model output."""

from __future__ import annotations

import hashlib
import json
from typing import Any

import jsonschema
from jsonschema.exceptions import SchemaError
from jsonschema.protocols import Validator

_UNSUPPORTED_KEYWORDS = (
    "$schema",
    "default",
    "examples",
    "pattern",
    "minLength",
    "maxLength",
    "minProperties",
    "maxProperties",
    "anyOf",
    "oneOf",
    "not",
    "if",
    "then",
    "else",
    "const",
)

_SCHEMA_MAPS = ("properties", "definitions", "$defs")


class SchemaCompileError(ValueError):
    """Raised when a schema cannot be turned into a validator."""


def clean_schema_for_gemini(value: Any) -> Any:
    """Strip keywords that strict schema mode does not support, in place.

    Property names under ``properties``, ``definitions`` and ``$defs`` are
    kept even when they match an unsupported keyword; only the schemas they
    map to are cleaned. ``title`` and ``additionalProperties`` are kept.
    Returns ``value`` for convenience.
    """
    if isinstance(value, dict):
        for key in _UNSUPPORTED_KEYWORDS:
            value.pop(key, None)
        for key, child in value.items():
            if key in _SCHEMA_MAPS:
                if isinstance(child, dict):
                    for sub_schema in child.values():
                        clean_schema_for_gemini(sub_schema)
            else:
                clean_schema_for_gemini(child)
    elif isinstance(value, list):
        for item in value:
            clean_schema_for_gemini(item)
    return value


def to_standard_json_schema(schema: Any) -> Any:
    """Return a copy of an OpenAPI-style schema as standard JSON Schema.

    ``nullable`` is removed everywhere; where it was ``true``, ``"null"`` is
    added to the ``type``. The input is left unchanged.
    """
    if isinstance(schema, dict):
        result = dict(schema)
        nullable = result.pop("nullable", None)
        if nullable is True and "type" in result:
            type_val = result["type"]
            if isinstance(type_val, str):
                result["type"] = [type_val, "null"]
            elif isinstance(type_val, list) and "null" not in type_val:
                result["type"] = [*type_val, "null"]
        return {key: to_standard_json_schema(child) for key, child in result.items()}
    if isinstance(schema, list):
        return [to_standard_json_schema(item) for item in schema]
    return schema


def schema_hash(value: Any) -> str:
    """Return the SHA-256 hex digest of the compact JSON form of ``value``.

    Key order is preserved, so equal schemas written in a different order
    hash differently.
    """
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compile_validator(schema: Any) -> Validator:
    """Build a JSON Schema validator for an OpenAPI-style schema.

    Raises :class:`SchemaCompileError` if the schema is invalid.
    """
    standard = to_standard_json_schema(schema)
    if not isinstance(standard, (dict, bool)):
        raise SchemaCompileError(
            f"Failed to compile schema: expected an object or boolean, got {type(standard).__name__}"
        )
    validator_cls = jsonschema.validators.validator_for(
        standard, default=jsonschema.Draft202012Validator
    )
    try:
        validator_cls.check_schema(standard)
    except SchemaError as exc:
        raise SchemaCompileError(f"Failed to compile schema: {exc.message}") from exc
    return validator_cls(standard)


def _pointer(path: Any) -> str:
    return "".join(
        "/" + str(part).replace("~", "~0").replace("/", "~1") for part in path
    )


def validation_errors(schema: Any, value: Any) -> str | None:
    """Describe how ``value`` fails ``schema``, or return ``None``.

    Each issue is ``"<instance pointer>: <message>"``, joined with ``"; "``.
    ``None`` is also returned when the schema cannot be compiled.
    """
    try:
        validator = compile_validator(schema)
    except SchemaCompileError:
        return None
    errors = [
        f"{_pointer(err.absolute_path)}: {err.message}" for err in validator.iter_errors(value)
    ]
    return "; ".join(errors) if errors else None