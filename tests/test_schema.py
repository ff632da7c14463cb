import hashlib

import pytest

from gemflow.schema import (
    SchemaCompileError,
    clean_schema_for_gemini,
    compile_validator,
    schema_hash,
    to_standard_json_schema,
    validation_errors,
)


def test_to_standard_json_schema_handles_nullable():
    standard = to_standard_json_schema({"type": "string", "nullable": True})
    assert "nullable" not in standard
    assert isinstance(standard["type"], list)
    assert "string" in standard["type"]
    assert "null" in standard["type"]


def test_to_standard_json_schema_array_type_gets_null_once():
    standard = to_standard_json_schema({"type": ["string", "integer"], "nullable": True})
    assert standard["type"] == ["string", "integer", "null"]
    again = to_standard_json_schema({"type": ["string", "null"], "nullable": True})
    assert again["type"] == ["string", "null"]


def test_to_standard_json_schema_false_nullable_removed_without_change():
    standard = to_standard_json_schema({"type": "string", "nullable": False})
    assert standard == {"type": "string"}


def test_to_standard_json_schema_recurses_and_leaves_input():
    original = {
        "type": "object",
        "properties": {"phone": {"type": "string", "nullable": True}},
        "allOf": [{"type": "object", "nullable": True}],
    }
    standard = to_standard_json_schema(original)
    assert standard["properties"]["phone"] == {"type": ["string", "null"]}
    assert standard["allOf"][0] == {"type": ["object", "null"]}
    assert original["properties"]["phone"]["nullable"] is True


def test_clean_strips_unsupported_keywords():
    schema = {
        "$schema": "x",
        "type": "string",
        "pattern": "^a",
        "minLength": 1,
        "maxLength": 3,
        "default": "a",
        "title": "Name",
        "additionalProperties": False,
    }
    clean_schema_for_gemini(schema)
    assert schema == {"type": "string", "title": "Name", "additionalProperties": False}


def test_clean_keeps_property_names_but_cleans_their_schemas():
    schema = {
        "type": "object",
        "properties": {
            "pattern": {"type": "string", "pattern": "x"},
            "default": {"type": "integer", "default": 3},
        },
        "$defs": {"const": {"type": "string", "const": "a"}},
    }
    result = clean_schema_for_gemini(schema)
    assert result is schema
    assert schema["properties"] == {
        "pattern": {"type": "string"},
        "default": {"type": "integer"},
    }
    assert schema["$defs"] == {"const": {"type": "string"}}


def test_clean_recurses_into_arrays_and_items():
    schema = {
        "type": "array",
        "items": {"type": "object", "oneOf": [], "examples": [1]},
        "allOf": [{"type": "string", "not": {}}],
    }
    clean_schema_for_gemini(schema)
    assert schema["items"] == {"type": "object"}
    assert schema["allOf"] == [{"type": "string"}]


def test_schema_hash_uses_compact_json():
    assert schema_hash({"a": 1}) == hashlib.sha256(b'{"a":1}').hexdigest()


def test_schema_hash_is_stable_and_order_sensitive():
    first = schema_hash({"a": 1, "b": [1, 2]})
    assert first == schema_hash({"a": 1, "b": [1, 2]})
    assert len(first) == 64
    assert all(c in "0123456789abcdef" for c in first)
    assert schema_hash({"b": [1, 2], "a": 1}) != first


def test_compile_validator_accepts_nullable_values():
    schema = {
        "type": "object",
        "properties": {"phone": {"type": "string", "nullable": True}},
        "required": ["phone"],
    }
    validator = compile_validator(schema)
    assert validator.is_valid({"phone": None})
    assert validator.is_valid({"phone": "123"})
    assert not validator.is_valid({"phone": 5})
    assert not validator.is_valid({})


def test_compile_validator_rejects_bad_schema():
    with pytest.raises(SchemaCompileError, match="Failed to compile schema"):
        compile_validator({"type": 5})


def test_validation_errors_none_when_valid():
    schema = {"type": "object", "properties": {"age": {"type": "integer"}}}
    assert validation_errors(schema, {"age": 3}) is None


def test_validation_errors_reports_path():
    schema = {
        "type": "object",
        "properties": {"items": {"type": "array", "items": {"type": "integer"}}},
    }
    message = validation_errors(schema, {"items": [1, "two"]})
    assert message is not None
    assert message.startswith("/items/1: ")
    assert "integer" in message


def test_validation_errors_joins_multiple():
    schema = {
        "type": "object",
        "properties": {"a": {"type": "integer"}, "b": {"type": "string"}},
    }
    message = validation_errors(schema, {"a": "x", "b": 1})
    assert message is not None
    parts = message.split("; ")
    assert len(parts) == 2
    assert {p.split(":")[0] for p in parts} == {"/a", "/b"}


def test_validation_errors_none_for_uncompilable_schema():
    assert validation_errors({"type": 5}, {"a": 1}) is None