"""JSON schema generation and JSON extraction for structured output."""

from __future__ import annotations

import json
from typing import Any

from pydantic import TypeAdapter


def shape_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)


def generate_schema(target: Any) -> dict[str, Any]:
    """
    Build a JSON schema for ``target`` (a pydantic model or any type pydantic can adapt).

    The result is post-processed for strict structured-output endpoints:
    ``$schema`` is dropped, legacy ``definitions`` become ``$defs`` (with
    ``$ref`` paths rewritten), and every object lists all of its properties as
    required with ``additionalProperties: false``.
    """
    schema = TypeAdapter(target).json_schema()
    schema.pop("$schema", None)
    if "definitions" in schema:
        schema["$defs"] = schema.pop("definitions")
        _fix_refs(schema)
    _enforce_strict(schema)
    return schema


def schema_text(schema: dict[str, Any]) -> str:
    return json.dumps(schema, indent=2)


def _fix_refs(node: Any) -> None:
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/definitions/"):
            node["$ref"] = "#/$defs/" + ref[len("#/definitions/"):]
        for value in node.values():
            _fix_refs(value)
    elif isinstance(node, list):
        for item in node:
            _fix_refs(item)


def _enforce_strict(node: Any) -> None:
    if isinstance(node, list):
        for item in node:
            _enforce_strict(item)
        return
    if not isinstance(node, dict):
        return
    properties = node.get("properties")
    if isinstance(properties, dict):
        node["required"] = list(properties)
        node["additionalProperties"] = False
        for prop in properties.values():
            _enforce_strict(prop)
    for key in ("items", "anyOf", "allOf", "oneOf", "prefixItems"):
        if key in node:
            _enforce_strict(node[key])
    defs = node.get("$defs")
    if isinstance(defs, dict):
        for definition in defs.values():
            _enforce_strict(definition)


def extract_json(text: str) -> str:
    """
    Pull the JSON payload out of a model response.

    A leading markdown fence (```json or bare ```) is stripped together with
    the last closing fence. Otherwise the span from the first ``{``/``[`` to
    the last ``}``/``]`` is returned. Anything else comes back trimmed.
    """
    if not text or not text.strip():
        return text
    trimmed = text.strip()

    if trimmed.startswith("```"):
        newline = trimmed.find("\n")
        if newline > 0:
            trimmed = trimmed[newline + 1:]
        fence = trimmed.rfind("```")
        if fence > 0:
            trimmed = trimmed[:fence]
        return trimmed.strip()

    starts = [i for i in (trimmed.find("{"), trimmed.find("[")) if i >= 0]
    end = max(trimmed.rfind("}"), trimmed.rfind("]"))
    if starts and end > min(starts):
        start = min(starts)
        return trimmed[start:end + 1]
    return trimmed
