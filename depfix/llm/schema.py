"""Output schema and response parsing shared by all generators."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from ..models import EnvDoc
from .base import SchemaError

DOC_FIELDS = ("key", "description", "where_to_get", "example_value", "is_secret")

_ITEM_PROPERTIES: Dict[str, Dict[str, str]] = {
    "key": {"type": "string"},
    "description": {"type": "string"},
    "where_to_get": {"type": "string"},
    "example_value": {"type": "string"},
    "is_secret": {"type": "boolean"},
}

ENV_DOCS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["items"],
    "properties": {
        "items": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": list(DOC_FIELDS),
                "properties": _ITEM_PROPERTIES,
            },
        }
    },
}

# Gemini's responseSchema is an OpenAPI subset without additionalProperties.
GOOGLE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "required": ["items"],
    "properties": {
        "items": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "required": list(DOC_FIELDS),
                "propertyOrdering": list(DOC_FIELDS),
                "properties": {
                    name: {"type": prop["type"].upper()} for name, prop in _ITEM_PROPERTIES.items()
                },
            },
        }
    },
}


def extract_openai_text(payload: Dict[str, Any]) -> str:
    """Return text from a Responses API payload (`output_text` or nested output)."""
    direct = payload.get("output_text")
    if isinstance(direct, str) and direct.strip():
        return direct
    output = payload.get("output")
    if not isinstance(output, list):
        return ""
    for item in output:
        if not isinstance(item, dict):
            continue
        content = item.get("content")
        if not isinstance(content, list):
            continue
        for part in content:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                return part["text"]
    return ""


def extract_google_text(payload: Dict[str, Any]) -> str:
    """Return concatenated text parts of the first Gemini candidate."""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    if not isinstance(first, dict):
        return ""
    content = first.get("content")
    if not isinstance(content, dict):
        return ""
    parts = content.get("parts")
    if not isinstance(parts, list):
        return ""
    texts = [part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)]
    return "".join(texts)


def find_balanced_object(text: str) -> Optional[str]:
    """Return the first balanced `{...}` span in `text`, honouring JSON strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    return None


def load_payload(text: str) -> Dict[str, Any]:
    """Parse model output into a mapping, recovering an embedded object if needed."""
    if not text or not text.strip():
        raise SchemaError("Generation response contained no text")
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        span = find_balanced_object(text)
        if span is None:
            raise SchemaError(f"Generation response is not valid JSON: {exc.msg}") from exc
        try:
            parsed = json.loads(span)
        except json.JSONDecodeError as inner:
            raise SchemaError(
                f"Generation response is not valid JSON: {inner.msg}"
            ) from inner
    if not isinstance(parsed, dict):
        raise SchemaError("Generation response must be a JSON object")
    return parsed


def parse_docs(text: str, requested_keys: Iterable[str] = ()) -> List[EnvDoc]:
    """Turn raw model output into EnvDoc records.

    Items without a usable `key` are dropped. Keys that match a requested key
    case-insensitively take the requested spelling.
    """
    payload = load_payload(text)
    items = payload.get("items")
    if items is None:
        raise SchemaError("Generation response is missing the 'items' field")
    if not isinstance(items, list):
        raise SchemaError("Generation response field 'items' must be an array")

    canonical = {key.upper(): key for key in requested_keys}
    docs: List[EnvDoc] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        raw_key = item.get("key")
        if not isinstance(raw_key, str) or not raw_key.strip():
            continue
        key = raw_key.strip()
        key = canonical.get(key.upper(), key)
        docs.append(
            EnvDoc(
                key=key,
                description=_as_text(item.get("description")),
                where_to_get=_as_text(item.get("where_to_get")),
                example_value=_as_text(item.get("example_value")),
                is_secret=_as_flag(item.get("is_secret")),
            )
        )
    return docs


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _as_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


__all__ = [
    "DOC_FIELDS",
    "ENV_DOCS_SCHEMA",
    "GOOGLE_RESPONSE_SCHEMA",
    "extract_google_text",
    "extract_openai_text",
    "find_balanced_object",
    "load_payload",
    "parse_docs",
]
