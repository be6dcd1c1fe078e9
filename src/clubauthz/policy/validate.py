from __future__ import annotations

from typing import Any, Dict, List

OPERATION_NAMES = ["view", "create", "update", "delete"]

DOCUMENT_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "clubauthz permission document",
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "required": ["allow"],
        "additionalProperties": False,
        "properties": {
            "allow": {
                "type": "object",
                "additionalProperties": False,
                "properties": {op: {"type": "string", "minLength": 1} for op in OPERATION_NAMES},
            },
            "bind": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
        },
    },
}


def _jsonschema():
    try:
        import jsonschema  # type: ignore[import-untyped]
    except Exception as e:  # pragma: no cover
        raise RuntimeError("jsonschema is required to validate rule documents") from e
    return jsonschema


def document_errors(doc: Any) -> List[Dict[str, Any]]:
    """Return structural errors as ``[{"path": "...", "message": "..."}]`` (empty if valid)."""
    jsonschema = _jsonschema()
    validator = jsonschema.Draft202012Validator(DOCUMENT_SCHEMA)
    errors = sorted(validator.iter_errors(doc), key=lambda e: list(e.absolute_path))
    return [
        {"path": "/".join(str(p) for p in e.absolute_path), "message": e.message} for e in errors
    ]


def validate_document(doc: Any) -> None:
    """Raise ``jsonschema.ValidationError`` if ``doc`` is not a permission document."""
    jsonschema = _jsonschema()
    jsonschema.validate(instance=doc, schema=DOCUMENT_SCHEMA, cls=jsonschema.Draft202012Validator)
