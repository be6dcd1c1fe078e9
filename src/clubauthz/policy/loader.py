from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Mapping, Optional, Union

from ..core.compiler import compile_document
from ..core.errors import SchemaError
from ..core.rules import RuleTable
from ..core.schema import SchemaRegistry, get_registry
from .validate import validate_document

logger = logging.getLogger("clubauthz.policy")


def _detect_format(text: str, filename: Optional[str] = None) -> str:
    if filename:
        lower = filename.lower()
        if lower.endswith((".yaml", ".yml")):
            return "yaml"
        if lower.endswith(".json"):
            return "json"
    stripped = text.lstrip()
    return "json" if stripped.startswith(("{", "[")) else "yaml"


def parse_rules_text(
    text: str, *, format: Optional[str] = None, filename: Optional[str] = None
) -> Dict[str, Any]:
    """Parse a permission document from JSON or YAML text."""
    fmt = (format or _detect_format(text, filename)).lower()
    if fmt == "json":
        doc = json.loads(text)
    elif fmt in ("yaml", "yml"):
        try:
            import yaml  # type: ignore[import-untyped]
        except Exception as e:  # pragma: no cover
            raise RuntimeError("PyYAML is required to load YAML rule documents") from e
        try:
            doc = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"invalid YAML: {e}") from e
    else:
        raise ValueError(f"unsupported rules format: {fmt!r}")
    if not isinstance(doc, dict):
        raise SchemaError("rules document must be a mapping of entity -> rules")
    return doc


class FileRuleSource:
    """Permission document read from a local JSON/YAML file, once at startup."""

    def __init__(self, path: str, *, validate_schema: bool = True) -> None:
        self.path = path
        self.validate_schema = validate_schema

    def load(self) -> Dict[str, Any]:
        with open(self.path, "r", encoding="utf-8") as f:
            text = f.read()
        doc = parse_rules_text(text, filename=self.path)
        if self.validate_schema:
            validate_document(doc)
        return doc


def load_rules(
    source: Union[str, os.PathLike, Mapping[str, Any]],
    registry: Optional[SchemaRegistry] = None,
    *,
    validate_schema: bool = True,
) -> RuleTable:
    """Build a validated RuleTable from a file path or an already-parsed document."""
    if isinstance(source, Mapping):
        doc = dict(source)
        if validate_schema:
            validate_document(doc)
    else:
        doc = FileRuleSource(os.fspath(source), validate_schema=validate_schema).load()
    table = compile_document(doc, registry or get_registry())
    logger.info("clubauthz: loaded %d rules for %d entities", len(table), len(table.entities()))
    return table
