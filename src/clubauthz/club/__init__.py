from __future__ import annotations

from .rules import PERMISSIONS, build_rule_table
from .schema import ENTITIES, LINKS, build_registry

__all__ = ["ENTITIES", "LINKS", "PERMISSIONS", "build_registry", "build_rule_table"]
