from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .errors import SchemaError
from .model import OPERATIONS
from .schema import SchemaRegistry

# Identities are user ids; role checks start from the caller's user record.
USER_ENTITY = "users"


@dataclass(frozen=True)
class Literal:
    value: bool

    def describe(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class RoleEquals:
    """The caller's user record, followed along ``path``, has ``role``."""

    role: str
    path: Tuple[str, ...] = ()

    def describe(self) -> str:
        via = ".".join(("auth",) + self.path)
        return f"{via}.role == {self.role!r}"


@dataclass(frozen=True)
class IdEquals:
    """The target record, followed along ``path``, is the caller's user record."""

    path: Tuple[str, ...] = ()

    def describe(self) -> str:
        return ".".join(("data",) + self.path + ("id",)) + " == auth.id"


@dataclass(frozen=True)
class FieldEquals:
    field: str
    value: Any

    def describe(self) -> str:
        return f"data.{self.field} == {self.value!r}"


Clause = Union[Literal, RoleEquals, IdEquals, FieldEquals]


@dataclass(frozen=True)
class Or:
    clauses: Tuple[Clause, ...]

    def describe(self) -> str:
        return " || ".join(c.describe() for c in self.clauses)

    def needs_identity(self) -> bool:
        return any(isinstance(c, (RoleEquals, IdEquals)) for c in self.clauses)


@dataclass(frozen=True)
class Rule:
    entity: str
    operation: str
    clause: Or
    source: Optional[str] = None
    bind: Tuple[str, ...] = ()


def any_of(*clauses: Clause) -> Or:
    return Or(tuple(clauses))


class RuleTable:
    """Read-only ``(entity, operation) -> Rule`` table validated against a registry."""

    def __init__(self, rules: Mapping[Tuple[str, str], Rule], registry: SchemaRegistry) -> None:
        self._rules = MappingProxyType(dict(rules))
        self.registry = registry

    @classmethod
    def build(cls, rules: Iterable[Rule], registry: SchemaRegistry) -> "RuleTable":
        table: Dict[Tuple[str, str], Rule] = {}
        for rule in rules:
            validate_rule(rule, registry)
            key = (rule.entity, rule.operation)
            if key in table:
                raise SchemaError(f"duplicate rule for {rule.entity}.{rule.operation}")
            table[key] = rule
        return cls(table, registry)

    def lookup(self, entity: str, operation: str) -> Optional[Rule]:
        return self._rules.get((entity, operation))

    def entities(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for ent, _ in self._rules:
            seen.setdefault(ent, None)
        return tuple(seen)

    def __iter__(self):
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)


def validate_rule(rule: Rule, registry: SchemaRegistry) -> None:
    """Raise SchemaError if ``rule`` references anything the registry does not declare."""
    if rule.operation not in OPERATIONS:
        raise SchemaError(f"unknown operation {rule.operation!r} for {rule.entity}")
    ent = registry.get_entity(rule.entity)
    for name in rule.bind:
        if not ent.has_field(name):
            raise SchemaError(f"bind references unknown field {rule.entity}.{name}")
    if not isinstance(rule.clause, Or):
        raise SchemaError(f"rule {rule.entity}.{rule.operation} must be an Or of clauses")
    for clause in rule.clause.clauses:
        _validate_clause(rule.entity, clause, registry)


def _validate_clause(entity: str, clause: Clause, registry: SchemaRegistry) -> None:
    if isinstance(clause, Literal):
        return
    if isinstance(clause, FieldEquals):
        if not registry.has_field(entity, clause.field):
            raise SchemaError(f"unknown field: {entity}.{clause.field}")
        return
    if isinstance(clause, RoleEquals):
        _require_user_terminal(USER_ENTITY, clause.path, registry, clause)
        return
    if isinstance(clause, IdEquals):
        _require_user_terminal(entity, clause.path, registry, clause)
        return
    raise SchemaError(f"unsupported clause type: {type(clause).__name__}")


def _require_user_terminal(
    start: str, path: Tuple[str, ...], registry: SchemaRegistry, clause: Clause
) -> None:
    hops = registry.walk(start, path)
    for hop in hops:
        if hop.has != "one":
            raise SchemaError(
                f"path hop {hop.source}.{hop.label} is to-many; "
                f"{clause.describe()} must resolve to a single record"
            )
    terminal = hops[-1].target if hops else start
    if terminal != USER_ENTITY:
        raise SchemaError(f"{clause.describe()} must end at {USER_ENTITY}, not {terminal}")
