"""Compile permission strings into the typed clause AST.

Supported grammar (OR only; ``&&`` is rejected)::

    expr  := term ("||" term)*
    term  := "true" | "false"
           | "auth.id" "==" "data.id"
           | "auth.id" "in" "data." path ".id"
           | "auth.id" "in" "data.role" "==" STRING
           | "data." field "==" STRING
"""

from __future__ import annotations

import re
from typing import Iterator, List, Mapping, NamedTuple, Optional, Tuple

from .errors import RuleSyntaxError, SchemaError
from .rules import (
    Clause,
    FieldEquals,
    IdEquals,
    Literal,
    Or,
    RoleEquals,
    Rule,
    RuleTable,
    validate_rule,
)
from .schema import SchemaRegistry

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
  | (?P<or>\|\|)
  | (?P<and>&&)
  | (?P<eq>==)
  | (?P<string>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*")
  | (?P<name>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)
    """,
    re.VERBOSE,
)


class Token(NamedTuple):
    kind: str
    value: str
    pos: int


def tokenize(text: str) -> Iterator[Token]:
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if not m:
            raise RuleSyntaxError("unexpected character", text, pos)
        kind = m.lastgroup or ""
        if kind == "and":
            raise RuleSyntaxError("'&&' is not supported, rules are OR-only", text, pos)
        if kind != "ws":
            value = m.group()
            if kind == "string":
                value = re.sub(r"\\(.)", r"\1", value[1:-1])
            yield Token(kind, value, pos)
        pos = m.end()


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens: List[Token] = list(tokenize(text))
        self.i = 0

    def _peek(self) -> Optional[Token]:
        return self.tokens[self.i] if self.i < len(self.tokens) else None

    def _next(self, kind: Optional[str] = None, value: Optional[str] = None) -> Token:
        tok = self._peek()
        if tok is None:
            raise RuleSyntaxError("unexpected end of rule", self.text, len(self.text))
        if (kind and tok.kind != kind) or (value is not None and tok.value != value):
            want = value or kind
            raise RuleSyntaxError(f"expected {want!r}, got {tok.value!r}", self.text, tok.pos)
        self.i += 1
        return tok

    def parse(self) -> Tuple[Clause, ...]:
        if not self.tokens:
            raise RuleSyntaxError("empty rule", self.text, 0)
        clauses = [self._term()]
        while self._peek() is not None:
            self._next("or")
            clauses.append(self._term())
        return tuple(clauses)

    def _term(self) -> Clause:
        tok = self._next("name")
        if tok.value == "true":
            return Literal(True)
        if tok.value == "false":
            return Literal(False)
        if tok.value == "auth.id":
            return self._auth_term()
        if tok.value.startswith("data."):
            self._next("eq")
            lit = self._next("string")
            return FieldEquals(tok.value[len("data."):], lit.value)
        raise RuleSyntaxError(f"unknown operand {tok.value!r}", self.text, tok.pos)

    def _auth_term(self) -> Clause:
        op = self._next()
        if op.kind == "eq":
            rhs = self._next("name")
            if rhs.value != "data.id":
                raise RuleSyntaxError("only 'auth.id == data.id' is supported", self.text, rhs.pos)
            return IdEquals(())
        if op.kind != "name" or op.value != "in":
            raise RuleSyntaxError(f"expected '==' or 'in', got {op.value!r}", self.text, op.pos)
        rhs = self._next("name")
        parts = rhs.value.split(".")
        if parts[0] != "data" or len(parts) < 2:
            raise RuleSyntaxError("expected a 'data.' path", self.text, rhs.pos)
        if parts[1:] == ["role"]:
            self._next("eq")
            lit = self._next("string")
            return RoleEquals(lit.value)
        if parts[-1] != "id" or len(parts) < 3:
            raise RuleSyntaxError("relationship path must end in '.id'", self.text, rhs.pos)
        return IdEquals(tuple(parts[1:-1]))


def compile_expr(text: str) -> Or:
    """Parse one permission string into an ``Or`` clause (no schema checks)."""
    return Or(_Parser(text).parse())


def compile_rule(
    text: str,
    entity: str,
    operation: str,
    registry: Optional[SchemaRegistry] = None,
    *,
    bind: Tuple[str, ...] = (),
) -> Rule:
    """Compile ``text`` into a Rule; validated against ``registry`` when given."""
    rule = Rule(entity=entity, operation=operation, clause=compile_expr(text), source=text, bind=bind)
    if registry is not None:
        validate_rule(rule, registry)
    return rule


def compile_document(doc: Mapping[str, Mapping], registry: SchemaRegistry) -> RuleTable:
    """Compile a ``{entity: {"allow": {op: expr}, "bind": [...]}}`` document."""
    rules: List[Rule] = []
    for entity, block in doc.items():
        if not isinstance(block, Mapping):
            raise SchemaError(f"rules for {entity!r} must be a mapping, not {type(block).__name__}")
        allow = block.get("allow") or {}
        if not isinstance(allow, Mapping):
            raise SchemaError(f"{entity}.allow must be a mapping of operation -> rule")
        bind = tuple(block.get("bind") or ())
        for operation, text in allow.items():
            rules.append(Rule(entity, operation, compile_expr(str(text)), source=str(text), bind=bind))
    return RuleTable.build(rules, registry)
