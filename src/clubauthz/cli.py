from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from . import __version__
from .club.rules import build_rule_table
from .core.compiler import compile_document
from .core.engine import Authorizer
from .core.errors import SchemaError
from .core.model import OPERATIONS, Identity, Record
from .core.schema import get_registry
from .policy.loader import parse_rules_text
from .policy.validate import document_errors
from .store.memory import InMemoryRecordStore

EXIT_OK = 0
EXIT_DENIED = 1
EXIT_SCHEMA_ERRORS = 2
EXIT_USAGE = 3
EXIT_ENV = 4


def _read_text(path: Optional[str]) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _print(out: Any, fmt: str) -> None:
    if fmt == "json":
        print(json.dumps(out, ensure_ascii=False, indent=None))
    elif isinstance(out, str):
        print(out.rstrip("\n"))
    else:
        print(out)


def _format_errors(errors: List[Dict[str, Any]]) -> str:
    lines = []
    for e in errors:
        path = e.get("path") or "<root>"
        lines.append(f"{path}: {e.get('message')}")
    return "\n".join(lines)


def cmd_validate(args: argparse.Namespace) -> int:
    try:
        text = _read_text(args.rules)
    except FileNotFoundError as e:
        _print(f"File not found: {e.filename}", "text")
        return EXIT_USAGE
    try:
        doc = parse_rules_text(text, filename=args.rules)
        errors = document_errors(doc)
    except RuntimeError as e:
        _print(str(e), "text")
        return EXIT_ENV
    except (ValueError, SchemaError) as e:
        errors = [{"path": "", "message": str(e)}]
    else:
        if not errors:
            try:
                compile_document(doc, get_registry())
            except SchemaError as e:
                errors = [{"path": "", "message": str(e)}]

    if args.format == "json":
        _print(errors, "json")
    else:
        _print(_format_errors(errors) if errors else "OK", "text")
    return EXIT_SCHEMA_ERRORS if errors else EXIT_OK


def cmd_check(args: argparse.Namespace) -> int:
    try:
        fixture = json.loads(_read_text(args.fixture))
    except FileNotFoundError as e:
        _print(f"File not found: {e.filename}", "text")
        return EXIT_USAGE
    except ValueError as e:
        _print(f"Invalid fixture: {e}", "text")
        return EXIT_USAGE
    if not isinstance(fixture, dict):
        _print("Invalid fixture: expected an object of entity -> records", "text")
        return EXIT_USAGE
    try:
        store = InMemoryRecordStore.from_fixture(fixture)
        rules = build_rule_table()
        if args.rules:
            doc = parse_rules_text(_read_text(args.rules), filename=args.rules)
            rules = compile_document(doc, get_registry())
        target = store.get(args.entity, args.target)
        if target is None:
            target = Record(entity=args.entity, id=args.target)
        identity = Identity(args.identity) if args.identity else None
        decision = Authorizer(rules, store).authorize(args.entity, args.op, identity, target)
    except FileNotFoundError as e:
        _print(f"File not found: {e.filename}", "text")
        return EXIT_USAGE
    except RuntimeError as e:
        _print(str(e), "text")
        return EXIT_ENV
    except SchemaError as e:
        _print(f"Schema error: {e}", "text")
        return EXIT_SCHEMA_ERRORS
    except ValueError as e:
        _print(f"Invalid rules: {e}", "text")
        return EXIT_SCHEMA_ERRORS

    out = {
        "allowed": decision.allowed,
        "reason": decision.reason,
        "matched_clause": decision.matched_clause,
    }
    if args.format == "json":
        _print(out, "json")
    else:
        verdict = "ALLOW" if decision.allowed else "DENY"
        _print(f"{verdict} ({decision.reason})", "text")
    return EXIT_OK if decision.allowed else EXIT_DENIED


def cmd_rules(args: argparse.Namespace) -> int:
    table = build_rule_table()
    rows = []
    for rule in table:
        if args.entity and rule.entity != args.entity:
            continue
        rows.append({"entity": rule.entity, "operation": rule.operation, "rule": rule.clause.describe()})
    if args.format == "json":
        _print(rows, "json")
    else:
        _print("\n".join(f"{r['entity']}.{r['operation']}: {r['rule']}" for r in rows), "text")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="clubauthz", description="Club permission engine tools")
    p.add_argument("--version", action="version", version=f"clubauthz {__version__}")
    sub = p.add_subparsers(dest="command")

    v = sub.add_parser("validate", help="validate a permission document")
    v.add_argument("rules", nargs="?", help="path to JSON/YAML document ('-' or omitted for stdin)")
    v.add_argument("--format", choices=("text", "json"), default="text")
    v.set_defaults(func=cmd_validate)

    c = sub.add_parser("check", help="authorize one operation against a fixture store")
    c.add_argument("--fixture", required=True, help="JSON {entity: [records]}")
    c.add_argument("--entity", required=True)
    c.add_argument("--op", required=True, choices=OPERATIONS)
    c.add_argument("--target", required=True, help="target record id")
    c.add_argument("--identity", default=None, help="caller user id (omit for anonymous)")
    c.add_argument("--rules", default=None, help="permission document (defaults to club rules)")
    c.add_argument("--format", choices=("text", "json"), default="text")
    c.set_defaults(func=cmd_check)

    r = sub.add_parser("rules", help="print the compiled club rules")
    r.add_argument("--entity", default=None)
    r.add_argument("--format", choices=("text", "json"), default="text")
    r.set_defaults(func=cmd_rules)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    func = getattr(args, "func", None)
    if func is None:
        parser.print_usage()
        return EXIT_USAGE
    rc = func(args)
    return rc if isinstance(rc, int) else EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
