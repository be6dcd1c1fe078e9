#!/usr/bin/env python3
"""
Decision audit logging demo.

Run:
  python examples/audit_logging_demo.py

Shows JSON audit lines on the 'clubauthz.audit' logger, with and without
id redaction, and the trace id carried from the request context.
"""

import logging

from clubauthz import Authorizer, Identity
from clubauthz.logging import DecisionLogger, clear_current_trace_id, gen_trace_id, set_current_trace_id
from clubauthz.store import InMemoryRecordStore


def setup_logging() -> None:
    root = logging.getLogger()
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(h)
    root.setLevel(logging.INFO)


def make_store() -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.put("users", "u-coach", {"role": "coach", "status": "approved"})
    store.put("matches", "m-1", {"opponent": "Lobos", "date": 0, "createdAt": 0, "updatedAt": 0})
    return store


def run(az: Authorizer, store: InMemoryRecordStore) -> None:
    match = store.get("matches", "m-1")
    # coaches record scores but cannot delete fixtures
    az.authorize("matches", "update", Identity("u-coach"), match)
    az.authorize("matches", "delete", Identity("u-coach"), match)


def main() -> None:
    setup_logging()
    store = make_store()

    print("\n=== 1) Plain JSON audit lines ===")
    run(Authorizer(store=store, logger_sink=DecisionLogger(as_json=True)), store)

    print("\n=== 2) Identity and target ids redacted ===")
    run(Authorizer(store=store, logger_sink=DecisionLogger(as_json=True, use_default_redactions=True)), store)

    print("\n=== 3) Denials only, with a trace id ===")
    token = set_current_trace_id(gen_trace_id())
    try:
        audit = DecisionLogger(as_json=True, sample_rate=0.0, deny_sample_rate=1.0)
        run(Authorizer(store=store, logger_sink=audit), store)
    finally:
        clear_current_trace_id(token)


if __name__ == "__main__":
    main()
