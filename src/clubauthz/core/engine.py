from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

from ..logging.context import get_current_trace_id
from .errors import ResolutionError, SchemaError
from .evaluator import Evaluation, RuleEvaluator
from .helpers import maybe_await, run_sync
from .model import OPERATIONS, Decision, Identity, Record
from .ports import DecisionLogSink, MetricsObserve, MetricsSink, RecordStore
from .relctx import EVAL_RECORDS
from .resolver import Fetch, RelationshipResolver
from .rules import USER_ENTITY, RuleTable

logger = logging.getLogger("clubauthz.engine")


def _no_store(entity: str, id: str) -> Optional[Record]:
    raise ResolutionError("no record store configured")


class Authorizer:
    """Single entry point for access decisions.

    Default-deny: a missing rule denies, any resolution failure denies, and only
    SchemaError (unknown entity, bad operation) escapes to the caller.
    """

    def __init__(
        self,
        rules: Optional[RuleTable] = None,
        store: Optional[RecordStore] = None,
        *,
        fetch: Optional[Fetch] = None,
        logger_sink: Optional[DecisionLogSink] = None,
        metrics: Optional[MetricsSink] = None,
        fetch_timeout: Optional[float] = None,
    ) -> None:
        if rules is None:
            from ..club.rules import build_rule_table

            rules = build_rule_table()
        self.rules = rules
        self.registry = rules.registry
        self.store = store
        if fetch is None:
            fetch = store.get if store is not None else _no_store
        self.resolver = RelationshipResolver(self.registry, fetch, timeout=fetch_timeout)
        self.evaluator = RuleEvaluator(rules, self.resolver)
        self.logger_sink = logger_sink
        self.metrics = metrics

    # ----------------------------------------------------------------- public

    async def authorize_async(
        self,
        entity: str,
        operation: str,
        identity: Optional[Identity],
        target: Record,
    ) -> Decision:
        self._check_request(entity, operation, target)
        start = time.perf_counter()
        token = EVAL_RECORDS.set({})
        try:
            decision = await self._decide(entity, operation, identity, target)
        finally:
            EVAL_RECORDS.reset(token)
        duration = time.perf_counter() - start
        await self._observe(decision, target, duration)
        return decision

    def authorize(
        self,
        entity: str,
        operation: str,
        identity: Optional[Identity],
        target: Record,
    ) -> Decision:
        return run_sync(self.authorize_async(entity, operation, identity, target))

    async def authorize_update_async(
        self,
        entity: str,
        identity: Optional[Identity],
        existing: Record,
        proposed: Optional[Record] = None,
    ) -> Decision:
        """Authorize an update against the pre-mutation record.

        Relinking (e.g. moving a document to another player profile) cannot grant
        access the caller did not already have on ``existing``.
        """
        if proposed is not None and dict(proposed.links) != dict(existing.links):
            logger.debug(
                "clubauthz: update of %s/%s changes links; evaluating pre-mutation record",
                entity,
                existing.id,
            )
        return await self.authorize_async(entity, "update", identity, existing)

    def authorize_update(
        self,
        entity: str,
        identity: Optional[Identity],
        existing: Record,
        proposed: Optional[Record] = None,
    ) -> Decision:
        return run_sync(self.authorize_update_async(entity, identity, existing, proposed))

    async def resolve_user_async(self, identity: Optional[Identity]) -> Optional[Record]:
        """Read the caller's user record (role, status) fresh from the store."""
        if identity is None:
            return None
        return await self.resolver.fetch(USER_ENTITY, identity.id)

    def resolve_user(self, identity: Optional[Identity]) -> Optional[Record]:
        return run_sync(self.resolve_user_async(identity))

    # -------------------------------------------------------------- internals

    def _check_request(self, entity: str, operation: str, target: Record) -> None:
        self.registry.get_entity(entity)
        if operation not in OPERATIONS:
            raise SchemaError(f"unknown operation: {operation!r}")
        if target.entity != entity:
            raise SchemaError(f"target is a {target.entity!r} record, not {entity!r}")

    async def _decide(
        self,
        entity: str,
        operation: str,
        identity: Optional[Identity],
        target: Record,
    ) -> Decision:
        ident_id = identity.id if identity is not None else None
        try:
            ev: Evaluation = await self.evaluator.evaluate(entity, operation, identity, target)
        except SchemaError:
            raise
        except ResolutionError as e:
            logger.warning(
                "clubauthz: resolution failed for %s.%s on %s: %s", entity, operation, target.id, e
            )
            return Decision(False, "resolution-failed", None, entity, operation, ident_id)
        except Exception:
            logger.exception("clubauthz: evaluation error for %s.%s", entity, operation)
            return Decision(False, "resolution-failed", None, entity, operation, ident_id)

        if ev.allowed:
            return Decision(True, "matched", ev.matched_clause, entity, operation, ident_id)
        if not ev.rule_found:
            reason = "no_rule"
        elif identity is None and ev.needs_identity:
            reason = "unauthenticated"
        else:
            reason = "no_match"
        return Decision(False, reason, None, entity, operation, ident_id)

    async def _observe(self, decision: Decision, target: Record, duration: float) -> None:
        labels = {
            "decision": "allow" if decision.allowed else "deny",
            "entity": decision.entity or "",
        }
        if self.metrics is not None:
            try:
                await maybe_await(self.metrics.inc("clubauthz_decisions_total", labels))
                if isinstance(self.metrics, MetricsObserve):
                    await maybe_await(self.metrics.observe("clubauthz_decision_seconds", duration, labels))
            except Exception:
                logger.debug("clubauthz: metrics sink failed", exc_info=True)

        if self.logger_sink is not None:
            payload: Dict[str, Any] = {
                "entity": decision.entity,
                "operation": decision.operation,
                "identity": decision.identity_id,
                "target": target.id,
                "decision": labels["decision"],
                "allowed": decision.allowed,
                "reason": decision.reason,
                "matched_clause": decision.matched_clause,
                "duration_ms": round(duration * 1000.0, 3),
            }
            trace_id = get_current_trace_id()
            if trace_id is not None:
                payload["trace_id"] = trace_id
            try:
                await maybe_await(self.logger_sink.log(payload))
            except Exception:
                logger.debug("clubauthz: decision logger failed", exc_info=True)
