from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .errors import RelationshipError
from .model import Identity, Record
from .resolver import RelationshipResolver
from .rules import USER_ENTITY, Clause, FieldEquals, IdEquals, Literal, RoleEquals, RuleTable

logger = logging.getLogger("clubauthz.evaluator")


@dataclass(frozen=True)
class Evaluation:
    allowed: bool
    matched_clause: Optional[str] = None
    rule_found: bool = True
    needs_identity: bool = False


class RuleEvaluator:
    """Evaluate the OR'd clauses of one ``(entity, operation)`` rule.

    Clauses run left to right and stop at the first one that holds. Clauses that
    need an identity are false for anonymous callers, and a broken link makes only
    its own clause false. ResolutionError is left to the caller.
    """

    def __init__(self, rules: RuleTable, resolver: RelationshipResolver) -> None:
        self.rules = rules
        self.resolver = resolver

    async def evaluate(
        self,
        entity: str,
        operation: str,
        identity: Optional[Identity],
        target: Record,
    ) -> Evaluation:
        rule = self.rules.lookup(entity, operation)
        if rule is None:
            return Evaluation(allowed=False, rule_found=False)
        for clause in rule.clause.clauses:
            if await self.eval_clause(clause, identity, target):
                return Evaluation(allowed=True, matched_clause=clause.describe())
        return Evaluation(allowed=False, needs_identity=rule.clause.needs_identity())

    async def eval_clause(
        self, clause: Clause, identity: Optional[Identity], target: Record
    ) -> bool:
        if isinstance(clause, Literal):
            return clause.value
        if isinstance(clause, FieldEquals):
            return target.get(clause.field) == clause.value
        if identity is None:
            return False
        try:
            if isinstance(clause, RoleEquals):
                user = await self.resolver.fetch(USER_ENTITY, identity.id)
                if user is None:
                    return False
                rec = await self.resolver.resolve(user, clause.path)
                return rec is not None and rec.get("role") == clause.role
            if isinstance(clause, IdEquals):
                rec = await self.resolver.resolve(target, clause.path)
                return rec is not None and rec.id == identity.id
        except RelationshipError as e:
            logger.debug("clubauthz: clause %s is false: %s", clause.describe(), e)
            return False
        return False
