from .engine import Authorizer
from .errors import AuthzError, RelationshipError, ResolutionError, RuleSyntaxError, SchemaError
from .model import OPERATIONS, Decision, Identity, Record
from .rules import FieldEquals, IdEquals, Literal, Or, RoleEquals, Rule, RuleTable
from .schema import SchemaRegistry, get_registry, init_registry

__all__ = [
    "Authorizer",
    "AuthzError",
    "Decision",
    "FieldEquals",
    "IdEquals",
    "Identity",
    "Literal",
    "OPERATIONS",
    "Or",
    "Record",
    "RelationshipError",
    "ResolutionError",
    "RoleEquals",
    "Rule",
    "RuleSyntaxError",
    "RuleTable",
    "SchemaError",
    "SchemaRegistry",
    "get_registry",
    "init_registry",
]
