"""Permission engine for the club website: who may view, create, update or delete what."""

from . import club, core, policy, store
from .config import AuthorizerConfig, build_authorizer
from .core.engine import Authorizer
from .core.errors import AuthzError, RelationshipError, ResolutionError, SchemaError
from .core.model import Decision, Identity, Record
from .policy.loader import load_rules

__version__ = "0.3.0"

__all__ = [
    "Authorizer",
    "AuthorizerConfig",
    "AuthzError",
    "Decision",
    "Identity",
    "Record",
    "RelationshipError",
    "ResolutionError",
    "SchemaError",
    "build_authorizer",
    "club",
    "core",
    "load_rules",
    "policy",
    "store",
    "__version__",
]
