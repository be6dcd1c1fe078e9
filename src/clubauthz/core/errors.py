from __future__ import annotations

from typing import Optional


class AuthzError(Exception):
    """Base class for clubauthz errors."""


class SchemaError(AuthzError):
    """Unknown entity/field/relationship or an invalid declaration.

    Signals a configuration defect; raised eagerly while building the registry
    or the rule table, and the only error allowed out of ``authorize``.
    """


class RuleSyntaxError(SchemaError):
    def __init__(self, message: str, text: str = "", position: Optional[int] = None) -> None:
        self.text = text
        self.position = position
        if position is not None:
            message = f"{message} at {position}: {text!r}"
        super().__init__(message)


class RelationshipError(AuthzError):
    """A link id is set but the referenced record does not exist."""


class ResolutionError(AuthzError):
    """The record store failed or timed out while resolving a link."""
