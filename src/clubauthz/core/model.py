from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Optional

Operation = Literal["view", "create", "update", "delete"]

OPERATIONS: tuple[str, ...] = ("view", "create", "update", "delete")

ROLES: tuple[str, ...] = ("admin", "coach", "player", "guardian")
STATUSES: tuple[str, ...] = ("pending", "approved", "rejected", "inactive")


@dataclass(frozen=True)
class Identity:
    """Authenticated principal. ``None`` is used for anonymous callers."""

    id: str


@dataclass(frozen=True)
class Record:
    """A stored entity instance.

    ``links`` maps a one-cardinality relationship label to the linked record id.
    A label that is absent (or mapped to ``None``) is an unset link.
    """

    entity: str
    id: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    links: Mapping[str, Optional[str]] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        if name == "id":
            return self.id
        return self.fields.get(name, default)

    def link(self, label: str) -> Optional[str]:
        return self.links.get(label)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None
    matched_clause: Optional[str] = None
    entity: Optional[str] = None
    operation: Optional[str] = None
    identity_id: Optional[str] = None

    @property
    def status_code(self) -> int:
        """HTTP-ish status for the outcome: 200 allowed, 401 anonymous, 403 otherwise."""
        if self.allowed:
            return 200
        if self.reason == "unauthenticated":
            return 401
        return 403
