"""Club permission table.

Roles: ``admin`` has full access; ``coach`` manages tournaments, matches and
standings; ``player`` and ``guardian`` see their own profile, payments and
documents.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.compiler import compile_document
from ..core.rules import RuleTable
from ..core.schema import SchemaRegistry, get_registry

ADMIN = "auth.id in data.role == 'admin'"
COACH = "auth.id in data.role == 'coach'"
OWNER = "auth.id in data.playerProfile.user.id"


def _admin_only(view: str = "true") -> Dict[str, str]:
    return {"view": view, "create": ADMIN, "update": ADMIN, "delete": ADMIN}


PERMISSIONS: Dict[str, Dict[str, Any]] = {
    "users": {
        "allow": {
            "view": "true",
            # users are created by the auth provider
            "create": "false",
            "update": f"auth.id == data.id || {ADMIN}",
            "delete": ADMIN,
        },
        "bind": ["role", "status"],
    },
    "playerProfiles": {
        "allow": {
            "view": "true",
            "create": f"auth.id in data.user.id || {ADMIN}",
            "update": f"auth.id in data.user.id || {ADMIN}",
            "delete": ADMIN,
        },
        "bind": ["category", "position", "jerseyNumber"],
    },
    "categories": {"allow": _admin_only()},
    "coaches": {"allow": _admin_only()},
    "categoryAchievements": {"allow": _admin_only()},
    "newsPosts": {
        # drafts are visible to admins only
        "allow": _admin_only(view=f"data.status == 'published' || {ADMIN}"),
        "bind": ["status"],
    },
    "galleryAlbums": {"allow": _admin_only()},
    "galleryImages": {"allow": _admin_only()},
    "tournaments": {
        "allow": {
            "view": "true",
            "create": ADMIN,
            "update": f"{ADMIN} || {COACH}",
            "delete": ADMIN,
        },
    },
    "matches": {
        "allow": {
            "view": "true",
            "create": f"{ADMIN} || {COACH}",
            "update": f"{ADMIN} || {COACH}",
            "delete": ADMIN,
        },
        "bind": ["homeScore", "awayScore", "result"],
    },
    "standings": {
        "allow": {
            "view": "true",
            "create": ADMIN,
            "update": f"{ADMIN} || {COACH}",
            "delete": ADMIN,
        },
        "bind": [
            "position",
            "played",
            "won",
            "drawn",
            "lost",
            "goalsFor",
            "goalsAgainst",
            "goalDifference",
            "points",
        ],
    },
    "paymentConcepts": {"allow": _admin_only(view=ADMIN)},
    "accountsReceivable": {
        "allow": _admin_only(view=f"{OWNER} || {ADMIN}"),
        "bind": ["status"],
    },
    "payments": {"allow": _admin_only(view=f"{OWNER} || {ADMIN}")},
    "paymentApplications": {
        "allow": _admin_only(view=f"auth.id in data.payment.playerProfile.user.id || {ADMIN}"),
    },
    "documents": {
        "allow": {
            "view": f"{OWNER} || {ADMIN}",
            "create": f"{OWNER} || {ADMIN}",
            # approve / reject
            "update": ADMIN,
            "delete": f"{OWNER} || {ADMIN}",
        },
        "bind": ["status", "reviewedAt"],
    },
    "contactSubmissions": {
        "allow": {
            "view": ADMIN,
            # anonymous visitors may submit the contact form
            "create": "true",
            "update": ADMIN,
            "delete": ADMIN,
        },
        "bind": ["isRead"],
    },
}


def build_rule_table(registry: Optional[SchemaRegistry] = None) -> RuleTable:
    return compile_document(PERMISSIONS, registry or get_registry())
