import dataclasses

import pytest

from clubauthz.core.model import OPERATIONS, ROLES, Decision, Identity, Record


def test_identity_and_record_are_frozen():
    ident = Identity("u1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        ident.id = "u2"  # type: ignore[misc]
    rec = Record("documents", "d1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        rec.id = "d2"  # type: ignore[misc]


def test_record_get_and_link():
    rec = Record("documents", "d1", {"status": "pending"}, {"playerProfile": "pp1", "reviewer": None})
    assert rec.get("id") == "d1"
    assert rec.get("status") == "pending"
    assert rec.get("missing", "x") == "x"
    assert rec.link("playerProfile") == "pp1"
    assert rec.link("reviewer") is None
    assert rec.link("nope") is None


@pytest.mark.parametrize(
    "decision,code",
    [
        (Decision(True, "matched"), 200),
        (Decision(False, "unauthenticated"), 401),
        (Decision(False, "no_match"), 403),
        (Decision(False, "no_rule"), 403),
        (Decision(False, "resolution-failed"), 403),
    ],
)
def test_decision_status_code(decision, code):
    assert decision.status_code == code


def test_constants():
    assert OPERATIONS == ("view", "create", "update", "delete")
    assert "admin" in ROLES and "guardian" in ROLES
