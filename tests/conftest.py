import importlib.util

import pytest

from clubauthz.club.rules import build_rule_table
from clubauthz.core.engine import Authorizer
from clubauthz.store.memory import InMemoryRecordStore


def _has_module(modname: str) -> bool:
    """Return True if the given module can be imported (present on sys.path)."""
    return importlib.util.find_spec(modname) is not None


def pytest_collection_modifyitems(config, items):
    """Skip YAML-driven tests when PyYAML is missing and starlette tests without starlette."""
    missing_yaml = not _has_module("yaml")
    missing_starlette = not _has_module("starlette")
    if not (missing_yaml or missing_starlette):
        return

    skip_yaml = pytest.mark.skip(reason="optional dependency 'PyYAML' not installed")
    skip_web = pytest.mark.skip(reason="optional dependency 'starlette' not installed")
    for item in items:
        nid = item.nodeid.lower()
        if missing_yaml and "yaml" in nid:
            item.add_marker(skip_yaml)
        if missing_starlette and "starlette" in nid:
            item.add_marker(skip_web)


CLUB_FIXTURE = {
    "users": [
        {"id": "u-admin", "email": "admin@club.test", "role": "admin", "status": "approved"},
        {"id": "u-coach", "email": "coach@club.test", "role": "coach", "status": "approved"},
        {
            "id": "u-p1",
            "email": "p1@club.test",
            "role": "player",
            "status": "approved",
            "links": {"playerProfile": "pp1"},
        },
        {
            "id": "u-p2",
            "email": "p2@club.test",
            "role": "player",
            "status": "approved",
            "links": {"playerProfile": "pp2"},
        },
        {"id": "u-guardian", "email": "g@club.test", "role": "guardian", "status": "pending"},
    ],
    "playerProfiles": [
        {"id": "pp1", "category": "sub12", "gamesPlayed": 3, "links": {"user": "u-p1"}},
        {"id": "pp2", "category": "sub14", "gamesPlayed": 0, "links": {"user": "u-p2"}},
        {"id": "pp-orphan", "category": "sub8", "gamesPlayed": 0},
    ],
    "categories": [{"id": "sub12", "name": "Sub 12", "ageMin": 10}],
    "documents": [
        {"id": "doc1", "type": "medical", "status": "pending", "links": {"playerProfile": "pp1"}},
        {
            "id": "doc-broken",
            "type": "id",
            "status": "pending",
            "links": {"playerProfile": "pp-missing"},
        },
        {"id": "doc-unlinked", "type": "eps", "status": "pending"},
    ],
    "payments": [
        {"id": "pay1", "amount": "120.00", "paymentMethod": "cash", "links": {"playerProfile": "pp1"}},
    ],
    "paymentApplications": [
        {"id": "app1", "amount": "120.00", "links": {"payment": "pay1"}},
    ],
    "newsPosts": [
        {"id": "news-pub", "title": "Win", "content": "...", "status": "published"},
        {"id": "news-draft", "title": "Soon", "content": "...", "status": "draft"},
    ],
    "contactSubmissions": [],
}


@pytest.fixture
def club_store():
    return InMemoryRecordStore.from_fixture(CLUB_FIXTURE)


@pytest.fixture
def club_rules():
    return build_rule_table()


@pytest.fixture
def authorizer(club_rules, club_store):
    return Authorizer(club_rules, club_store)
