import pytest

from clubauthz.core.errors import SchemaError
from clubauthz.core.ports import RecordStore
from clubauthz.store.memory import InMemoryRecordStore


def test_put_get_delete_roundtrip():
    store = InMemoryRecordStore()
    rec = store.put("categories", "sub10", {"name": "Sub 10", "ageMin": 8})
    assert store.get("categories", "sub10") == rec
    assert store.delete("categories", "sub10") is True
    assert store.get("categories", "sub10") is None
    assert store.delete("categories", "sub10") is False
    assert isinstance(store, RecordStore)


def test_put_rejects_unknown_fields_and_to_many_links():
    store = InMemoryRecordStore()
    with pytest.raises(SchemaError, match="unknown field"):
        store.put("categories", "c", {"colour": "red"})
    with pytest.raises(SchemaError, match="unknown relationship"):
        store.put("documents", "d", {}, {"owner": "x"})
    with pytest.raises(SchemaError, match="to-many"):
        store.put("playerProfiles", "p", {}, {"documents": "d"})
    with pytest.raises(SchemaError, match="unknown entity"):
        store.put("teams", "t", {})


def test_linked_answers_both_directions(club_store):
    assert [r.id for r in club_store.linked("documents", "doc1", "playerProfile")] == ["pp1"]
    assert {r.id for r in club_store.linked("playerProfiles", "pp1", "documents")} == {"doc1"}
    assert club_store.linked("documents", "doc-unlinked", "playerProfile") == []
    # a dangling id yields nothing rather than an error
    assert club_store.linked("documents", "doc-broken", "playerProfile") == []


def test_delete_does_not_cascade(club_store):
    club_store.delete("playerProfiles", "pp1")
    doc = club_store.get("documents", "doc1")
    assert doc is not None and doc.link("playerProfile") == "pp1"


def test_all_and_fixture_errors(club_store):
    assert {r.id for r in club_store.all("newsPosts")} == {"news-pub", "news-draft"}
    with pytest.raises(SchemaError, match="no 'id'"):
        InMemoryRecordStore.from_fixture({"categories": [{"name": "x"}]})


def test_one_to_one_link_is_visible_from_both_sides():
    store = InMemoryRecordStore()
    store.put("users", "u1", {"role": "player", "status": "approved"})
    store.put("playerProfiles", "pp1", {"category": "sub12"}, {"user": "u1"})
    assert [r.id for r in store.linked("playerProfiles", "pp1", "user")] == ["u1"]
    assert [r.id for r in store.linked("users", "u1", "playerProfile")] == ["pp1"]

    # and when only the users side holds the link
    store.put("users", "u2", {"role": "player"}, {"playerProfile": "pp2"})
    store.put("playerProfiles", "pp2", {"category": "sub14"})
    assert [r.id for r in store.linked("playerProfiles", "pp2", "user")] == ["u2"]
    assert store.linked("users", "u-none", "playerProfile") == []
