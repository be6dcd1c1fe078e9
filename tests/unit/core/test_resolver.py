import asyncio

import pytest

from clubauthz.core.errors import RelationshipError, ResolutionError, SchemaError
from clubauthz.core.model import Record
from clubauthz.core.relctx import EVAL_RECORDS
from clubauthz.core.resolver import RelationshipResolver
from clubauthz.core.schema import get_registry


class CountingFetch:
    def __init__(self, store):
        self.store = store
        self.calls = []

    def __call__(self, entity, id):
        self.calls.append((entity, id))
        return self.store.get(entity, id)


@pytest.mark.asyncio
async def test_resolve_multi_hop_path(club_store):
    resolver = RelationshipResolver(get_registry(), club_store.get)
    app = club_store.get("paymentApplications", "app1")
    user = await resolver.resolve(app, ("payment", "playerProfile", "user"))
    assert user is not None and user.id == "u-p1" and user.entity == "users"


@pytest.mark.asyncio
async def test_empty_path_returns_start(club_store):
    resolver = RelationshipResolver(get_registry(), club_store.get)
    doc = club_store.get("documents", "doc1")
    assert await resolver.resolve(doc, ()) is doc


@pytest.mark.asyncio
async def test_unset_link_returns_none(club_store):
    resolver = RelationshipResolver(get_registry(), club_store.get)
    doc = club_store.get("documents", "doc-unlinked")
    assert await resolver.resolve(doc, ("playerProfile", "user")) is None
    orphan = club_store.get("playerProfiles", "pp-orphan")
    assert await resolver.resolve(orphan, ("user",)) is None


@pytest.mark.asyncio
async def test_dangling_link_raises_relationship_error(club_store):
    resolver = RelationshipResolver(get_registry(), club_store.get)
    doc = club_store.get("documents", "doc-broken")
    with pytest.raises(RelationshipError, match="broken link"):
        await resolver.resolve(doc, ("playerProfile", "user"))


@pytest.mark.asyncio
async def test_to_many_hop_is_schema_error(club_store):
    resolver = RelationshipResolver(get_registry(), club_store.get)
    profile = club_store.get("playerProfiles", "pp1")
    with pytest.raises(SchemaError):
        await resolver.resolve(profile, ("documents",))


@pytest.mark.asyncio
async def test_async_fetch_is_awaited(club_store):
    async def afetch(entity, id):
        await asyncio.sleep(0)
        return club_store.get(entity, id)

    resolver = RelationshipResolver(get_registry(), afetch)
    doc = club_store.get("documents", "doc1")
    user = await resolver.resolve(doc, ("playerProfile", "user"))
    assert user.id == "u-p1"


@pytest.mark.asyncio
async def test_store_failure_and_timeout_become_resolution_error():
    def failing(entity, id):
        raise ConnectionError("store down")

    async def slow(entity, id):
        await asyncio.sleep(1)

    doc = Record("documents", "d", links={"playerProfile": "p"})
    with pytest.raises(ResolutionError, match="store down"):
        await RelationshipResolver(get_registry(), failing).resolve(doc, ("playerProfile",))
    with pytest.raises(ResolutionError, match="timed out"):
        await RelationshipResolver(get_registry(), slow, timeout=0.01).resolve(doc, ("playerProfile",))


@pytest.mark.asyncio
async def test_memo_only_inside_evaluation_scope(club_store):
    fetch = CountingFetch(club_store)
    resolver = RelationshipResolver(get_registry(), fetch)
    doc = club_store.get("documents", "doc1")

    await resolver.resolve(doc, ("playerProfile",))
    await resolver.resolve(doc, ("playerProfile",))
    assert len(fetch.calls) == 2

    token = EVAL_RECORDS.set({})
    try:
        await resolver.resolve(doc, ("playerProfile",))
        await resolver.resolve(doc, ("playerProfile",))
    finally:
        EVAL_RECORDS.reset(token)
    assert len(fetch.calls) == 3
