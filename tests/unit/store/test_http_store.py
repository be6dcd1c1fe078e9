import json

import httpx
import pytest

from clubauthz.core.engine import Authorizer
from clubauthz.core.errors import ResolutionError
from clubauthz.core.model import Identity, Record
from clubauthz.store.http_store import HTTPRecordStore

ROWS = {
    ("documents", "doc1"): {
        "id": "doc1",
        "type": "medical",
        "status": "pending",
        "playerProfileId": "pp1",
        "reviewedBy": None,
    },
    ("playerProfiles", "pp1"): {"id": "pp1", "category": "sub12", "user": {"id": "u-p1"}},
    ("users", "u-p1"): {"id": "u-p1", "role": "player", "status": "approved"},
    ("payments", "pay1"): {"id": "pay1", "amount": "10.00", "createdBy": "u-admin", "links": {"playerProfile": "pp1"}},
}


def _handler(seen):
    def handle(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        _, entity, rid = request.url.path.rsplit("/", 2)
        if request.method == "GET":
            row = ROWS.get((entity, rid))
            if row is None:
                return httpx.Response(404, json={"detail": "not found"})
            return httpx.Response(200, json=row)
        if request.method == "PUT":
            return httpx.Response(200, json=json.loads(request.content))
        if request.method == "DELETE":
            return httpx.Response(204 if (entity, rid) in ROWS else 404)
        return httpx.Response(405)

    return handle


def _sync_store(seen, **kw):
    client = httpx.Client(transport=httpx.MockTransport(_handler(seen)))
    return HTTPRecordStore("http://legacy.test/api/", client=client, **kw)


def test_get_maps_link_columns():
    seen = []
    store = _sync_store(seen, token="t0k")
    doc = store.get("documents", "doc1")
    assert doc.fields == {"type": "medical", "status": "pending"}
    assert doc.links == {"playerProfile": "pp1", "reviewer": None}
    assert store.get("playerProfiles", "pp1").link("user") == "u-p1"
    pay = store.get("payments", "pay1")
    assert pay.links == {"playerProfile": "pp1", "creator": "u-admin"}
    assert seen[0].url == "http://legacy.test/api/documents/doc1"
    assert seen[0].headers["authorization"] == "Bearer t0k"


def test_missing_record_is_none():
    store = _sync_store([])
    assert store.get("documents", "nope") is None


def test_put_and_delete():
    seen = []
    store = _sync_store(seen)
    rec = store.put("categories", "c1", {"name": "Sub 10"}, {})
    assert rec.fields == {"name": "Sub 10"}
    assert json.loads(seen[-1].content) == {"name": "Sub 10", "links": {}}
    assert store.delete("documents", "doc1") is True
    assert store.delete("documents", "ghost") is False


def test_transport_error_is_resolution_error():
    def broken(request):
        raise httpx.ConnectError("refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(broken))
    store = HTTPRecordStore("http://legacy.test/api", client=client)
    with pytest.raises(ResolutionError):
        store.get("documents", "doc1")


def test_server_error_denies_through_authorizer():
    def fail(request):
        return httpx.Response(500)

    client = httpx.Client(transport=httpx.MockTransport(fail))
    az = Authorizer(store=HTTPRecordStore("http://legacy.test/api", client=client))

    d = az.authorize("documents", "view", Identity("u-p1"), Record("documents", "d", links={"playerProfile": "pp1"}))
    assert d.allowed is False and d.reason == "resolution-failed"


@pytest.mark.asyncio
async def test_async_client_resolves_ownership():
    seen = []
    aclient = httpx.AsyncClient(transport=httpx.MockTransport(_handler(seen)))
    store = HTTPRecordStore("http://legacy.test/api", async_client=aclient)
    try:
        az = Authorizer(store=store)
        doc = await store.get("documents", "doc1")
        d = await az.authorize_async("documents", "view", Identity("u-p1"), doc)
        assert d.allowed and d.matched_clause == "data.playerProfile.user.id == auth.id"
        # pp1 and users/u-p1 fetched once each within the evaluation
        paths = [r.url.path for r in seen]
        assert paths.count("/api/playerProfiles/pp1") == 1
    finally:
        await aclient.aclose()
