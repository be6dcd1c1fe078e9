import asyncio

import pytest

from clubauthz.core.engine import Authorizer
from clubauthz.core.model import Identity, Record
from clubauthz.core.relctx import EVAL_RECORDS
from clubauthz.logging.context import clear_current_trace_id, set_current_trace_id


class AsyncLogger:
    def __init__(self):
        self.payloads = []

    async def log(self, payload):
        await asyncio.sleep(0)
        self.payloads.append(payload)


@pytest.mark.asyncio
async def test_authorize_async_matches_sync(authorizer, club_store):
    doc = club_store.get("documents", "doc1")
    d = await authorizer.authorize_async("documents", "view", Identity("u-p1"), doc)
    assert d.allowed and d.reason == "matched"


@pytest.mark.asyncio
async def test_sync_authorize_inside_running_loop(authorizer, club_store):
    doc = club_store.get("documents", "doc1")
    d = authorizer.authorize("documents", "view", Identity("u-p1"), doc)
    assert d.allowed


@pytest.mark.asyncio
async def test_concurrent_requests_are_independent(club_rules, club_store):
    async def afetch(entity, id):
        await asyncio.sleep(0.001)
        return club_store.get(entity, id)

    az = Authorizer(club_rules, fetch=afetch)
    doc = club_store.get("documents", "doc1")
    idents = [Identity("u-p1"), Identity("u-p2"), Identity("u-admin"), None] * 5
    results = await asyncio.gather(
        *(az.authorize_async("documents", "view", i, doc) for i in idents)
    )
    for ident, d in zip(idents, results):
        expected = ident is not None and ident.id in ("u-p1", "u-admin")
        assert d.allowed is expected
        assert d.identity_id == (ident.id if ident else None)


@pytest.mark.asyncio
async def test_cancellation_leaves_no_evaluation_state(club_rules, club_store):
    started = asyncio.Event()

    async def hanging(entity, id):
        started.set()
        await asyncio.sleep(10)

    az = Authorizer(club_rules, fetch=hanging)
    task = asyncio.create_task(
        az.authorize_async("categories", "create", Identity("u-admin"), Record("categories", "c"))
    )
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert EVAL_RECORDS.get() is None

    # the authorizer is still usable afterwards
    az2 = Authorizer(club_rules, club_store)
    d = await az2.authorize_async("categories", "create", Identity("u-admin"), Record("categories", "c"))
    assert d.allowed


@pytest.mark.asyncio
async def test_fetch_timeout_is_resolution_failure(club_rules):
    async def slow(entity, id):
        await asyncio.sleep(1)

    az = Authorizer(club_rules, fetch=slow, fetch_timeout=0.01)
    d = await az.authorize_async("categories", "create", Identity("u-admin"), Record("categories", "c"))
    assert d.allowed is False and d.reason == "resolution-failed"


@pytest.mark.asyncio
async def test_async_logger_sink_and_trace_id(club_rules, club_store):
    sink = AsyncLogger()
    az = Authorizer(club_rules, club_store, logger_sink=sink)
    token = set_current_trace_id("trace-123")
    try:
        await az.authorize_async("categories", "view", None, Record("categories", "sub12"))
    finally:
        clear_current_trace_id(token)
    assert sink.payloads[0]["trace_id"] == "trace-123"
    assert sink.payloads[0]["matched_clause"] == "true"


@pytest.mark.asyncio
async def test_update_async_uses_existing(authorizer, club_store):
    pp1 = club_store.get("playerProfiles", "pp1")
    d = await authorizer.authorize_update_async("playerProfiles", Identity("u-p1"), pp1)
    assert d.allowed and d.operation == "update"
