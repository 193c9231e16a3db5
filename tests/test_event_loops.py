"""
Tests for running scans under successive event loops.

Each asyncio.run() starts a fresh loop; the shared transport and the global
concurrency manager must not carry loop-bound state from one run to the next.
"""

import asyncio

import httpx
import pytest

from tv_screener import concurrency, transport
from tv_screener.concurrency import get_concurrency_manager, scan_many
from tv_screener.query import Query
from tv_screener.transport import ScannerTransport, close_transport, get_transport


async def _slow_reply(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(0.01)
    return httpx.Response(200, json={"totalCount": 1, "data": [{"s": "X:Y", "d": [1]}]})


@pytest.fixture
def fresh_globals(monkeypatch):
    """Start without a shared transport or concurrency manager."""
    monkeypatch.setattr(transport, "_transport", None)
    monkeypatch.setattr(transport, "_transport_loop", None)
    monkeypatch.setattr(concurrency, "_concurrency_manager", None)


@pytest.fixture
def mocked_default_client(monkeypatch, scanner):
    """Default transports talk to the scanner stub instead of the network."""
    real_client = httpx.AsyncClient

    def client_factory(**kwargs):
        return real_client(transport=httpx.MockTransport(scanner.handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)
    return scanner


def test_default_transport_is_rebuilt_for_each_event_loop(fresh_globals, mocked_default_client):
    seen = []

    async def run():
        shared = get_transport()
        seen.append(shared)
        assert get_transport() is shared
        result = await Query().select("c1").get_scanner_data()
        await close_transport()
        return result

    first = asyncio.run(run())
    second = asyncio.run(run())

    assert first.total_count == 0
    assert second.total_count == 0
    assert seen[0] is not seen[1]
    assert len(mocked_default_client.requests) == 2


def test_default_transport_survives_unclosed_previous_loop(fresh_globals, mocked_default_client):
    mocked_default_client.reply({"totalCount": 1, "data": [{"s": "A:B", "d": [5]}]})
    mocked_default_client.reply({"totalCount": 1, "data": [{"s": "C:D", "d": [6]}]})

    first = asyncio.run(Query().select("c1").get_scanner_data())
    second = asyncio.run(Query().select("c1").get_scanner_data())

    assert first.rows == [{"ticker": "A:B", "c1": 5}]
    assert second.rows == [{"ticker": "C:D", "c1": 6}]
    asyncio.run(close_transport())


def test_scan_many_under_successive_event_loops(fresh_globals):
    async def run():
        shared = ScannerTransport(
            client=httpx.AsyncClient(transport=httpx.MockTransport(_slow_reply))
        )
        async with shared:
            queries = [Query(transport=shared).select("c1") for _ in range(10)]
            return await scan_many(queries)

    first = asyncio.run(run())
    second = asyncio.run(run())

    assert len(first) == len(second) == 10
    assert all(result.rows == [{"ticker": "X:Y", "c1": 1}] for result in second)

    stats = get_concurrency_manager().stats
    assert stats.total_acquired == 20
    assert stats.active == 0
