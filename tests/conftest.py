"""
Global pytest configuration for tv_screener tests.

No test touches the network: every Query is wired to a ScannerStub through
httpx.MockTransport, which records the requests it receives and replies with
queued responses.
"""

import json
import logging
from typing import Any, List, Union

import httpx
import pytest

from tv_screener.query import Query
from tv_screener.transport import ScannerTransport

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ============================================================================
# SCANNER STUB
# ============================================================================


class ScannerStub:
    """
    Records requests and replies with queued responses.

    Queue a dict for a 200 JSON reply, an httpx.Response for anything else,
    or an exception to have the transport raise it. With nothing queued the
    stub answers ``{"totalCount": 0, "data": []}``.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._replies: List[Union[dict, httpx.Response, Exception]] = []

    def reply(self, reply: Union[dict, httpx.Response, Exception]) -> "ScannerStub":
        self._replies.append(reply)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        reply: Any = self._replies.pop(0) if self._replies else {"totalCount": 0, "data": []}
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        return httpx.Response(200, json=reply)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def scanner() -> ScannerStub:
    return ScannerStub()


@pytest.fixture
def transport(scanner: ScannerStub) -> ScannerTransport:
    client = httpx.AsyncClient(transport=httpx.MockTransport(scanner.handler))
    return ScannerTransport(client=client)


@pytest.fixture
def query(transport: ScannerTransport) -> Query:
    return Query(transport=transport)


@pytest.fixture
def restore_root_logging():
    """Put the root logger back after tests that call setup_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
