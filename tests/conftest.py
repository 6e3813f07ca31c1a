"""
Shared fixtures: a 1Click client backed by httpx.MockTransport and a
stand-in for the FastMCP request context.
"""

import json
from types import SimpleNamespace

import httpx
import pytest

from nearswap.oneclick import OneClickClient
from nearswap.server import NearSwapContext

BASE_URL = "https://1click.test"


class FakeOneClickAPI:
    """Records requests and answers them from a route table."""

    def __init__(self):
        self.requests = []
        self.routes = {}

    def respond(self, method, path, status_code=200, body=None):
        self.routes[(method, path)] = (status_code, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status_code, body = self.routes.get((request.method, request.url.path), (404, {"message": "not found"}))
        return httpx.Response(status_code, json=body)

    def last_json(self):
        return json.loads(self.requests[-1].content)


@pytest.fixture
def api():
    return FakeOneClickAPI()


@pytest.fixture
def make_client(api):
    def _make(token="test-jwt"):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(api))
        return OneClickClient(http_client, BASE_URL, token)
    return _make


@pytest.fixture
def make_ctx(make_client):
    """Build an object shaped like a FastMCP Context for calling tools directly."""
    def _make(token="test-jwt", oneclick=None):
        oneclick = oneclick or make_client(token)
        swap_ctx = NearSwapContext(oneclick=oneclick)
        return SimpleNamespace(request_context=SimpleNamespace(lifespan_context=swap_ctx))
    return _make
