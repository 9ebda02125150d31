"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("ONFIDO_API_TOKEN", "test-token")

import httpx
import pytest
from fastapi.testclient import TestClient

from kyc_relay.dependencies import get_onfido_client, get_run_store
from kyc_relay.main import app
from kyc_relay.services.onfido_client import OnfidoClient
from kyc_relay.services.run_store import InMemoryRunStore

ONFIDO_BASE = "https://onfido.test"
API_PREFIX = "/v3.6"


class FakeOnfido:
    """In-process stand-in for the Onfido API, served through httpx.MockTransport."""

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, status=200, **response_kwargs):
        self.routes[(method, path)] = (status, response_kwargs)

    def paths(self):
        return [(r.method, r.url.path[len(API_PREFIX):]) for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path.startswith(API_PREFIX):
            path = path[len(API_PREFIX):]
        route = self.routes.get((request.method, path))
        if route is None:
            return httpx.Response(
                404,
                json={"error": {"type": "resource_not_found", "message": "Resource not found"}},
            )
        status, response_kwargs = route
        return httpx.Response(status, **response_kwargs)


@pytest.fixture(scope="function")
def fake_onfido():
    """Fresh fake Onfido API for each test."""
    return FakeOnfido()


@pytest.fixture(scope="function")
def onfido_client(fake_onfido):
    """Onfido client wired to the fake API."""
    return OnfidoClient(
        api_token="test-token",
        base_url=ONFIDO_BASE,
        api_version="v3.6",
        transport=httpx.MockTransport(fake_onfido.handler),
    )


@pytest.fixture(scope="function")
def store():
    """Empty webhook store for each test."""
    return InMemoryRunStore()


@pytest.fixture(scope="function")
def client(store, onfido_client):
    """Test client with the store and Onfido client overridden."""
    app.dependency_overrides[get_run_store] = lambda: store
    app.dependency_overrides[get_onfido_client] = lambda: onfido_client

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
