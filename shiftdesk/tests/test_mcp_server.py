"""Server entry tests: bearer guard, health route and transport selection."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from shiftdesk.mcp_server import ApiKeyMiddleware, health, parse_args, resolve_transport


@pytest.fixture
def client():
    app = Starlette(
        routes=[
            Route("/health", health),
            Route("/mcp", lambda request: PlainTextResponse("tools")),
        ],
        middleware=[Middleware(ApiKeyMiddleware, api_key="s3cret")],
    )
    return TestClient(app)


class TestApiKeyMiddleware:
    def test_health_is_open(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_missing_header(self, client):
        response = client.get("/mcp")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_wrong_key(self, client):
        assert client.get("/mcp", headers={"Authorization": "Bearer nope"}).status_code == 401

    def test_wrong_scheme(self, client):
        assert client.get("/mcp", headers={"Authorization": "Basic s3cret"}).status_code == 401

    def test_valid_key(self, client):
        response = client.get("/mcp", headers={"Authorization": "Bearer s3cret"})
        assert response.status_code == 200
        assert response.text == "tools"


class TestEntryArgs:
    def test_defaults(self):
        args = parse_args([])
        assert args.env_file is None
        assert args.transport is None

    def test_rejects_unknown_transport(self):
        with pytest.raises(SystemExit):
            parse_args(["--transport", "websocket"])

    def test_explicit_transport_wins(self, monkeypatch):
        monkeypatch.setenv("PORT", "9000")
        assert resolve_transport("stdio") == "stdio"

    def test_port_selects_http(self, monkeypatch):
        monkeypatch.setenv("PORT", "9000")
        assert resolve_transport(None) == "streamable-http"
        monkeypatch.delenv("PORT")
        assert resolve_transport(None) == "stdio"
