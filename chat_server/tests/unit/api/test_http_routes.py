"""
Tests for the HTTP routes: root, health and chat history.
"""

import pytest
from fastapi.testclient import TestClient

from chat_server.api.health import ROOT_MESSAGE
from chat_server.app.factory import create_app
from chat_server.realtime.events import ChatMessage


class TestHttpRoutes:
    @pytest.fixture
    def app(self, test_config):
        return create_app(test_config)

    @pytest.fixture
    def client(self, app):
        with TestClient(app) as client:
            yield client

    def test_root_returns_plain_text(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.text == ROOT_MESSAGE
        assert response.headers["content-type"].startswith("text/plain")

    def test_health_reports_connections_and_users(self, client, app):
        registry = app.state.container.registry
        for connection_id in ("c1", "c2", "c3"):
            registry.add_connection(connection_id)
        registry.register("c1", "alice")
        registry.register("c2", "alice")

        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "connections": 3, "users": 1}

    def test_messages_empty_at_start(self, client):
        response = client.get("/api/messages")

        assert response.status_code == 200
        assert response.json() == []

    def test_messages_returns_history_oldest_first(self, client, app):
        history = app.state.container.history
        history.record(ChatMessage(user="alice", text="one", timestamp="2024-01-01T00:00:00.000Z"))
        history.record(ChatMessage(user="bob", text="two", timestamp="2024-01-01T00:00:01.000Z"))

        response = client.get("/api/messages")

        assert response.json() == [
            {"user": "alice", "text": "one", "timestamp": "2024-01-01T00:00:00.000Z"},
            {"user": "bob", "text": "two", "timestamp": "2024-01-01T00:00:01.000Z"},
        ]

    def test_cors_allows_configured_origin(self, client, test_config):
        origin = test_config.cors.allow_origins[0]

        response = client.get("/health", headers={"Origin": origin})

        assert response.headers["access-control-allow-origin"] == origin

    def test_routes_unavailable_before_startup(self, app):
        # No context manager: lifespan never runs, so the container stays uninitialized
        client = TestClient(app)

        response = client.get("/health")

        assert response.status_code == 503
        error = response.json()["error"]
        assert error["type"] == "service_unavailable"
        assert error["user_friendly"] == "Service temporarily unavailable"
