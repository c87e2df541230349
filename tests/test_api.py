"""
Tests for the HTTP entry point.
"""

import pytest
from fastapi.testclient import TestClient

from commandbot.api import app, get_orchestrator
from commandbot.config import get_settings
from commandbot.models import CommandResult


class StubOrchestrator:
    def __init__(self, result: CommandResult):
        self.result = result
        self.commands = []

    async def process_command(self, command):
        self.commands.append(command)
        return self.result


@pytest.fixture
def stub():
    stub = StubOrchestrator(CommandResult(success=True, message="Draft email created successfully"))
    app.dependency_overrides[get_orchestrator] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


@pytest.fixture
def client(stub):
    # No context manager: the lifespan (and real clients) is not started
    return TestClient(app)


def test_success_returns_200(client, stub):
    response = client.post("/api/command", json={"command": "email bob about the budget"})

    assert response.status_code == 200
    assert response.text == "Draft email created successfully"
    assert stub.commands == ["email bob about the budget"]


def test_failure_returns_500(client, stub):
    stub.result = CommandResult(success=False, message="Invalid command format")

    response = client.post("/api/command", json={"command": "call bob"})

    assert response.status_code == 500
    assert response.text == "Invalid command format"


@pytest.mark.parametrize("body", [{}, {"command": ""}, {"command": None}])
def test_missing_command_returns_400(client, stub, body):
    response = client.post("/api/command", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == "Command is required"
    assert stub.commands == []


def test_cors_allows_any_origin(client):
    response = client.options(
        "/api/command",
        headers={
            "Origin": "https://example.org",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


def test_lifespan_closes_clients(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("EMAIL_DOMAIN", "example.com")
    monkeypatch.setenv("GRAPH_ACCESS_TOKEN", "graph-token")
    get_settings.cache_clear()

    try:
        with TestClient(app):
            llm_http = app.state.llm_http
            graph = app.state.graph
            assert app.state.orchestrator.formalizer._llm.http_async_client is llm_http
            assert not llm_http.is_closed
            assert not graph._client.is_closed

        assert llm_http.is_closed
        assert graph._client.is_closed
    finally:
        get_settings.cache_clear()
