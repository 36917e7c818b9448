import pytest
from discord_interactions import InteractionResponseType, InteractionType
from fastapi.testclient import TestClient

from bridge.api import interactions
from bridge.config import Settings
from bridge.deps import get_app_settings, get_audit
from bridge.main import app

SIGNED = {"X-Signature-Ed25519": "ab" * 32, "X-Signature-Timestamp": "1700000000"}


@pytest.fixture
def client(monkeypatch, audit):
    monkeypatch.setattr(interactions, "verify_key", lambda body, sig, ts, key: sig == SIGNED["X-Signature-Ed25519"])
    settings = Settings(public_key="00" * 32)
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_audit] = lambda: audit
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_ping_is_answered_with_pong(client, audit):
    r = client.post("/interactions", json={"type": InteractionType.PING}, headers=SIGNED)
    assert r.status_code == 200
    assert r.json() == {"type": InteractionResponseType.PONG}
    assert "Received PING interaction" in audit.events


def test_test_command_says_hello(client):
    r = client.post(
        "/interactions",
        json={"type": InteractionType.APPLICATION_COMMAND, "data": {"name": "test"}},
        headers=SIGNED,
    )
    assert r.status_code == 200
    body = r.json()
    assert body["type"] == InteractionResponseType.CHANNEL_MESSAGE_WITH_SOURCE
    content = body["data"]["content"]
    assert content.startswith("hello world ")
    assert content[len("hello world "):] in interactions.EMOJIS


def test_unknown_command(client, audit):
    r = client.post(
        "/interactions",
        json={"type": InteractionType.APPLICATION_COMMAND, "data": {"name": "nope"}},
        headers=SIGNED,
    )
    assert r.status_code == 400
    assert r.json() == {"error": "unknown command"}
    assert "Received unknown command: nope" in audit.events


def test_unknown_interaction_type(client):
    r = client.post("/interactions", json={"type": 99}, headers=SIGNED)
    assert r.status_code == 400
    assert r.json() == {"error": "unknown interaction type"}


def test_bad_signature_is_rejected(client):
    r = client.post(
        "/interactions",
        json={"type": InteractionType.PING},
        headers={"X-Signature-Ed25519": "00", "X-Signature-Timestamp": "1"},
    )
    assert r.status_code == 401


def test_missing_signature_is_rejected(client):
    r = client.post("/interactions", json={"type": InteractionType.PING})
    assert r.status_code == 401


def test_not_configured_without_public_key(client):
    settings = Settings(public_key=None)
    app.dependency_overrides[get_app_settings] = lambda: settings
    r = client.post("/interactions", json={"type": InteractionType.PING}, headers=SIGNED)
    assert r.status_code == 503


def test_command_with_non_object_data_is_rejected(client):
    r = client.post(
        "/interactions",
        json={"type": InteractionType.APPLICATION_COMMAND, "data": "test"},
        headers=SIGNED,
    )
    assert r.status_code == 400
    assert r.json() == {"error": "invalid command data"}
