"""Shared test fixtures for the chat relay tests."""
import pytest
from fastapi.testclient import TestClient

from core import state
from services.connection_manager import ConnectionManager
from services.message_relay import MessageRelay
from services.room_registry import RoomRegistry


class FakeWebSocket:
    """Stand-in for fastapi.WebSocket that records what the server sends."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.closed = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, payload):
        if self.fail:
            raise RuntimeError("socket is gone")
        self.sent.append(payload)

    async def close(self, code: int = 1000):
        self.closed = True

    def events(self, name):
        """Payloads of every frame with the given event name, in order."""
        return [f["data"] for f in self.sent if f["event"] == name]


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def manager(registry):
    return ConnectionManager(room_registry=registry)


@pytest.fixture
def relay(registry, manager):
    return MessageRelay(room_registry=registry, connection_manager=manager)


@pytest.fixture(autouse=True)
def app_state(monkeypatch, registry, manager, relay):
    """Point the app's global singletons at this test's fresh instances."""
    monkeypatch.setattr(state, "room_registry", registry)
    monkeypatch.setattr(state, "connection_manager", manager)
    monkeypatch.setattr(state, "message_relay", relay)


@pytest.fixture
def api_client():
    """TestClient with the app lifespan running.

    Entering the client makes every websocket_connect share one event loop,
    which the per-connection outboxes rely on.
    """
    from main import app

    with TestClient(app) as client:
        yield client
