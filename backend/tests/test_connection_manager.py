"""Tests for the WebSocket transport layer."""
import pytest

from services.connection_manager import frame
from tests.conftest import FakeWebSocket


@pytest.mark.asyncio
async def test_connect_accepts_and_tracks(manager):
    ws = FakeWebSocket()
    connection = await manager.connect(ws, user_id="alice")

    assert ws.accepted
    assert connection.id in manager
    assert manager.get(connection.id).user_id == "alice"
    assert len(manager) == 1


@pytest.mark.asyncio
async def test_send_writes_frames_in_order(manager):
    ws = FakeWebSocket()
    connection = await manager.connect(ws)

    for i in range(5):
        assert manager.send(connection.id, frame("tick", i)) is True
    await manager.drain(connection.id)

    assert ws.events("tick") == [0, 1, 2, 3, 4]


def test_send_to_unknown_connection(manager):
    assert manager.send("missing", frame("tick", 1)) is False


@pytest.mark.asyncio
async def test_broadcast_skips_excluded_and_unknown(manager):
    ws_a, ws_b = FakeWebSocket(), FakeWebSocket()
    a = await manager.connect(ws_a)
    b = await manager.connect(ws_b)

    delivered = manager.broadcast([a.id, b.id, "ghost"], frame("hello", None), exclude=a.id)
    await manager.drain()

    assert delivered == 1
    assert ws_a.sent == []
    assert ws_b.events("hello") == [None]


@pytest.mark.asyncio
async def test_disconnect_cleans_registry_and_is_idempotent(manager, registry):
    connection = await manager.connect(FakeWebSocket())
    registry.join(connection.id, "room-1")

    manager.disconnect(connection.id)
    manager.disconnect(connection.id)

    assert connection.id not in manager
    assert registry.room_of(connection.id) is None
    assert registry.members_of("room-1") == set()
    assert manager.send(connection.id, frame("late", None)) is False


@pytest.mark.asyncio
async def test_failed_write_disconnects(manager, registry):
    ws = FakeWebSocket(fail=True)
    connection = await manager.connect(ws)
    registry.join(connection.id, "room-1")

    manager.send(connection.id, frame("tick", 1))
    await manager.drain()

    assert connection.id not in manager
    assert ws.closed
    assert registry.members_of("room-1") == set()


@pytest.mark.asyncio
async def test_close_all(manager, registry):
    sockets = [FakeWebSocket() for _ in range(3)]
    for ws in sockets:
        connection = await manager.connect(ws)
        registry.join(connection.id, "room-1")

    await manager.close_all()

    assert len(manager) == 0
    assert all(ws.closed for ws in sockets)
    assert registry.members_of("room-1") == set()
