"""Tests for room membership bookkeeping."""
import random

import pytest

from services.room_registry import InvalidRoomError, RoomRegistry


def assert_single_membership(registry: RoomRegistry):
    """Every connection is in at most one room, and both maps agree."""
    seen = {}
    for room_id, members in registry.rooms.items():
        for connection_id in members:
            assert connection_id not in seen, f"{connection_id} in {seen.get(connection_id)} and {room_id}"
            seen[connection_id] = room_id
    assert seen == registry.connection_rooms


def test_join_creates_room_and_returns_count(registry):
    assert registry.join("c1", "room-1") == 1
    assert registry.join("c2", "room-1") == 2
    assert registry.members_of("room-1") == {"c1", "c2"}
    assert registry.room_of("c1") == "room-1"


def test_join_other_room_moves_connection(registry):
    registry.join("c1", "room-1")
    registry.join("c1", "room-2")

    assert "c1" not in registry.members_of("room-1")
    assert registry.members_of("room-2") == {"c1"}
    assert registry.room_of("c1") == "room-2"
    assert_single_membership(registry)


def test_join_same_room_twice_is_idempotent(registry):
    registry.join("c1", "room-1")
    registry.join("c2", "room-1")

    assert registry.join("c1", "room-1") == 2
    assert registry.members_of("room-1") == {"c1", "c2"}


def test_join_empty_room_id_raises(registry):
    with pytest.raises(InvalidRoomError):
        registry.join("c1", "")
    with pytest.raises(InvalidRoomError):
        registry.join("c1", "   ")
    assert registry.room_of("c1") is None
    assert registry.room_count == 0


def test_leave_removes_member_but_keeps_room(registry):
    registry.join("c1", "room-1")

    assert registry.leave("c1", "room-1") is True
    assert registry.members_of("room-1") == set()
    assert registry.room_of("c1") is None
    assert "room-1" in registry.room_ids()


def test_leave_room_not_joined_is_noop(registry):
    registry.join("c1", "room-1")

    assert registry.leave("c1", "room-2") is False
    assert registry.leave("nobody", "room-1") is False
    assert registry.members_of("room-1") == {"c1"}


def test_disconnect_removes_from_current_room(registry):
    registry.join("c1", "room-1")
    registry.join("c2", "room-1")

    assert registry.disconnect("c1") == "room-1"
    assert registry.members_of("room-1") == {"c2"}
    assert registry.room_of("c1") is None
    assert registry.disconnect("c1") is None


def test_members_of_is_a_fresh_copy(registry):
    registry.join("c1", "room-1")
    members = registry.members_of("room-1")
    members.add("intruder")

    registry.join("c2", "room-1")
    assert registry.members_of("room-1") == {"c1", "c2"}
    assert "c2" not in members


def test_members_of_unknown_room_is_empty(registry):
    assert registry.members_of("nowhere") == set()


def test_counts_and_snapshot(registry):
    registry.join("c1", "room-1")
    registry.join("c2", "room-2")
    registry.leave("c2", "room-2")
    registry.ensure_room("room-3")

    assert registry.room_count == 3
    assert registry.active_room_count == 1
    assert registry.snapshot() == {"room-1": 1, "room-2": 0, "room-3": 0}


def test_random_operations_keep_single_membership():
    rng = random.Random(7)
    registry = RoomRegistry()
    connections = [f"c{i}" for i in range(8)]
    rooms = [f"room-{i}" for i in range(4)]

    for _ in range(500):
        connection_id = rng.choice(connections)
        op = rng.random()
        if op < 0.6:
            registry.join(connection_id, rng.choice(rooms))
        elif op < 0.85:
            registry.leave(connection_id, rng.choice(rooms))
        else:
            registry.disconnect(connection_id)
        assert_single_membership(registry)
