# backend/services/room_registry.py

from __future__ import annotations

from typing import Dict, List, Optional, Set
import logging

logger = logging.getLogger(__name__)


class InvalidRoomError(ValueError):
    """Raised when a room id is missing, empty or only whitespace."""


def is_blank_room_id(room_id) -> bool:
    return not isinstance(room_id, str) or not room_id.strip()


def check_room_id(room_id) -> str:
    """Return room_id unchanged, or raise InvalidRoomError if it is blank."""
    if is_blank_room_id(room_id):
        raise InvalidRoomError("roomId is required")
    return room_id


# ============================================================================
# ROOM REGISTRY
# ============================================================================

class RoomRegistry:
    """
    Single source of truth for which connection is in which room.

    A connection belongs to at most one room at a time. Joining a new room
    moves the connection out of its previous one in the same call, so no
    caller ever observes it in two member sets.

    Data Structures:
        rooms: Maps room_id -> Set of connection ids currently in that room
               Example: {"friend-a-b": {"c1", "c2"}, "project-42": set()}

        connection_rooms: Maps connection id -> the one room it is in
                          Example: {"c1": "friend-a-b"}

    Rooms are created on first use and never deleted, even once empty, so a
    room's history survives its last member reconnecting. Every mutation is
    synchronous: on a single event loop nothing can interleave with it.
    """

    def __init__(self) -> None:
        self.rooms: Dict[str, Set[str]] = {}
        self.connection_rooms: Dict[str, str] = {}

    def ensure_room(self, room_id: str) -> None:
        """Create an empty room entry if the room is not known yet."""
        self.rooms.setdefault(check_room_id(room_id), set())

    def join(self, connection_id: str, room_id: str) -> int:
        """
        Move a connection into a room.

        Args:
            connection_id: Id of a live connection
            room_id: Room to join (created if unknown)

        Returns:
            Member count of room_id after the join

        Raises:
            InvalidRoomError: if room_id is blank

        Joining the room the connection is already in changes nothing.
        """
        check_room_id(room_id)

        previous = self.connection_rooms.get(connection_id)
        if previous is not None and previous != room_id:
            self.rooms[previous].discard(connection_id)
            logger.info("← %s left room %s", connection_id, previous)

        members = self.rooms.setdefault(room_id, set())
        members.add(connection_id)
        self.connection_rooms[connection_id] = room_id

        if previous != room_id:
            logger.info("→ %s joined room %s (%d members)", connection_id, room_id, len(members))
        return len(members)

    def leave(self, connection_id: str, room_id: str) -> bool:
        """
        Remove a connection from a room.

        Returns:
            True if the connection was a member, False otherwise (not an error)
        """
        if self.connection_rooms.get(connection_id) != room_id:
            return False

        del self.connection_rooms[connection_id]
        self.rooms[room_id].discard(connection_id)
        logger.info("← %s left room %s (%d members)", connection_id, room_id, len(self.rooms[room_id]))
        return True

    def disconnect(self, connection_id: str) -> Optional[str]:
        """
        Drop a connection from whatever room it was in.

        Returns:
            The room the connection was in, or None
        """
        room_id = self.connection_rooms.pop(connection_id, None)
        if room_id is not None:
            self.rooms[room_id].discard(connection_id)
            logger.info("✗ %s removed from room %s on disconnect", connection_id, room_id)
        return room_id

    def members_of(self, room_id: str) -> Set[str]:
        """Current members of a room. Always a fresh copy of live state."""
        return set(self.rooms.get(room_id, ()))

    def room_of(self, connection_id: str) -> Optional[str]:
        return self.connection_rooms.get(connection_id)

    def room_ids(self) -> List[str]:
        return list(self.rooms)

    @property
    def room_count(self) -> int:
        return len(self.rooms)

    @property
    def active_room_count(self) -> int:
        return sum(1 for members in self.rooms.values() if members)

    def snapshot(self) -> Dict[str, int]:
        """Member count per known room, reported by /metrics."""
        return {room_id: len(members) for room_id, members in self.rooms.items()}
