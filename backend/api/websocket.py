# backend/api/websocket.py

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from core import state
from models.models import RoomEvent
from services.connection_manager import Connection, frame
from services.room_ids import is_direct_room
from services.room_registry import InvalidRoomError, is_blank_room_id

logger = logging.getLogger(__name__)

router = APIRouter()


def _room_id(data: Any) -> str:
    """Room id from an event payload: {"roomId": "..."} or a bare string."""
    if isinstance(data, str):
        return data
    if isinstance(data, dict):
        return str(data.get("roomId") or "")
    return ""


# ============================================================================
# EVENT HANDLERS
# ============================================================================

def handle_join_room(connection: Connection, data: Any) -> None:
    registry = state.room_registry
    manager = state.connection_manager
    room_id = _room_id(data)

    if connection.id not in manager:
        logger.warning("Ignoring join-room from torn-down connection %s", connection.id)
        return

    rejoin = registry.room_of(connection.id) == room_id
    try:
        user_count = registry.join(connection.id, room_id)
    except InvalidRoomError as e:
        logger.warning("⚠️  %s sent join-room without a room id", connection.id)
        manager.send(connection.id, frame("room-join-error", {"error": str(e)}))
        return

    # Ack on every join, repeats included: clients enable sending on this.
    manager.send(connection.id, frame("room-joined", {"roomId": room_id, "userCount": user_count}))
    if rejoin:
        return

    members = registry.members_of(room_id)
    manager.broadcast(
        members,
        frame("user-joined-room", {"roomId": room_id, "userId": connection.user_id}),
        exclude=connection.id,
    )
    if is_direct_room(room_id) and user_count == 2:
        logger.info("✅ Direct chat %s has both participants", room_id)
        manager.broadcast(members, frame("friend-chat-ready", {"roomId": room_id}))


def handle_leave_room(connection: Connection, data: Any) -> None:
    room_id = _room_id(data)
    if state.room_registry.leave(connection.id, room_id):
        state.connection_manager.send(
            connection.id,
            frame("room-left", {
                "roomId": room_id,
                "userCount": len(state.room_registry.members_of(room_id)),
            }),
        )


def handle_send_message(connection: Connection, data: Any) -> None:
    payload = data if isinstance(data, dict) else {}
    state.message_relay.relay(connection.id, _room_id(payload), payload)


def handle_get_history(connection: Connection, data: Any) -> None:
    room_id = _room_id(data)
    if is_blank_room_id(room_id):
        state.connection_manager.send(connection.id, frame("error", {"error": "roomId is required"}))
        return
    messages = [m.model_dump(mode="json") for m in state.message_relay.history(room_id)]
    state.connection_manager.send(connection.id, frame("history", {"roomId": room_id, "messages": messages}))


HANDLERS: Dict[str, Callable[[Connection, Any], None]] = {
    "join-room": handle_join_room,
    "leave-room": handle_leave_room,
    "send-message": handle_send_message,
    "get-history": handle_get_history,
}


# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, user_id: str = "unknown"):
    """
    WebSocket endpoint for room chat.

    Protocol:
    =========
    Every frame in both directions is {"event": "<name>", "data": <payload>}.

    Client -> Server:
    -----------------
    join-room      {"roomId": "friend-a-b"}
                   -> room-joined {"roomId", "userCount"} (every time)
                   -> user-joined-room to the other members
                   -> friend-chat-ready to the room once a friend- room has 2 members
    leave-room     {"roomId": "..."}       -> room-left {"roomId", "userCount"}
    send-message   {"roomId", "user": {"id", "name", "image"}, "text", "clientTimestamp"}
                   -> receive-message to every member, sender included
                   -> message-error to the sender only if rejected
    get-history    {"roomId": "..."}       -> history {"roomId", "messages"}

    Server -> Client:
    -----------------
    connected      {"connectionId", "userId"} first frame after accept
    error          {"error": "..."} for invalid JSON or unknown events

    Lifecycle:
    ==========
    1. Client connects with an advisory user_id query parameter
    2. Client joins one room at a time; joining another leaves the old one
    3. On disconnect (clean or not) the connection leaves its room

    Args:
        websocket: WebSocket connection object
        user_id: Query parameter, used for logging and join notices only
    """
    manager = state.connection_manager
    connection = await manager.connect(websocket, user_id)
    manager.send(connection.id, frame("connected", {"connectionId": connection.id, "userId": user_id}))

    try:
        while True:
            raw = await websocket.receive_text()
            if connection.id not in manager:
                # Torn down after a failed write; stop reading.
                break

            try:
                incoming = RoomEvent.model_validate(json.loads(raw))
            except json.JSONDecodeError:
                manager.send(connection.id, frame("error", {"error": "Invalid JSON"}))
                continue
            except ValidationError:
                manager.send(connection.id, frame("error", {"error": "Expected {\"event\", \"data\"}"}))
                continue

            handler = HANDLERS.get(incoming.event)
            if handler is None:
                manager.send(connection.id, frame("error", {"error": f"Unknown event: {incoming.event}"}))
                continue

            logger.debug("Websocket input from %s: %s", connection.id, incoming.event)
            handler(connection, incoming.data)

    except WebSocketDisconnect:
        logger.info("%s closed the socket", connection.id)
    except Exception as e:
        logger.error("WebSocket error on %s: %s", connection.id, e)
    finally:
        manager.disconnect(connection.id)
