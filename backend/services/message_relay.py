# backend/services/message_relay.py

from __future__ import annotations

import logging
import secrets
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Union

from pydantic import ValidationError

from models.models import ChatMessage, MessagePayload
from services.connection_manager import ConnectionManager, frame
from services.room_registry import RoomRegistry, check_room_id, is_blank_room_id

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100


def new_message_id(now: datetime) -> str:
    """Epoch millis plus 64 random bits; unique even within one millisecond."""
    return f"{int(now.timestamp() * 1000)}-{secrets.token_hex(8)}"


# ============================================================================
# MESSAGE RELAY
# ============================================================================

class MessageRelay:
    """
    Stamps, stores and fans out chat messages.

    Flow for one send-message:
        1. Check the sender is currently in the room it names
        2. Stamp server timestamp + unique id
        3. Queue the message for every current member, sender included
        4. Append to the room's history (oldest evicted past the limit)

    relay() never awaits. Steps 2-4 run without yielding to the event loop,
    so two messages for the same room always land in history and in every
    member's outbox in the order relay() was called. A message whose
    fan-out raised is not kept in history.

    Room ids that are empty or only whitespace are rejected everywhere.

    Attributes:
        histories: Maps room_id -> deque of ChatMessage, oldest first
        messages_relayed: Messages accepted since startup (for /metrics)
    """

    def __init__(
        self,
        room_registry: RoomRegistry,
        connection_manager: ConnectionManager,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        if history_limit < 1:
            raise ValueError("history_limit must be positive")
        self.room_registry = room_registry
        self.connection_manager = connection_manager
        self.history_limit = history_limit
        self.histories: Dict[str, Deque[ChatMessage]] = {}
        self.messages_relayed = 0

    def relay(self, sender_id: str, room_id: str, raw_message: Dict[str, Any]) -> Optional[ChatMessage]:
        """
        Accept one message from a connection and broadcast it to its room.

        Args:
            sender_id: Connection id of the sender
            room_id: Room named in the message
            raw_message: Client payload (user, text, clientTimestamp)

        Returns:
            The stored ChatMessage, or None if it was rejected

        Error Handling:
            Rejections and internal failures are reported to the sender only
            as a "message-error" frame. Nothing is stored or broadcast.
        """
        if is_blank_room_id(room_id):
            return self._reject(sender_id, "roomId is required")

        current_room = self.room_registry.room_of(sender_id)
        if current_room is None:
            return self._reject(sender_id, "Join a room before sending messages")
        if current_room != room_id:
            return self._reject(sender_id, f"Not a member of room {room_id}")

        try:
            payload = MessagePayload.model_validate(raw_message)
        except ValidationError as e:
            logger.warning("Invalid message from %s: %s", sender_id, e.errors())
            return self._reject(sender_id, "Invalid message payload")

        try:
            message = self._stamp(room_id, payload)
            outgoing = frame("receive-message", message.model_dump(mode="json"))

            members = self.room_registry.members_of(room_id)
            delivered = self.connection_manager.broadcast(members, outgoing)
            # Only stored once fan-out succeeded.
            self._append(message)
        except Exception:
            logger.exception("Error relaying message from %s to room %s", sender_id, room_id)
            return self._reject(sender_id, "Failed to send message")

        self.messages_relayed += 1
        logger.info(
            "📨 Message %s from %s (%s) to room %s: queued for %d member(s), history %d",
            message.id,
            sender_id,
            message.user.id,
            room_id,
            delivered,
            self.history_size(room_id),
        )
        return message

    def record(self, room_id: str, raw_message: Union[MessagePayload, Dict[str, Any]]) -> ChatMessage:
        """
        Store a message in a room's history without broadcasting it.

        Raises:
            InvalidRoomError: if room_id is blank
            ValidationError: if the payload is malformed
        """
        check_room_id(room_id)
        payload = MessagePayload.model_validate(raw_message)

        message = self._stamp(room_id, payload)
        self.room_registry.ensure_room(room_id)
        self._append(message)
        logger.info("💾 Stored message %s in room %s (history %d)", message.id, room_id, self.history_size(room_id))
        return message

    def history(self, room_id: str) -> List[ChatMessage]:
        """Messages still held for a room, oldest first."""
        return list(self.histories.get(room_id, ()))

    def history_size(self, room_id: str) -> int:
        return len(self.histories.get(room_id, ()))

    def _stamp(self, room_id: str, payload: MessagePayload) -> ChatMessage:
        now = datetime.now(timezone.utc)
        return ChatMessage(
            id=new_message_id(now),
            roomId=room_id,
            user=payload.user,
            text=payload.text,
            clientTimestamp=payload.clientTimestamp,
            serverTimestamp=now.isoformat(),
        )

    def _append(self, message: ChatMessage) -> None:
        buffer = self.histories.get(message.roomId)
        if buffer is None:
            buffer = self.histories[message.roomId] = deque(maxlen=self.history_limit)
        buffer.append(message)

    def _reject(self, sender_id: str, error: str) -> None:
        logger.warning("⚠️  Rejected message from %s: %s", sender_id, error)
        self.connection_manager.send(sender_id, frame("message-error", {"error": error}))
        return None
