# backend/core/state.py
from __future__ import annotations

from datetime import datetime, timezone

from core.config import settings
from services.room_registry import RoomRegistry
from services.connection_manager import ConnectionManager
from services.message_relay import MessageRelay

# Global singletons for app state
room_registry = RoomRegistry()
connection_manager = ConnectionManager(room_registry=room_registry)
message_relay = MessageRelay(
    room_registry=room_registry,
    connection_manager=connection_manager,
    history_limit=settings.HISTORY_LIMIT,
)

app_start_time: datetime = datetime.now(timezone.utc)
