# backend/api/routes/metrics.py
from fastapi import APIRouter
from datetime import datetime, timezone

from core import state

router = APIRouter()

@router.get("/metrics")
async def get_metrics():
    """
    Relay throughput and capacity figures.

    Rooms are never evicted, so "total_rooms" and "buffered_messages" only
    grow for the life of the process; watch them to decide when a room
    retention policy is needed.

    Example Response:
        {
            "total_messages": 1200,
            "uptime_hours": 5.5,
            "messages_per_second": 0.06,
            "concurrent_connections": 14,
            "total_rooms": 40,
            "active_rooms_with_members": 6,
            "buffered_messages": 900,
            "history_limit": 100,
            "room_members": {"friend-a-b": 2, "project-42": 0}
        }
    """
    uptime_seconds = (datetime.now(timezone.utc) - state.app_start_time).total_seconds()
    relay = state.message_relay

    if uptime_seconds > 0:
        messages_per_second = relay.messages_relayed / uptime_seconds
    else:
        messages_per_second = 0

    return {
        # Statistics
        "total_messages": relay.messages_relayed,
        "uptime_hours": round(uptime_seconds / 3600, 2) if uptime_seconds > 0 else 0,
        "messages_per_second": round(messages_per_second, 2),

        # Capacity
        "concurrent_connections": len(state.connection_manager),
        "total_rooms": state.room_registry.room_count,
        "active_rooms_with_members": state.room_registry.active_room_count,
        "buffered_messages": sum(len(h) for h in relay.histories.values()),
        "history_limit": relay.history_limit,
        "room_members": state.room_registry.snapshot(),
    }
