# backend/api/routes/health.py

from fastapi import APIRouter

from core import state

router = APIRouter()

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns:
        dict: Status, live connection count, known rooms, rooms with members
    """
    return {
        "status": "healthy",
        "connections": len(state.connection_manager),
        "rooms": state.room_registry.room_count,
        "active_rooms_with_members": state.room_registry.active_room_count,
    }
