# backend/api/routes/root.py

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "message": "Campus Connect Chat Relay",
        "version": "1.0",
        "transport": "WebSocket, one room per connection",
        "features": ["room_chat", "direct_chat", "bounded_history"],
        "endpoints": {
            "websocket": "/ws",
            "history": "/api/chat/messages/{room_id}",
            "health": "/health",
            "metrics": "/metrics",
        },
    }
