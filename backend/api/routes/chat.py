# backend/api/routes/chat.py

from typing import List

from fastapi import APIRouter, HTTPException

from core import state
from models.models import ChatMessage, StoreMessageRequest
from services.room_registry import InvalidRoomError

router = APIRouter(prefix="/api/chat", tags=["Chat"])

# ============================================================================
# CHAT HISTORY ENDPOINTS
# ============================================================================

@router.get("/messages/{room_id}", response_model=List[ChatMessage])
async def get_messages(room_id: str):
    """
    Recent messages of a room, oldest first.

    Used by clients opening a chat to hydrate the view before live
    receive-message events arrive. Holds at most HISTORY_LIMIT entries;
    unknown rooms return an empty list.
    """
    return state.message_relay.history(room_id)


@router.post("/messages", response_model=ChatMessage)
async def store_message(request: StoreMessageRequest):
    """
    Add a message to a room's history without broadcasting it.

    Raises:
        HTTPException: 400 if roomId is blank
    """
    try:
        return state.message_relay.record(request.roomId, request.message)
    except InvalidRoomError as e:
        raise HTTPException(status_code=400, detail=str(e))
