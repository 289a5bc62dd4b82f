# backend/models/models.py
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Optional


class ChatUser(BaseModel):
    """Sender identity as claimed by the client. Display only, never verified."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    image: Optional[str] = None


class MessagePayload(BaseModel):
    user: ChatUser
    text: str
    clientTimestamp: Optional[str] = None


class StoreMessageRequest(BaseModel):
    roomId: str = ""
    message: MessagePayload


class ChatMessage(BaseModel):
    """A relayed message as stored in room history and sent to members."""
    id: str
    roomId: str
    user: ChatUser
    text: str
    clientTimestamp: Optional[str] = None
    serverTimestamp: str


class RoomEvent(BaseModel):
    """Incoming WebSocket frame: {"event": "...", "data": ...}."""
    event: str
    data: Any = None
