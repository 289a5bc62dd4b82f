# backend/services/connection_manager.py

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Iterable, Optional

from fastapi import WebSocket

from services.room_registry import RoomRegistry

logger = logging.getLogger(__name__)


def frame(event: str, data: Any) -> Dict[str, Any]:
    """Wire envelope for every server -> client message."""
    return {"event": event, "data": data}


class Connection:
    """
    One live client socket.

    Attributes:
        id: Server-assigned id, unique per live socket
        user_id: Id the client claimed in the handshake (logging only)
        websocket: The underlying transport
        outbox: Frames waiting to be written, in send order
    """

    def __init__(self, websocket: WebSocket, user_id: str) -> None:
        self.id = uuid.uuid4().hex
        self.user_id = user_id
        self.websocket = websocket
        self.outbox: asyncio.Queue = asyncio.Queue()
        self.writer: Optional[asyncio.Task] = None


# ============================================================================
# WEBSOCKET CONNECTION MANAGER
# ============================================================================

class ConnectionManager:
    """
    Owns every live WebSocket connection.

    Each connection gets its own outbox queue and a writer task that drains
    it. send() only enqueues, so:
        - the order frames are handed to send() is the order a client sees
          them, which keeps each room FIFO for every member
        - a slow or stuck client only grows its own outbox; other members
          of the same broadcast are not held up

    A failed write tears the connection down through disconnect(), which
    also removes it from the room registry so no further broadcast targets
    a dead socket, and then closes the socket so its receive loop ends.

    Data Structures:
        connections: Maps connection id -> Connection
    """

    def __init__(self, room_registry: RoomRegistry) -> None:
        self.connections: Dict[str, Connection] = {}
        self.room_registry = room_registry

    def __len__(self) -> int:
        return len(self.connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self.connections

    def get(self, connection_id: str) -> Optional[Connection]:
        return self.connections.get(connection_id)

    async def connect(self, websocket: WebSocket, user_id: str = "unknown") -> Connection:
        """
        Accept a new WebSocket connection and start its writer.

        Note:
            The connection is not in any room yet. The client has to send
            "join-room" before it can send messages.
        """
        await websocket.accept()

        connection = Connection(websocket, user_id)
        self.connections[connection.id] = connection
        connection.writer = asyncio.create_task(self._writer(connection))

        logger.info("🔌 %s connected (user %s). Total: %d", connection.id, user_id, len(self.connections))
        return connection

    def disconnect(self, connection_id: str) -> None:
        """
        Tear a connection down. Safe to call more than once.

        Cleanup:
            1. Remove it from its room
            2. Stop the writer and drop unsent frames
            3. Forget the connection
        """
        connection = self.connections.pop(connection_id, None)
        if connection is None:
            return

        self.room_registry.disconnect(connection_id)

        if connection.writer is not None:
            connection.writer.cancel()
            connection.writer = None
        self._discard_pending(connection)

        logger.info("✗ %s disconnected (user %s). Total: %d", connection_id, connection.user_id, len(self.connections))

    def send(self, connection_id: str, payload: Dict[str, Any]) -> bool:
        """
        Queue a frame for one connection without waiting for the network.

        Returns:
            False if the connection is gone, True once the frame is queued
        """
        connection = self.connections.get(connection_id)
        if connection is None:
            return False
        connection.outbox.put_nowait(payload)
        return True

    def broadcast(
        self,
        connection_ids: Iterable[str],
        payload: Dict[str, Any],
        exclude: Optional[str] = None,
    ) -> int:
        """
        Queue the same frame for several connections.

        Returns:
            Number of connections the frame was queued for
        """
        delivered = 0
        for connection_id in connection_ids:
            if connection_id == exclude:
                continue
            if self.send(connection_id, payload):
                delivered += 1
        return delivered

    async def drain(self, connection_id: Optional[str] = None) -> None:
        """Wait until queued frames are written (one connection, or all)."""
        if connection_id is not None:
            connection = self.connections.get(connection_id)
            targets = [connection] if connection else []
        else:
            targets = list(self.connections.values())

        await asyncio.gather(*(c.outbox.join() for c in targets))

    async def close_all(self) -> None:
        """Disconnect everyone. Called on application shutdown."""
        for connection_id, connection in list(self.connections.items()):
            self.disconnect(connection_id)
            await self._close_socket(connection, code=1001)

    async def _writer(self, connection: Connection) -> None:
        while True:
            payload = await connection.outbox.get()
            try:
                await connection.websocket.send_json(payload)
            except asyncio.CancelledError:
                connection.outbox.task_done()
                raise
            except Exception as e:
                logger.error("Send error to %s: %s", connection.id, e)
                # This task is the writer; don't let disconnect() cancel it.
                connection.writer = None
                self.disconnect(connection.id)
                # Ends the endpoint's receive loop for this socket.
                await self._close_socket(connection, code=1011)
                connection.outbox.task_done()
                return
            connection.outbox.task_done()

    @staticmethod
    async def _close_socket(connection: Connection, code: int) -> None:
        try:
            await connection.websocket.close(code=code)
        except Exception as e:
            logger.debug("Close for %s failed: %s", connection.id, e)

    @staticmethod
    def _discard_pending(connection: Connection) -> None:
        while True:
            try:
                connection.outbox.get_nowait()
            except asyncio.QueueEmpty:
                return
            connection.outbox.task_done()
