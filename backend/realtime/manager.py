"""
Registry of live realtime connections.

A connection moves connecting -> open -> closed exactly once. The manager
owns the {connection_id: Connection} map and the session each connection
has joined; every mutation of the map runs under one asyncio.Lock.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import Optional

from fastapi import WebSocket

from models.messages import ServerMessage
from telemetry import emit_event

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Connection:
    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None):
        self.connection_id = connection_id or f"conn_{uuid.uuid4().hex[:12]}"
        self.websocket = websocket
        self.state = ConnectionState.CONNECTING
        self.session_id: Optional[str] = None

    def __repr__(self) -> str:
        return f"<Connection {self.connection_id} {self.state.value} session={self.session_id}>"


class ConnectionManager:
    def __init__(self):
        self._connections: dict[str, Connection] = {}
        self._lock = asyncio.Lock()

    @property
    def count(self) -> int:
        return len(self._connections)

    def watching(self, session_id: str) -> list[Connection]:
        return [c for c in self._connections.values() if c.session_id == session_id]

    async def register(self, websocket: WebSocket) -> Connection:
        connection = Connection(websocket)
        await websocket.accept()
        async with self._lock:
            connection.state = ConnectionState.OPEN
            self._connections[connection.connection_id] = connection
        emit_event("connection_opened", connection_id=connection.connection_id)
        return connection

    async def unregister(self, connection_id: str, reason: str = "closed") -> Optional[Connection]:
        async with self._lock:
            connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None
        connection.state = ConnectionState.CLOSED
        emit_event(
            "connection_closed",
            connection_id=connection_id,
            session_id=connection.session_id,
            reason=reason,
        )
        return connection

    async def join(self, connection: Connection, session_id: str) -> None:
        async with self._lock:
            connection.session_id = session_id

    async def send(self, connection: Connection, message: ServerMessage) -> bool:
        if connection.state is not ConnectionState.OPEN:
            return False
        try:
            await connection.websocket.send_json(message.to_wire())
            return True
        except Exception as exc:  # noqa: BLE001
            logger.warning("Send to %s failed, dropping connection: %s", connection.connection_id, exc)
            await self.unregister(connection.connection_id, reason="send_failed")
            return False

    async def broadcast(self, session_id: str, message: ServerMessage) -> int:
        """Send to every connection joined to session_id. Returns how many received it."""
        delivered = 0
        for connection in self.watching(session_id):
            if await self.send(connection, message):
                delivered += 1
        return delivered

    async def close_all(self, code: int = 1001) -> int:
        async with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()

        for connection in connections:
            connection.state = ConnectionState.CLOSED
            try:
                await connection.websocket.close(code=code)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Close of %s failed: %s", connection.connection_id, exc)
        return len(connections)
