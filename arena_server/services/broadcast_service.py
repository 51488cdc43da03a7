# arena_server/services/broadcast_service.py
"""Fan-out of game events to connected sessions."""

import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class BroadcastService:
    """Delivers messages to one, some or all registered connections.

    Sends are fire-and-forget. A connection that fails to accept a message
    is dropped from the registry; its own receive loop is responsible for
    the disconnect bookkeeping.
    """

    def __init__(self):
        self.connections: Dict[str, object] = {}

    def register(self, session_id: str, connection) -> None:
        self.connections[session_id] = connection

    def unregister(self, session_id: str) -> None:
        self.connections.pop(session_id, None)

    async def send_to(self, session_id: str, message: dict) -> bool:
        """Send a message to a single session."""
        connection = self.connections.get(session_id)
        if connection is None:
            return False
        return await self._send(session_id, connection, message)

    async def broadcast(self, message: dict, exclude: Optional[str] = None) -> None:
        """Send a message to every session except ``exclude``."""
        for session_id, connection in list(self.connections.items()):
            if session_id == exclude:
                continue
            await self._send(session_id, connection, message)

    async def _send(self, session_id: str, connection, message: dict) -> bool:
        try:
            await connection.send_json(message)
        except Exception as e:
            logger.warning("Dropping session %s after failed send: %s", session_id, e)
            # Only drop it if it has not been re-registered meanwhile
            if self.connections.get(session_id) is connection:
                del self.connections[session_id]
            return False
        return True
