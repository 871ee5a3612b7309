"""WebSocket connection manager pushing snapshots to renderers."""

import logging
import uuid

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Manages renderer WebSocket connections and broadcasts."""

    def __init__(self):
        # Map: client_id -> WebSocket
        self.active_connections: dict[str, WebSocket] = {}

    async def connect(self, websocket: WebSocket) -> str:
        """Accept and register a WebSocket connection. Returns its client id."""
        await websocket.accept()
        client_id = uuid.uuid4().hex[:8]
        self.active_connections[client_id] = websocket
        logger.info(f"WebSocket connected: {client_id}")
        return client_id

    def disconnect(self, client_id: str):
        """Remove a WebSocket connection."""
        if client_id in self.active_connections:
            del self.active_connections[client_id]
            logger.info(f"WebSocket disconnected: {client_id}")

    async def send_personal(self, client_id: str, message: dict):
        """Send message to a specific client."""
        if client_id in self.active_connections:
            try:
                await self.active_connections[client_id].send_json(message)
            except Exception as e:
                logger.error(f"Error sending to {client_id}: {e}")
                self.disconnect(client_id)

    async def broadcast_all(self, message: dict):
        """Broadcast message to all connected clients."""
        disconnected = []

        for client_id, connection in list(self.active_connections.items()):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.error(f"Error broadcasting to {client_id}: {e}")
                disconnected.append(client_id)

        # Clean up disconnected clients
        for client_id in disconnected:
            self.disconnect(client_id)

        if self.active_connections:
            logger.debug(f"Broadcast to {len(self.active_connections)} clients: {message.get('type')}")

    def count(self) -> int:
        """Return number of active connections."""
        return len(self.active_connections)
