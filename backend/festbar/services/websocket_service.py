"""
WebSocket Real-time Service
Live snapshots for the bar board, waiter devices, statistics and banners
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import WebSocket, status

logger = logging.getLogger(__name__)


class Channel(str, Enum):
    """Subscribable subtrees of the shared state"""
    BAR = "bar"
    ORDERS = "orders"
    STATISTICS = "statistics"
    BROADCAST = "broadcast"
    SETTINGS = "settings"


class ConnectionManager:
    """Manages WebSocket connections per channel."""

    # Configuration
    MAX_CONNECTIONS_PER_CHANNEL = 500

    def __init__(self):
        self.active_connections: Dict[str, List[WebSocket]] = {}
        self.connection_metadata: Dict[int, Dict[str, Any]] = {}

    async def connect(self, websocket: WebSocket, channel: str, client_name: Optional[str] = None) -> bool:
        """Accept a WebSocket on a channel.

        Returns True if connection was successful, False if rejected.
        """
        if len(self.active_connections.get(channel, [])) >= self.MAX_CONNECTIONS_PER_CHANNEL:
            logger.warning(f"WebSocket connection rejected: channel '{channel}' at capacity")
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return False

        await websocket.accept()
        self.active_connections.setdefault(channel, []).append(websocket)
        self.connection_metadata[id(websocket)] = {
            "connected_at": datetime.now(timezone.utc),
            "client_name": client_name,
            "channel": channel,
            "last_ping": datetime.now(timezone.utc),
        }

        logger.debug(f"WebSocket connected to channel '{channel}', client={client_name}")
        return True

    def disconnect(self, websocket: WebSocket, channel: str):
        """Disconnect a WebSocket from a channel."""
        if websocket in self.active_connections.get(channel, []):
            self.active_connections[channel].remove(websocket)
        self.connection_metadata.pop(id(websocket), None)
        logger.debug(f"WebSocket disconnected from channel '{channel}'")

    def update_ping(self, websocket: WebSocket):
        """Update last ping time for a connection."""
        metadata = self.connection_metadata.get(id(websocket))
        if metadata:
            metadata["last_ping"] = datetime.now(timezone.utc)

    def has_subscribers(self, channel: str) -> bool:
        return bool(self.active_connections.get(channel))

    async def broadcast(self, message: Dict[str, Any], channel: str):
        """Send a message to all connections in a channel."""
        disconnected = []
        for connection in list(self.active_connections.get(channel, [])):
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.debug(f"WebSocket send failed: {e}")
                disconnected.append(connection)

        # Clean up disconnected clients
        for conn in disconnected:
            self.disconnect(conn, channel)

    async def close_channel(self, channel: str, code: int = status.WS_1008_POLICY_VIOLATION):
        """Close every connection on a channel; clients must reconnect."""
        for connection in list(self.active_connections.get(channel, [])):
            try:
                await connection.close(code=code)
            except Exception as e:
                logger.debug(f"WebSocket close failed: {e}")
            self.disconnect(connection, channel)
        logger.info(f"Closed all connections on channel '{channel}'")

    def get_connection_count(self, channel: Optional[str] = None) -> int:
        """Get the number of active connections."""
        if channel:
            return len(self.active_connections.get(channel, []))
        return sum(len(conns) for conns in self.active_connections.values())


def snapshot_message(channel: str, data: Any) -> Dict[str, Any]:
    """Envelope for a whole-subtree snapshot."""
    return {
        "type": "snapshot",
        "channel": channel,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


# Global connection manager instance
manager = ConnectionManager()
