"""WebSocket fan-out of record change events to connected clients."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks open client sockets and broadcasts JSON events to all of them."""

    def __init__(self):
        self.clients: Set[WebSocket] = set()

    @property
    def client_count(self) -> int:
        return len(self.clients)

    async def connect(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.clients.add(websocket)
        logger.info(f"WebSocket client connected. Total clients: {self.client_count}")
        await websocket.send_json({
            "type": "connection",
            "message": "Connected to Mower Manager WebSocket",
            "timestamp": _now(),
        })

    def disconnect(self, websocket: WebSocket) -> None:
        if websocket in self.clients:
            self.clients.discard(websocket)
            logger.info(f"WebSocket client disconnected. Total clients: {self.client_count}")

    async def broadcast(self, message: Dict[str, Any]) -> int:
        """Send a message to every client. Returns how many received it."""
        sent = 0
        for websocket in list(self.clients):
            try:
                await websocket.send_json(message)
                sent += 1
            except Exception as e:
                logger.warning(f"Dropping WebSocket client after failed send: {e}")
                self.disconnect(websocket)
        if sent:
            logger.debug(f"Broadcast {message.get('type')} to {sent} clients")
        return sent

    async def broadcast_event(self, event_type: str, data: Optional[Dict[str, Any]] = None) -> int:
        return await self.broadcast({
            "type": event_type,
            "data": data or {},
            "timestamp": _now(),
        })

    async def broadcast_entity_created(self, entity_type: str, entity_id: Any, **extra: Any) -> int:
        """Broadcast '<entity>-created', e.g. 'mower-created'."""
        return await self.broadcast_event(
            f"{entity_type}-created",
            {"id": entity_id, "entityType": entity_type, **extra},
        )


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


manager = ConnectionManager()
