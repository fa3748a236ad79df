"""Events API - Live record change notifications via WebSocket."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from mower_manager.services.websocket_service import manager

logger = logging.getLogger(__name__)
router = APIRouter(tags=["events"])


@router.websocket("/ws")
async def events_ws(websocket: WebSocket):
    """Push '<entity>-created' and 'backup-restored' events to the client."""
    await manager.connect(websocket)
    try:
        while True:
            # Clients only listen; anything they send is logged and ignored
            message = await websocket.receive_text()
            logger.debug(f"Received WebSocket message: {message}")
    except (WebSocketDisconnect, RuntimeError):
        pass
    finally:
        manager.disconnect(websocket)
