# backend/services/rooms.py
from typing import Any, Dict, Set
import asyncio
import logging

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect, WebSocketState

logger = logging.getLogger(__name__)


async def send_json_safe(ws: WebSocket, payload: Dict[str, Any]) -> bool:
    """Send to one socket; returns False instead of raising when it has gone away."""
    if ws.client_state != WebSocketState.CONNECTED:
        return False
    try:
        await ws.send_json(payload)
        return True
    except (WebSocketDisconnect, RuntimeError, OSError) as e:
        # connection is probably closed
        logger.info("dropping send to closed socket: %s", e)
        return False


class RoomConnectionManager:
    """Websocket connections grouped by interview room code (single process)."""

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = {}

    def connect(self, room_code: str, websocket: WebSocket) -> None:
        self.rooms.setdefault(room_code, set()).add(websocket)
        logger.info("joined room %s (%d connections)", room_code, len(self.rooms[room_code]))

    def disconnect(self, room_code: str, websocket: WebSocket) -> None:
        conns = self.rooms.get(room_code)
        if not conns:
            return
        conns.discard(websocket)
        if not conns:
            del self.rooms[room_code]
        logger.info("left room %s", room_code)

    def connections(self, room_code: str) -> Set[WebSocket]:
        return set(self.rooms.get(room_code, ()))

    async def broadcast(self, room_code: str, message: Dict[str, Any]) -> int:
        """Send to every open connection in the room; closed ones are skipped and dropped."""
        conns = list(self.connections(room_code))
        # sends run side by side so one stalled peer does not hold up the rest
        results = await asyncio.gather(
            *(send_json_safe(ws, message) for ws in conns), return_exceptions=True
        )
        delivered = 0
        for ws, ok in zip(conns, results):
            if ok is True:
                delivered += 1
            else:
                if isinstance(ok, BaseException):
                    logger.warning("send to room %s failed: %r", room_code, ok)
                self.disconnect(room_code, ws)
        return delivered

    def clear(self) -> None:
        self.rooms.clear()


room_manager = RoomConnectionManager()
