import asyncio
import json
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket

logger = logging.getLogger(__name__)

ADMIN_ROOM = "admin_room"


def user_room(user_id) -> str:
    return f"user_{user_id}"


class ConnectionManager:
    """
    Room based websocket broadcaster.

    Sync request handlers run in the threadpool, so emit() schedules the
    send onto the loop the sockets were accepted on.
    """

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.loop: Optional[asyncio.AbstractEventLoop] = None

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.loop = asyncio.get_running_loop()

    def join(self, websocket: WebSocket, room: str):
        self.rooms[room].add(websocket)
        logger.info(f"Socket joined {room}")

    def disconnect(self, websocket: WebSocket):
        for members in self.rooms.values():
            members.discard(websocket)

    async def broadcast(self, room: str, event: str, data: Any):
        message = json.dumps(
            {"event": event, "data": data, "timestamp": datetime.utcnow().isoformat()},
            default=str,
        )
        disconnected = []
        for ws in list(self.rooms.get(room, ())):
            try:
                await ws.send_text(message)
            except Exception:
                disconnected.append(ws)
        for ws in disconnected:
            self.disconnect(ws)

    def emit(self, room: str, event: str, data: Any) -> bool:
        """Fire and forget from sync code. Returns False when nobody is listening."""
        if not self.rooms.get(room) or self.loop is None or self.loop.is_closed():
            return False

        asyncio.run_coroutine_threadsafe(self.broadcast(room, event, data), self.loop)
        return True


manager = ConnectionManager()
