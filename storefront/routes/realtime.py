import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlmodel import Session

from storefront.database import get_session
from storefront.services.realtime import ADMIN_ROOM, manager, user_room
from storefront.utils.token import user_from_token

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, session: Session = Depends(get_session)):
    """
    Clients send {"event": "authenticate", "data": {"token": ...}} to join
    their own room, and admins then send {"event": "joinAdminRoom"}.
    """
    await manager.connect(websocket)
    user = None

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json({"event": "error", "data": {"message": "Invalid message"}})
                continue

            event = message.get("event")
            data = message.get("data") or {}

            if event == "authenticate":
                user = user_from_token(session, data.get("token"))
                if user is None:
                    await websocket.send_json({"event": "error", "data": {"message": "Authentication failed"}})
                    continue
                manager.join(websocket, user_room(user.id))
                await websocket.send_json({"event": "authenticated", "data": {"user_id": user.id}})

            elif event == "joinAdminRoom":
                if user is None or user.role != "admin":
                    await websocket.send_json({"event": "error", "data": {"message": "Admin access required"}})
                    continue
                manager.join(websocket, ADMIN_ROOM)
                await websocket.send_json({"event": "joinedAdminRoom", "data": {}})

            else:
                logger.debug(f"Ignoring websocket event {event}")

    except WebSocketDisconnect:
        manager.disconnect(websocket)
