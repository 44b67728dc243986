from fastapi import WebSocket, WebSocketDisconnect, APIRouter
from typing import Optional
import json
import logging

from utils.ws_manager import ws_manager
from model.notification import Notification

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notifications")
async def websocket_notifications(websocket: WebSocket, user_id: str):
    await ws_manager.connect(websocket, user_id)

    # replay whatever the consumer could not push while the user was offline
    undelivered = await Notification.find({
        "user_id": int(user_id),
        "delivered": False
    }).sort("created_at").to_list()

    for notif in undelivered:
        await websocket.send_text(notif.message)
        await Notification.find({"_id": notif.id}).update({"$set": {"delivered": True}})

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)


@router.websocket("/ws/seats/{show_id}")
async def websocket_seats(websocket: WebSocket, show_id: int, user_id: Optional[str] = None):
    """
    Read-only seat map feed. Seat changes are made through /bookings and
    /payments and fan out here as seat_held, seat_booked and seat_released.
    """
    await ws_manager.connect(websocket, user_id)
    await ws_manager.subscribe_show(str(show_id), websocket)

    async def send_error(msg: str):
        await websocket.send_text(json.dumps({"type": "error", "message": msg}))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                await send_error("Invalid JSON")
                continue

            if isinstance(data, dict) and data.get("action") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
                continue

            await send_error("Unsupported action")
    except WebSocketDisconnect:
        logger.debug("Seat map socket for show %s closed", show_id)
        await ws_manager.disconnect(websocket)
