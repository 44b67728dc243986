from typing import Dict, Set
from fastapi import WebSocket
import asyncio
import json
import logging

logger = logging.getLogger(__name__)


class WebSocketManager:
    def __init__(self):
        # user_id -> set(WebSocket)
        self.active_connections: Dict[str, Set[WebSocket]] = {}
        # show_id -> set(WebSocket)
        self.show_subscriptions: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: str | None = None):
        await websocket.accept()
        if user_id is not None:
            async with self._lock:
                self.active_connections.setdefault(str(user_id), set()).add(websocket)

    async def disconnect(self, websocket: WebSocket):
        async with self._lock:
            for uid, sockets in list(self.active_connections.items()):
                sockets.discard(websocket)
                if not sockets:
                    del self.active_connections[uid]
            for show_id, sockets in list(self.show_subscriptions.items()):
                sockets.discard(websocket)
                if not sockets:
                    del self.show_subscriptions[show_id]

    # notifications
    async def send_personal_message(self, user_id: str, message: str) -> bool:
        sockets = list(self.active_connections.get(str(user_id), set()))
        delivered = False
        for ws in sockets:
            try:
                await ws.send_text(message)
                delivered = True
            except Exception:
                logger.debug("Dropping dead socket for user %s", user_id)
                await self.disconnect(ws)
        return delivered

    # seat maps
    async def subscribe_show(self, show_id: str, websocket: WebSocket):
        async with self._lock:
            self.show_subscriptions.setdefault(str(show_id), set()).add(websocket)

    async def broadcast_to_show(self, show_id: str, message_obj) -> bool:
        payload = message_obj if isinstance(message_obj, str) else json.dumps(message_obj)
        sockets = list(self.show_subscriptions.get(str(show_id), set()))
        any_sent = False
        for ws in sockets:
            try:
                await ws.send_text(payload)
                any_sent = True
            except Exception:
                logger.debug("Dropping dead socket for show %s", show_id)
                await self.disconnect(ws)
        return any_sent

ws_manager = WebSocketManager()
