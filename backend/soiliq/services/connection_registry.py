# backend/soiliq/services/connection_registry.py

"""
Live socket connections (in-memory, one per user)
- register / unregister on handshake and close
- send_to_user: skips closed sockets, drops the entry when a send fails
- broadcast to every connected user
- health_check for the realtime health endpoint

One registry lives on app.state and is handed to routes by dependency.
"""

import asyncio
from datetime import datetime
from typing import Dict, Any, List

from fastapi import WebSocket
from starlette.requests import HTTPConnection
from starlette.websockets import WebSocketState

from soiliq.core.logger import logger


class ConnectionRegistry:
    def __init__(self):
        self._connections: Dict[str, WebSocket] = {}
        self._lock = asyncio.Lock()
        self._started_at = datetime.utcnow()

    async def register(self, user_id: str, websocket: WebSocket) -> None:
        async with self._lock:
            self._connections[user_id] = websocket
        logger.info("WebSocket connected", extra={"user_id": user_id})

    async def unregister(self, user_id: str, websocket: WebSocket = None) -> None:
        async with self._lock:
            current = self._connections.get(user_id)
            # a newer socket for the same user stays registered
            if current is not None and (websocket is None or current is websocket):
                del self._connections[user_id]
        logger.info("WebSocket disconnected", extra={"user_id": user_id})

    async def send_to_user(self, user_id: str, message: Dict[str, Any]) -> bool:
        async with self._lock:
            websocket = self._connections.get(user_id)
        if websocket is None:
            return False

        if websocket.application_state != WebSocketState.CONNECTED:
            await self.unregister(user_id, websocket)
            return False

        try:
            await websocket.send_json(message)
            return True
        except Exception:
            logger.warning("WebSocket send failed, dropping connection", extra={"user_id": user_id})
            await self.unregister(user_id, websocket)
            return False

    async def broadcast(self, message: Dict[str, Any]) -> int:
        delivered = 0
        for user_id in await self.connected_users():
            if await self.send_to_user(user_id, message):
                delivered += 1
        return delivered

    async def connected_users(self) -> List[str]:
        async with self._lock:
            return list(self._connections.keys())

    async def is_connected(self, user_id: str) -> bool:
        async with self._lock:
            return user_id in self._connections

    def count(self) -> int:
        return len(self._connections)

    def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "connected_clients": self.count(),
            "uptime_seconds": round((datetime.utcnow() - self._started_at).total_seconds(), 1),
            "timestamp": datetime.utcnow().isoformat(),
        }


def get_connection_registry(connection: HTTPConnection) -> ConnectionRegistry:
    return connection.app.state.connection_registry
