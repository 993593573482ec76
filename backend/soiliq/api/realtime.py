# backend/soiliq/api/realtime.py

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, HTTPException, status
from typing import Optional, Dict, Any
from datetime import datetime
import json

from soiliq.core.auth import verify_token, user_id_from_payload
from soiliq.core.database import AsyncSessionLocal
from soiliq.core.logger import logger
from soiliq.crud import soil_readings as crud
from soiliq.schemas.soil_reading import SoilReading
from soiliq.services.connection_registry import ConnectionRegistry, get_connection_registry

router = APIRouter(tags=["realtime"])

CURRENT_DATA_LIMIT = 10
INVALID_FORMAT = {"type": "error", "message": "Invalid message format"}


def _now_iso() -> str:
    return datetime.utcnow().isoformat()


def extract_token(websocket: WebSocket) -> Optional[str]:
    """Token from ?token=... first, then the Authorization header."""
    token = websocket.query_params.get("token")
    if token:
        return token
    auth_header = websocket.headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[len("Bearer "):]
    return None


def authenticate(websocket: WebSocket) -> Optional[str]:
    token = extract_token(websocket)
    if not token:
        return None
    try:
        payload = verify_token(token)
    except HTTPException:
        return None
    return user_id_from_payload(payload)


# ===========================
# MESSAGE HANDLERS
# ===========================

async def current_soil_readings(user_id: str, farm_id: Optional[str]) -> Dict[str, Any]:
    async with AsyncSessionLocal() as db:
        rows = await crud.list_readings(user_id, db, farm_id=farm_id, limit=CURRENT_DATA_LIMIT)
    return {
        "type": "current_soil_readings",
        "farm_id": farm_id,
        "data": [SoilReading.model_validate(r).model_dump(mode="json") for r in rows],
        "timestamp": _now_iso(),
    }


async def handle_message(user_id: str, raw: str) -> Optional[Dict[str, Any]]:
    """Reply for one client message, or None when there is nothing to send."""
    try:
        message = json.loads(raw)
    except json.JSONDecodeError:
        return INVALID_FORMAT
    if not isinstance(message, dict):
        return INVALID_FORMAT

    msg_type = message.get("type")
    farm_id = message.get("farm_id")

    if msg_type == "ping":
        return {"type": "pong", "timestamp": _now_iso()}

    if msg_type == "subscribe_soil_updates":
        logger.info("Subscribed to soil updates", extra={"user_id": user_id, "farm_id": farm_id})
        return {
            "type": "subscription_confirmed",
            "resource": "soil_updates",
            "farm_id": farm_id,
            "timestamp": _now_iso(),
        }

    if msg_type == "unsubscribe_soil_updates":
        logger.info("Unsubscribed from soil updates", extra={"user_id": user_id, "farm_id": farm_id})
        return {
            "type": "unsubscription_confirmed",
            "resource": "soil_updates",
            "farm_id": farm_id,
            "timestamp": _now_iso(),
        }

    if msg_type == "request_current_data":
        if message.get("resource") != "soil_readings":
            return None
        try:
            return await current_soil_readings(user_id, farm_id)
        except Exception:
            logger.exception("Failed to fetch current data", extra={"user_id": user_id})
            return {"type": "error", "message": "Failed to fetch current data"}

    logger.info(f"Unknown message type: {msg_type}", extra={"user_id": user_id})
    return None


# ===========================
# ENDPOINTS
# ===========================

@router.websocket("/ws")
async def soil_updates_socket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    user_id = authenticate(websocket)
    if not user_id:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    await registry.register(user_id, websocket)
    await websocket.send_json({
        "type": "connection_established",
        "message": "WebSocket connection established",
        "user_id": user_id,
        "timestamp": _now_iso(),
    })

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # binary frames carry no JSON text
            raw = message.get("text")
            reply = INVALID_FORMAT if raw is None else await handle_message(user_id, raw)
            if reply is not None:
                await websocket.send_json(reply)
    except WebSocketDisconnect:
        pass
    finally:
        await registry.unregister(user_id, websocket)


@router.get("/realtime/health")
async def realtime_health(registry: ConnectionRegistry = Depends(get_connection_registry)):
    return registry.health_check()
