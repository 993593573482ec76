# backend/soiliq/services/notification_service.py

"""
Soil event push notifications
- build_event: {type, data, timestamp} envelope for one of EVENT_TYPES
- SoilEventNotifier: typed senders on top of the ConnectionRegistry
  (reading added / updated / deleted, health score, alert, notification)

Delivery is best effort: failures are logged and never reach the caller.
"""

from datetime import datetime
from typing import Dict, Any, Optional

from fastapi import Depends

from soiliq.core.logger import logger
from soiliq.services.connection_registry import ConnectionRegistry, get_connection_registry

EVENT_TYPES = (
    "soil_reading_added",
    "soil_reading_updated",
    "soil_reading_deleted",
    "health_score_updated",
    "alert",
    "notification",
)


def _now_iso() -> str:
    return datetime.utcnow().isoformat()


def build_event(event_type: str, data: Dict[str, Any]) -> Dict[str, Any]:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    return {"type": event_type, "data": data, "timestamp": _now_iso()}


class SoilEventNotifier:
    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def _send(self, user_id: str, event_type: str, data: Dict[str, Any]) -> bool:
        event = build_event(event_type, data)
        try:
            delivered = await self.registry.send_to_user(user_id, event)
        except Exception:
            logger.exception(
                "Failed to push soil event",
                extra={"user_id": user_id, "event_type": event_type},
            )
            return False
        if delivered:
            logger.debug("Soil event pushed", extra={"user_id": user_id, "event_type": event_type})
        return delivered

    async def soil_reading_added(self, user_id: str, reading: Dict[str, Any]) -> bool:
        return await self._send(user_id, "soil_reading_added", reading)

    async def soil_reading_updated(self, user_id: str, reading: Dict[str, Any]) -> bool:
        return await self._send(user_id, "soil_reading_updated", reading)

    async def soil_reading_deleted(self, user_id: str, reading_id: str) -> bool:
        return await self._send(user_id, "soil_reading_deleted", {"id": reading_id})

    async def health_score_updated(self, user_id: str, farm_id: str, health_score: int) -> bool:
        return await self._send(
            user_id, "health_score_updated", {"farm_id": farm_id, "health_score": health_score}
        )

    async def alert(self, user_id: str, alert: Dict[str, Any]) -> bool:
        return await self._send(user_id, "alert", alert)

    async def notification(self, user_id: str, notification: Dict[str, Any]) -> bool:
        return await self._send(user_id, "notification", notification)

    async def notify_reading_change(
        self,
        user_id: str,
        action: str,
        reading: Optional[Dict[str, Any]] = None,
        reading_id: Optional[str] = None,
    ) -> bool:
        """Dispatch by CRUD action: created / updated / deleted."""
        if action == "created":
            return await self.soil_reading_added(user_id, reading or {})
        if action == "updated":
            return await self.soil_reading_updated(user_id, reading or {})
        if action == "deleted":
            return await self.soil_reading_deleted(user_id, reading_id or (reading or {}).get("id"))
        raise ValueError(f"Unknown reading action: {action}")


def get_notifier(registry: ConnectionRegistry = Depends(get_connection_registry)) -> SoilEventNotifier:
    return SoilEventNotifier(registry)
