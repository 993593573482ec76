# backend/soiliq/services/reading_provider.py

"""
Where analytics read their readings from.

A provider exposes one coroutine:
    list_readings(user_id, farm_id, start, end) -> list of reading dicts
(oldest first, keys as produced by crud.soil_readings.reading_to_dict).
"""

from datetime import datetime
from typing import Dict, Any, List, Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from soiliq.core.config import settings
from soiliq.core.database import get_db
from soiliq.crud import soil_readings as crud
from soiliq.services.demo_data_service import DemoReadingProvider


class DatabaseReadingProvider:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_readings(
        self,
        user_id: str,
        farm_id: Optional[str],
        start: datetime,
        end: datetime,
    ) -> List[Dict[str, Any]]:
        rows = await crud.list_readings_in_range(user_id, farm_id, start, end, self.db)
        return [crud.reading_to_dict(r) for r in rows]


async def get_reading_provider(db: AsyncSession = Depends(get_db)):
    if settings.DEMO_MODE:
        return DemoReadingProvider()
    return DatabaseReadingProvider(db)
