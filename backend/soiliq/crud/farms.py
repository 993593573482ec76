# backend/soiliq/crud/farms.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List
import datetime

from soiliq.models.farm import Farm
from soiliq.schemas.farm import FarmCreate, FarmUpdate


async def create_farm(owner_id: str, payload: FarmCreate, db: AsyncSession) -> Farm:
    farm = Farm(owner_id=owner_id, **payload.model_dump())
    db.add(farm)
    await db.commit()
    await db.refresh(farm)
    return farm


async def get_farm(farm_id: str, owner_id: str, db: AsyncSession) -> Optional[Farm]:
    return await db.scalar(
        select(Farm).where(Farm.id == farm_id, Farm.owner_id == owner_id)
    )


async def list_farms(owner_id: str, db: AsyncSession, include_inactive: bool = False) -> List[Farm]:
    stmt = select(Farm).where(Farm.owner_id == owner_id)
    if not include_inactive:
        stmt = stmt.where(Farm.is_active.is_(True))
    rows = await db.scalars(stmt.order_by(Farm.created_at))
    return list(rows.all())


async def update_farm(db: AsyncSession, farm: Farm, payload: FarmUpdate) -> Farm:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(farm, field, value)
    farm.updated_at = datetime.datetime.utcnow()
    await db.commit()
    await db.refresh(farm)
    return farm


async def deactivate_farm(db: AsyncSession, farm: Farm) -> Farm:
    farm.is_active = False
    farm.updated_at = datetime.datetime.utcnow()
    await db.commit()
    await db.refresh(farm)
    return farm
