# backend/soiliq/api/farms.py

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from soiliq.core.auth import get_current_user_id
from soiliq.core.database import get_db
from soiliq.core.utils_logging import log_user_action
from soiliq.crud import farms as crud
from soiliq.schemas.farm import Farm, FarmCreate, FarmUpdate

router = APIRouter(prefix="/farms", tags=["farms"])


async def _get_owned_farm(farm_id: str, user_id: str, db: AsyncSession):
    farm = await crud.get_farm(farm_id, user_id, db)
    if not farm:
        raise HTTPException(status_code=404, detail="Farm not found")
    return farm


@router.post("/", response_model=Farm, status_code=201)
async def create_farm(
    payload: FarmCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    farm = await crud.create_farm(user_id, payload, db)
    log_user_action(user_id, "create_farm", farm_id=farm.id)
    return farm


@router.get("/", response_model=List[Farm])
async def list_farms(
    include_inactive: bool = False,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await crud.list_farms(user_id, db, include_inactive=include_inactive)


@router.get("/{farm_id}", response_model=Farm)
async def get_farm(
    farm_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await _get_owned_farm(farm_id, user_id, db)


@router.patch("/{farm_id}", response_model=Farm)
async def update_farm(
    farm_id: str,
    payload: FarmUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    farm = await _get_owned_farm(farm_id, user_id, db)
    farm = await crud.update_farm(db, farm, payload)
    log_user_action(user_id, "update_farm", farm_id=farm.id)
    return farm


@router.delete("/{farm_id}")
async def delete_farm(
    farm_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    # soft delete: readings stay available for history
    farm = await _get_owned_farm(farm_id, user_id, db)
    await crud.deactivate_farm(db, farm)
    log_user_action(user_id, "deactivate_farm", farm_id=farm.id)
    return {"ok": True, "id": farm.id, "is_active": False}
