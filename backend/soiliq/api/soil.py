# backend/soiliq/api/soil.py

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime, timedelta
import math

from soiliq.core.auth import get_current_user_id
from soiliq.core.database import get_db
from soiliq.core.logger import logger
from soiliq.core.utils_logging import log_user_action
from soiliq.crud import farms as farm_crud
from soiliq.crud import soil_readings as crud
from soiliq.schemas.soil_reading import (
    SoilAnalyzeRequest,
    SoilReading,
    SoilReadingCreate,
    SoilReadingPage,
    SoilReadingUpdate,
)
from soiliq.services import insight_service
from soiliq.services import statistics_service as stats
from soiliq.services.scoring_service import calculate_health_score, score_breakdown
from soiliq.services.notification_service import SoilEventNotifier, get_notifier
from soiliq.services.reading_provider import get_reading_provider

router = APIRouter(prefix="/soil", tags=["soil"])


def _serialize(reading) -> dict:
    return SoilReading.model_validate(reading).model_dump(mode="json")


async def _latest_analysis(latest: dict, crop_type: Optional[str], user_id: str, db: AsyncSession) -> dict:
    """Stored analysis of the latest reading unless a crop override is asked for."""
    if crop_type is None:
        stored = await crud.get_reading(latest["id"], user_id, db) if latest.get("id") else None
        if stored is not None and stored.analysis:
            return stored.analysis
        farm = await farm_crud.get_farm(latest["farm_id"], user_id, db) if latest.get("farm_id") else None
        if farm is not None:
            crop_type = farm.crop_type
    return insight_service.analyze(latest, crop_type=crop_type)


async def _get_owned_reading(reading_id: str, user_id: str, db: AsyncSession):
    reading = await crud.get_reading(reading_id, user_id, db)
    if not reading:
        raise HTTPException(status_code=404, detail="Soil reading not found")
    return reading


# ===========================
# READINGS CRUD
# ===========================

@router.post("/readings", response_model=SoilReading, status_code=201)
async def create_soil_reading(
    payload: SoilReadingCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: SoilEventNotifier = Depends(get_notifier),
):
    farm = await farm_crud.get_farm(payload.farm_id, user_id, db)
    if not farm:
        raise HTTPException(status_code=404, detail="Farm not found")
    if not farm.is_active:
        raise HTTPException(status_code=400, detail="Farm is inactive")

    measurements = payload.model_dump(include=set(crud.MEASUREMENT_FIELDS))
    analysis = insight_service.analyze(measurements, crop_type=payload.crop_type or farm.crop_type)
    reading = await crud.create_reading(user_id, payload, analysis, db)
    log_user_action(user_id, "create_soil_reading", farm_id=farm.id, reading_id=reading.id)

    data = _serialize(reading)
    await notifier.notify_reading_change(user_id, "created", reading=data)
    await notifier.health_score_updated(user_id, farm.id, reading.health_score)
    if analysis["urgency"] == "high":
        await notifier.alert(user_id, {
            "farm_id": farm.id,
            "reading_id": reading.id,
            "urgency": analysis["urgency"],
            "health_score": analysis["health_score"],
            "insights": analysis["insights"],
        })

    return reading


@router.get("/readings", response_model=SoilReadingPage)
async def list_soil_readings(
    farm_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    readings = await crud.list_readings(user_id, db, farm_id=farm_id, page=page, limit=limit)
    total = await crud.count_readings(user_id, db, farm_id=farm_id)
    return {
        "readings": readings,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
        "current_page": page,
    }


@router.get("/readings/{reading_id}", response_model=SoilReading)
async def get_soil_reading(
    reading_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await _get_owned_reading(reading_id, user_id, db)


@router.patch("/readings/{reading_id}", response_model=SoilReading)
async def update_soil_reading(
    reading_id: str,
    payload: SoilReadingUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: SoilEventNotifier = Depends(get_notifier),
):
    reading = await _get_owned_reading(reading_id, user_id, db)
    reading = await crud.update_reading(db, reading, payload)
    log_user_action(user_id, "update_soil_reading", reading_id=reading.id)
    await notifier.notify_reading_change(user_id, "updated", reading=_serialize(reading))
    return reading


@router.delete("/readings/{reading_id}")
async def delete_soil_reading(
    reading_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    notifier: SoilEventNotifier = Depends(get_notifier),
):
    reading = await _get_owned_reading(reading_id, user_id, db)
    await crud.delete_reading(db, reading)
    log_user_action(user_id, "delete_soil_reading", reading_id=reading_id)
    await notifier.notify_reading_change(user_id, "deleted", reading_id=reading_id)
    return {"ok": True, "id": reading_id}


# ===========================
# ANALYSIS
# ===========================

@router.post("/analyze")
async def analyze_soil(
    payload: SoilAnalyzeRequest,
    user_id: str = Depends(get_current_user_id),
):
    """Analyze measurements without storing them."""
    measurements = payload.model_dump(exclude={"crop_type"})
    analysis = insight_service.analyze(measurements, crop_type=payload.crop_type)
    analysis["score_breakdown"] = score_breakdown(measurements)
    return analysis


@router.get("/analysis")
async def get_soil_analysis(
    farm_id: Optional[str] = None,
    days: int = Query(30, ge=1, le=365),
    crop_type: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
    provider=Depends(get_reading_provider),
):
    end = datetime.utcnow()
    start = end - timedelta(days=days)
    readings = await provider.list_readings(user_id, farm_id, start, end)
    if not readings:
        raise HTTPException(status_code=404, detail="No soil readings found for analysis")

    ordered = stats.sort_readings(readings)
    latest = ordered[-1]
    summary = stats.summarize(ordered)
    history = []
    for reading in ordered:
        history.append({
            "date": reading.get("timestamp"),
            "ph": reading.get("ph"),
            "nitrogen": reading.get("nitrogen"),
            "phosphorus": reading.get("phosphorus"),
            "potassium": reading.get("potassium"),
            "moisture": reading.get("moisture"),
            "health_score": calculate_health_score(reading),
        })

    logger.info("Soil analysis served", extra={"user_id": user_id, "farm_id": farm_id})
    return {
        "latest_analysis": await _latest_analysis(latest, crop_type, user_id, db),
        "trends": history,
        "stats": {
            "average_health_score": round(
                sum(h["health_score"] for h in history) / len(history), 2
            ),
            "window_health_score": summary["health_score"],
            "total_readings": summary["reading_count"],
            "date_range": {"start": start, "end": end},
        },
    }


@router.get("/stats")
async def get_soil_stats(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return {
        "overview": await crud.stats_overview(user_id, db),
        "urgency_breakdown": await crud.urgency_breakdown(user_id, db),
    }
