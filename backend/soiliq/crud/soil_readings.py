# backend/soiliq/crud/soil_readings.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone

from soiliq.models.soil_reading import SoilReading
from soiliq.schemas.soil_reading import SoilReadingCreate, SoilReadingUpdate

MEASUREMENT_FIELDS = (
    "ph", "nitrogen", "phosphorus", "potassium",
    "moisture", "organic_matter", "temperature",
)


def reading_to_dict(reading: SoilReading) -> Dict[str, Any]:
    """Plain dict consumed by the analysis services."""
    data = {f: getattr(reading, f) for f in MEASUREMENT_FIELDS}
    data["id"] = reading.id
    data["farm_id"] = reading.farm_id
    data["timestamp"] = reading.reading_date
    return data


def _naive_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# -------------------------------------------------------------
# CREATE / RETRIEVE
# -------------------------------------------------------------
async def create_reading(
    user_id: str,
    payload: SoilReadingCreate,
    analysis: Dict[str, Any],
    db: AsyncSession,
) -> SoilReading:
    fields = payload.model_dump(exclude={"crop_type", "reading_date"})
    reading = SoilReading(
        user_id=user_id,
        health_score=analysis.get("health_score"),
        urgency=analysis.get("urgency"),
        analysis=analysis,
        reading_date=_naive_utc(payload.reading_date),
        **fields,
    )
    db.add(reading)
    await db.commit()
    await db.refresh(reading)
    return reading


async def get_reading(reading_id: str, user_id: str, db: AsyncSession) -> Optional[SoilReading]:
    return await db.scalar(
        select(SoilReading).where(SoilReading.id == reading_id, SoilReading.user_id == user_id)
    )


async def list_readings(
    user_id: str,
    db: AsyncSession,
    farm_id: Optional[str] = None,
    page: int = 1,
    limit: int = 10,
) -> List[SoilReading]:
    stmt = select(SoilReading).where(SoilReading.user_id == user_id)
    if farm_id:
        stmt = stmt.where(SoilReading.farm_id == farm_id)
    stmt = (
        stmt.order_by(SoilReading.reading_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = await db.scalars(stmt)
    return list(rows.all())


async def count_readings(user_id: str, db: AsyncSession, farm_id: Optional[str] = None) -> int:
    stmt = select(func.count(SoilReading.id)).where(SoilReading.user_id == user_id)
    if farm_id:
        stmt = stmt.where(SoilReading.farm_id == farm_id)
    return (await db.scalar(stmt)) or 0


async def list_readings_in_range(
    user_id: str,
    farm_id: Optional[str],
    start: datetime,
    end: datetime,
    db: AsyncSession,
) -> List[SoilReading]:
    """Readings in [start, end], oldest first."""
    stmt = select(SoilReading).where(
        SoilReading.user_id == user_id,
        SoilReading.reading_date >= start,
        SoilReading.reading_date <= end,
    )
    if farm_id:
        stmt = stmt.where(SoilReading.farm_id == farm_id)
    rows = await db.scalars(stmt.order_by(SoilReading.reading_date.asc()))
    return list(rows.all())


# -------------------------------------------------------------
# UPDATE / DELETE
# -------------------------------------------------------------
async def update_reading(db: AsyncSession, reading: SoilReading, payload: SoilReadingUpdate) -> SoilReading:
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(reading, field, value)
    reading.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(reading)
    return reading


async def delete_reading(db: AsyncSession, reading: SoilReading) -> None:
    await db.delete(reading)
    await db.commit()


# -------------------------------------------------------------
# AGGREGATES
# -------------------------------------------------------------
async def stats_overview(user_id: str, db: AsyncSession) -> Dict[str, Any]:
    row = (
        await db.execute(
            select(
                func.count(SoilReading.id),
                func.avg(SoilReading.health_score),
                func.avg(SoilReading.ph),
                func.avg(SoilReading.nitrogen),
                func.avg(SoilReading.phosphorus),
                func.avg(SoilReading.potassium),
                func.avg(SoilReading.moisture),
                func.max(SoilReading.reading_date),
            ).where(SoilReading.user_id == user_id)
        )
    ).one()

    def _round(value):
        return round(float(value), 2) if value is not None else None

    return {
        "total_readings": row[0] or 0,
        "avg_health_score": _round(row[1]),
        "avg_ph": _round(row[2]),
        "avg_nitrogen": _round(row[3]),
        "avg_phosphorus": _round(row[4]),
        "avg_potassium": _round(row[5]),
        "avg_moisture": _round(row[6]),
        "latest_reading": row[7],
    }


async def urgency_breakdown(user_id: str, db: AsyncSession) -> List[Dict[str, Any]]:
    rows = await db.execute(
        select(SoilReading.urgency, func.count(SoilReading.id))
        .where(SoilReading.user_id == user_id)
        .group_by(SoilReading.urgency)
    )
    return [{"urgency": urgency, "count": count} for urgency, count in rows.all()]
