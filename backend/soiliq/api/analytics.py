# backend/soiliq/api/analytics.py

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from typing import Literal, Optional
from datetime import datetime

from soiliq.core.auth import get_current_user_id
from soiliq.core.config import settings
from soiliq.core.logger import logger
from soiliq.services import analytics_service
from soiliq.services.demo_data_service import generate_series
from soiliq.services.reading_provider import get_reading_provider
from soiliq.services.statistics_service import PARAMETERS

router = APIRouter(prefix="/analytics", tags=["analytics"])

Period = Literal["7d", "30d", "90d", "1y"]

NO_DATA_DETAIL = "No soil readings found for the selected period"


@router.get("/comprehensive/{farm_id}")
async def comprehensive_analysis(
    farm_id: str,
    period: Period = settings.DEFAULT_ANALYSIS_PERIOD,
    user_id: str = Depends(get_current_user_id),
    provider=Depends(get_reading_provider),
):
    analysis = await analytics_service.get_comprehensive_analysis(provider, user_id, farm_id, period)
    if analysis["status"] == "no_data":
        raise HTTPException(status_code=404, detail=NO_DATA_DETAIL)
    return analysis


@router.get("/comparative")
async def comparative_analysis(
    farm_ids: str = Query(..., description="Comma-separated farm ids"),
    period: Period = settings.DEFAULT_ANALYSIS_PERIOD,
    user_id: str = Depends(get_current_user_id),
    provider=Depends(get_reading_provider),
):
    ids = [f.strip() for f in farm_ids.split(",") if f.strip()]
    if not ids:
        raise HTTPException(status_code=400, detail="At least one farm id is required")
    return await analytics_service.get_comparative_analysis(provider, user_id, ids, period)


@router.get("/historical/{farm_id}")
async def historical_analysis(
    farm_id: str,
    parameter: Optional[str] = None,
    period: Period = settings.DEFAULT_ANALYSIS_PERIOD,
    user_id: str = Depends(get_current_user_id),
    provider=Depends(get_reading_provider),
):
    if parameter is not None and parameter not in PARAMETERS:
        raise HTTPException(status_code=400, detail=f"Unknown parameter: {parameter}")
    result = await analytics_service.get_historical_analysis(provider, user_id, farm_id, parameter, period)
    if result["status"] == "no_data":
        raise HTTPException(status_code=404, detail=NO_DATA_DETAIL)
    return result


@router.get("/export/{farm_id}")
async def export_analysis(
    farm_id: str,
    format: Literal["json", "csv"] = "json",
    period: Period = settings.DEFAULT_ANALYSIS_PERIOD,
    user_id: str = Depends(get_current_user_id),
    provider=Depends(get_reading_provider),
):
    analysis = await analytics_service.get_comprehensive_analysis(provider, user_id, farm_id, period)
    if analysis["status"] == "no_data":
        raise HTTPException(status_code=404, detail=NO_DATA_DETAIL)

    logger.info("Analysis exported", extra={"user_id": user_id, "farm_id": farm_id})
    if format == "csv":
        filename = f"soil-analysis-{farm_id}-{datetime.utcnow():%Y%m%d}.csv"
        return Response(
            content=analytics_service.convert_to_csv(analysis),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return analysis


@router.get("/demo-analysis")
async def demo_analysis(scenario: str = "healthy_wheat"):
    """Comprehensive analysis over a synthetic 30-day series. No auth."""
    try:
        readings = generate_series(scenario=scenario, count=30)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown demo scenario: {scenario}")

    analysis = analytics_service.build_comprehensive_analysis(readings)
    analysis["scenario"] = scenario
    analysis["demo"] = True
    return analysis
