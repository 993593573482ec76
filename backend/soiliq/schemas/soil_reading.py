# backend/soiliq/schemas/soil_reading.py

from typing import Optional, Dict, Any, List
from datetime import datetime
from pydantic import BaseModel, Field


# ============================================================
# MEASUREMENTS (validation ranges live here, not in the engines)
# ============================================================

class SoilMeasurements(BaseModel):
    ph: float = Field(..., ge=0, le=14)
    nitrogen: float = Field(..., ge=0, le=200, description="ppm")
    phosphorus: float = Field(..., ge=0, le=200, description="ppm")
    potassium: float = Field(..., ge=0, le=200, description="ppm")
    moisture: float = Field(..., ge=0, le=100, description="%")
    organic_matter: Optional[float] = Field(None, ge=0, le=20, description="%")
    temperature: Optional[float] = Field(None, ge=-10, le=50, description="degrees C")


class SoilAnalyzeRequest(SoilMeasurements):
    crop_type: Optional[str] = None


class SoilReadingCreate(SoilMeasurements):
    farm_id: str
    texture: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    crop_type: Optional[str] = None
    reading_date: Optional[datetime] = None


class SoilReadingUpdate(BaseModel):
    """Only annotations are editable; measurements are immutable once scored."""
    texture: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None


class SoilReading(SoilMeasurements):
    id: str
    farm_id: str
    user_id: str
    texture: Optional[str] = None
    location: Optional[str] = None
    notes: Optional[str] = None
    health_score: Optional[int] = None
    urgency: Optional[str] = None
    analysis: Optional[Dict[str, Any]] = None
    reading_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SoilReadingPage(BaseModel):
    readings: List[SoilReading]
    total: int
    total_pages: int
    current_page: int
