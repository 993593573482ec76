# backend/soiliq/schemas/farm.py

from typing import Optional, Literal
from datetime import datetime
from pydantic import BaseModel, Field


SoilType = Literal["sandy", "clay", "loamy", "silty", "peat", "chalky", "rocky"]
IrrigationType = Literal["rainfed", "drip", "sprinkler", "flood", "none"]


class FarmBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    crop_type: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    soil_type: Optional[SoilType] = None
    irrigation: Optional[IrrigationType] = None
    size_value: Optional[float] = Field(None, ge=0)
    size_unit: Literal["acres", "hectares"] = "acres"


class FarmCreate(FarmBase):
    pass


class FarmUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    crop_type: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    soil_type: Optional[SoilType] = None
    irrigation: Optional[IrrigationType] = None
    size_value: Optional[float] = Field(None, ge=0)
    size_unit: Optional[Literal["acres", "hectares"]] = None
    is_active: Optional[bool] = None


class Farm(FarmBase):
    id: str
    owner_id: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
