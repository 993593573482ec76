# backend/soiliq/models/farm.py

from sqlalchemy import Column, String, Float, Boolean, DateTime
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime

from soiliq.core.database import Base


def gen_uuid():
    return str(uuid.uuid4())


class Farm(Base):
    __tablename__ = "farms"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    crop_type = Column(String, nullable=True)

    location = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    soil_type = Column(String, nullable=True)      # sandy, clay, loamy, silty, peat, chalky, rocky
    irrigation = Column(String, nullable=True)     # rainfed, drip, sprinkler, flood, none
    size_value = Column(Float, nullable=True)
    size_unit = Column(String, default="acres")    # acres, hectares

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    readings = relationship(
        "SoilReading",
        back_populates="farm",
        cascade="all, delete-orphan",
    )
