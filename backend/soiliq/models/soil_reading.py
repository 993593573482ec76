# backend/soiliq/models/soil_reading.py

from sqlalchemy import Column, String, Integer, Float, ForeignKey, DateTime, Text, JSON
from sqlalchemy.orm import relationship
from datetime import datetime

from soiliq.core.database import Base
from soiliq.models.farm import gen_uuid


class SoilReading(Base):
    __tablename__ = "soil_readings"

    id = Column(String(36), primary_key=True, default=gen_uuid)
    farm_id = Column(String(36), ForeignKey("farms.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)

    # measurements (immutable once scored)
    ph = Column(Float, nullable=False)
    nitrogen = Column(Float, nullable=False)
    phosphorus = Column(Float, nullable=False)
    potassium = Column(Float, nullable=False)
    moisture = Column(Float, nullable=False)
    organic_matter = Column(Float, nullable=True)
    temperature = Column(Float, nullable=True)

    # annotations
    texture = Column(String, nullable=True)
    location = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    # analysis snapshot computed at creation
    health_score = Column(Integer, nullable=True)
    urgency = Column(String, nullable=True)        # low, medium, high
    analysis = Column(JSON, nullable=True)

    reading_date = Column(DateTime, default=datetime.utcnow, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    farm = relationship("Farm", back_populates="readings")
