from .farm import Farm
from .soil_reading import SoilReading
from ..core.database import Base

__all__ = [
    "Farm",
    "SoilReading",
    "Base",
]
