# backend/soiliq/services/demo_data_service.py

"""
Demo soil data (deterministic, no database)
- SAMPLE_SCENARIOS: named field scenarios used for demos and seeding
- generate_series: seeded synthetic readings drifting around a scenario
- DemoReadingProvider: ReadingProvider used when DEMO_MODE is on
"""

import random
import zlib
from datetime import datetime, timedelta
from typing import Dict, Any, List, Optional

DEMO_FARM_ID = "demo-farm"

# ------------------------------------------------------------
# SCENARIOS
# ------------------------------------------------------------
SAMPLE_SCENARIOS: Dict[str, Dict[str, Any]] = {
    "healthy_wheat": {
        "crop_type": "wheat",
        "ph": 6.8, "nitrogen": 65, "phosphorus": 42, "potassium": 75,
        "moisture": 48, "organic_matter": 3.2, "temperature": 18.5,
        "notes": "Healthy wheat field - optimal growing conditions",
    },
    "acidic_corn": {
        "crop_type": "maize",
        "ph": 5.2, "nitrogen": 25, "phosphorus": 18, "potassium": 45,
        "moisture": 52, "organic_matter": 2.1, "temperature": 22.0,
        "notes": "Soil testing acidic, yellowing leaves observed",
    },
    "alkaline_garden": {
        "crop_type": "tomato",
        "ph": 8.1, "nitrogen": 85, "phosphorus": 55, "potassium": 90,
        "moisture": 35, "organic_matter": 1.8, "temperature": 25.5,
        "notes": "Alkaline soil with low organic matter",
    },
    "deficient_paddy": {
        "crop_type": "rice",
        "ph": 6.3, "nitrogen": 15, "phosphorus": 12, "potassium": 25,
        "moisture": 68, "organic_matter": 2.5, "temperature": 26.0,
        "notes": "Multiple nutrient deficiencies - poor plant growth",
    },
    "optimal_garden": {
        "crop_type": "tomato",
        "ph": 6.7, "nitrogen": 55, "phosphorus": 48, "potassium": 72,
        "moisture": 52, "organic_matter": 4.2, "temperature": 20.5,
        "notes": "Excellent soil health - high yields expected",
    },
}

DEFAULT_SCENARIO = "healthy_wheat"

# relative noise per parameter
NOISE = {
    "ph": 0.03,
    "nitrogen": 0.12,
    "phosphorus": 0.12,
    "potassium": 0.10,
    "moisture": 0.15,
    "organic_matter": 0.08,
    "temperature": 0.10,
}

# clamp to the accepted input ranges
LIMITS = {
    "ph": (0, 14),
    "nitrogen": (0, 200),
    "phosphorus": (0, 200),
    "potassium": (0, 200),
    "moisture": (0, 100),
    "organic_matter": (0, 20),
    "temperature": (-10, 50),
}


def list_scenarios() -> List[str]:
    return list(SAMPLE_SCENARIOS.keys())


def get_scenario(name: str) -> Dict[str, Any]:
    if name not in SAMPLE_SCENARIOS:
        raise KeyError(f"Unknown demo scenario: {name}")
    return dict(SAMPLE_SCENARIOS[name])


def scenario_reading(name: str, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """The scenario itself as a single reading dict."""
    reading = get_scenario(name)
    reading["timestamp"] = timestamp or datetime.utcnow()
    return reading


def generate_series(
    scenario: str = DEFAULT_SCENARIO,
    count: int = 30,
    end: Optional[datetime] = None,
    interval_days: float = 1.0,
    seed: int = 42,
    farm_id: str = DEMO_FARM_ID,
) -> List[Dict[str, Any]]:
    """
    `count` readings, oldest first, one every `interval_days` up to `end`.
    Same arguments -> same readings.
    """
    base = get_scenario(scenario)
    rng = random.Random(seed)
    end = end or datetime.utcnow()

    readings = []
    for i in range(count):
        ts = end - timedelta(days=interval_days * (count - 1 - i))
        reading: Dict[str, Any] = {
            "id": f"{farm_id}-{i + 1}",
            "farm_id": farm_id,
            "timestamp": ts,
            "notes": base["notes"],
        }
        for param, noise in NOISE.items():
            low, high = LIMITS[param]
            value = base[param] * (1 + rng.uniform(-noise, noise))
            reading[param] = round(max(low, min(high, value)), 2)
        readings.append(reading)
    return readings


# ------------------------------------------------------------
# PROVIDER
# ------------------------------------------------------------
class DemoReadingProvider:
    """Synthetic readings for any user/farm; each farm id maps to a fixed seed."""

    def __init__(self, scenario: str = DEFAULT_SCENARIO, interval_days: float = 1.0):
        self.scenario = scenario
        self.interval_days = interval_days

    async def list_readings(
        self,
        user_id: str,
        farm_id: Optional[str],
        start: datetime,
        end: datetime,
    ) -> List[Dict[str, Any]]:
        farm = farm_id or DEMO_FARM_ID
        span_days = max((end - start).total_seconds() / 86400, 0)
        count = max(int(span_days // self.interval_days) + 1, 1)
        return generate_series(
            scenario=self.scenario,
            count=count,
            end=end,
            interval_days=self.interval_days,
            seed=zlib.crc32(farm.encode("utf-8")),
            farm_id=farm,
        )
