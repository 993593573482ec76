import asyncio
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

from soiliq.core.database import AsyncSessionLocal, engine, Base
from soiliq.crud.farms import create_farm
from soiliq.crud.soil_readings import create_reading, MEASUREMENT_FIELDS
from soiliq.schemas.farm import FarmCreate
from soiliq.schemas.soil_reading import SoilReadingCreate
from soiliq.services import demo_data_service
from soiliq.services.insight_service import analyze

import soiliq.models

# ------------------------------------------------------------
# CONFIG
# ------------------------------------------------------------
READINGS_PER_FARM = 30
INTERVAL_DAYS = 3

FARM_NAMES = {
    "healthy_wheat": "Wheat Field 1",
    "acidic_corn": "Corn Field 1",
    "alkaline_garden": "Vegetable Garden 1",
    "deficient_paddy": "Rice Paddy 1",
    "optimal_garden": "Vegetable Garden 2",
}


# ------------------------------------------------------------
# Main generator
# ------------------------------------------------------------
async def seed_demo_readings(user_id: str):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        for seed, scenario in enumerate(demo_data_service.list_scenarios()):
            base = demo_data_service.get_scenario(scenario)
            farm = await create_farm(
                user_id,
                FarmCreate(name=FARM_NAMES.get(scenario, scenario), crop_type=base["crop_type"]),
                db,
            )

            series = demo_data_service.generate_series(
                scenario=scenario,
                count=READINGS_PER_FARM,
                interval_days=INTERVAL_DAYS,
                seed=seed,
                farm_id=farm.id,
            )
            for sample in series:
                measurements = {f: sample[f] for f in MEASUREMENT_FIELDS}
                payload = SoilReadingCreate(
                    farm_id=farm.id,
                    notes=sample["notes"],
                    reading_date=sample["timestamp"],
                    **measurements,
                )
                await create_reading(user_id, payload, analyze(measurements, base["crop_type"]), db)

            print(f"Created farm {farm.id} ({farm.name}) with {len(series)} readings")


# ------------------------------------------------------------
# Script Entrypoint
# ------------------------------------------------------------
if __name__ == "__main__":
    print("\n=== DEMO SOIL READINGS SEEDER ===")

    user_id = sys.argv[1] if len(sys.argv) > 1 else input("Enter user id (token subject): ").strip()
    if not user_id:
        print("User id is required")
        sys.exit(1)

    asyncio.run(seed_demo_readings(user_id))
    print("\nDone! Demo readings inserted.\n")
