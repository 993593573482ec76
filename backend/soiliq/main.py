# backend/soiliq/main.py

# FORCE logger module import so handlers attach
import soiliq.core.logger
from soiliq.core.logger import logger

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import soiliq.models  # registers tables on Base.metadata
from soiliq import __version__
from soiliq.core.config import settings
from soiliq.core.database import engine, Base
from soiliq.core.request_middleware import RequestLoggingMiddleware
from soiliq.core.error_middleware import ExceptionLoggingMiddleware
from soiliq.services.connection_registry import ConnectionRegistry

# ---------------------------------------------------
# Create FastAPI instance FIRST
# ---------------------------------------------------
app = FastAPI(title=settings.APP_NAME, version=__version__)
app.state.connection_registry = ConnectionRegistry()


# ---------------------------------------------------
# CORS MUST be added immediately after app creation
# ---------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------
# Logging middlewares
# ---------------------------------------------------
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(ExceptionLoggingMiddleware)


# ---------------------------------------------------
# IMPORT ROUTERS AFTER APP IS CREATED
# ---------------------------------------------------
from soiliq import api
from soiliq.api import farms, soil, analytics, realtime


# ---------------------------------------------------
# Include Routers
# ---------------------------------------------------
app.include_router(api.router)
app.include_router(farms.router)
app.include_router(soil.router)
app.include_router(analytics.router)
app.include_router(realtime.router)


# ---------------------------------------------------
# Startup: create tables + logs
# ---------------------------------------------------
@app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Backend started with structured JSON logging")
    if settings.DEMO_MODE:
        logger.info("Demo mode enabled: analytics serve synthetic readings")
