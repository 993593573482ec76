# backend/soiliq/core/config.py

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "SoilIQ API"

    # Database (async driver URL)
    DATABASE_URL: str = "sqlite+aiosqlite:///./soiliq.db"

    # Auth
    SECRET_KEY: str = "super-secret-key-change-in-prod"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # CORS
    CORS_ORIGINS: list[str] = ["*"]

    # Serve synthetic readings instead of the database
    DEMO_MODE: bool = False

    # Logging
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    DEFAULT_ANALYSIS_PERIOD: str = "30d"

    class Config:
        env_file = ".env"

settings = Settings()
