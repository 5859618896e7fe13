import os
from typing import List, Optional

from pydantic import BaseModel


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    ENV: str = os.getenv("ENV", "development")
    # Database connection string (SQLAlchemy URL format), e.g. postgresql://...
    DATABASE_URL: Optional[str] = os.getenv("DATABASE_URL")
    # JWT settings for callers of the HTTP surface
    JWT_SECRET: Optional[str] = os.getenv("JWT_SECRET")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "console")  # console, json

    # CORS
    FRONTEND_ORIGIN: Optional[str] = os.getenv("FRONTEND_ORIGIN")
    ADDITIONAL_CORS_ORIGINS: Optional[str] = os.getenv("ADDITIONAL_CORS_ORIGINS")  # comma-separated

    APP_TITLE: str = os.getenv("APP_TITLE", "Auth Logins API")
    APP_DESCRIPTION: str = os.getenv(
        "APP_DESCRIPTION",
        "Persistence of identity-provider login records.",
    )
    APP_VERSION: str = os.getenv("APP_VERSION", "0.1.0")


def get_cors_origins(settings: Settings) -> List[str]:
    """Build allowed CORS origins list from env-configured values."""
    origins: List[str] = []
    if settings.FRONTEND_ORIGIN:
        origins.append(settings.FRONTEND_ORIGIN)
    if settings.ADDITIONAL_CORS_ORIGINS:
        extras = [o.strip() for o in settings.ADDITIONAL_CORS_ORIGINS.split(",") if o.strip()]
        origins.extend(extras)
    if not origins and settings.ENV == "development":
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
    return origins


settings = Settings()
