"""Runtime settings for the ledger service.

Every value comes from the environment (or a local ``.env`` file) through
pydantic-settings. Variable names match the field names exactly.
"""

import logging
import os
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("homegame.config")

# Only ever used outside production; see Settings._fill_jwt_secret.
_DEV_JWT_SECRET = "homegame-local-development-secret-do-not-deploy-0001"

_LOCAL_FRONTENDS = (
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
)


def _is_production() -> bool:
    return os.getenv("RAILWAY_ENVIRONMENT") == "production"


class Settings(BaseSettings):
    """Ledger service configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    MONGO_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string.",
    )
    DATABASE_NAME: str = Field(default="homegame")

    JWT_SECRET: Optional[str] = Field(
        default=None,
        description="HS256 key shared with the identity service.",
    )

    CORS_ORIGINS: str = Field(
        default="",
        description='Comma-separated origins, or "*". Empty means local frontends only.',
    )

    TRANSACTION_MAX_ATTEMPTS: int = Field(
        default=5,
        ge=1,
        description="Attempts an atomic game update gets before WriteConflict.",
    )
    INVITE_SWEEP_INTERVAL_SECONDS: int = Field(default=300, ge=1)

    APP_VERSION: str = "1.0.0"

    @model_validator(mode="after")
    def _fill_jwt_secret(self) -> "Settings":
        if self.JWT_SECRET:
            return self
        if _is_production():
            raise ValueError("JWT_SECRET is required in production")
        logger.warning("JWT_SECRET is not set; using the insecure development key")
        self.JWT_SECRET = _DEV_JWT_SECRET
        return self

    @property
    def cors_origins(self) -> list[str]:
        """Origins allowed by the CORS middleware."""
        raw = self.CORS_ORIGINS.strip()
        if raw == "*":
            return ["*"]
        if raw:
            return [origin.strip() for origin in raw.split(",") if origin.strip()]
        if _is_production():
            logger.warning("CORS_ORIGINS is empty in production; no browser origin is allowed")
            return []
        return list(_LOCAL_FRONTENDS)


settings = Settings()
