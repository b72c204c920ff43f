"""
Process-wide configuration.

Settings are read from the environment (after loading a local ``.env`` file)
exactly once and handed to whatever needs them through ``get_settings()``,
which FastAPI routes receive via ``Depends(get_settings)``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

import structlog
from dotenv import load_dotenv

logger = structlog.get_logger(__name__)

SCHEMA = "skynest"

SESSION_COOKIE = "token"
LEGACY_SESSION_COOKIE = "session"

DEV_JWT_SECRET = "skynest-dev-secret-change-me"


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of runtime configuration."""

    database_url: Optional[str]
    jwt_secret: str
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    session_ttl_days: int = 7
    upload_dir: str = "public/uploads"
    max_upload_bytes: int = 5 * 1024 * 1024
    db_pool_size: int = 10
    db_max_overflow: int = 20

    @property
    def debug(self) -> bool:
        return self.log_level == "DEBUG"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def load_settings() -> Settings:
    """
    Build a Settings object from environment variables.

    Raises:
        ValueError: If JWT_SECRET is missing while ENVIRONMENT=production
    """
    load_dotenv()

    environment = os.getenv("ENVIRONMENT", "development").lower()

    jwt_secret = os.getenv("JWT_SECRET")
    if not jwt_secret:
        if environment == "production":
            raise ValueError("JWT_SECRET must be set in the environment")
        logger.warning("jwt_secret_not_set", fallback="development secret")
        jwt_secret = DEV_JWT_SECRET

    origins_raw = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000")
    allowed_origins = [origin.strip() for origin in origins_raw.split(",") if origin.strip()]

    return Settings(
        database_url=os.getenv("DATABASE_URL"),
        jwt_secret=jwt_secret,
        environment=environment,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        allowed_origins=allowed_origins,
        session_ttl_days=int(os.getenv("SESSION_TTL_DAYS", "7")),
        upload_dir=os.getenv("UPLOAD_DIR", "public/uploads"),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))),
        db_pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
        db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings, building them on first use."""
    return load_settings()
