"""
SQLAlchemy engine with production-ready connection pooling.

The engine is built lazily from the process Settings the first time it is
requested, so importing the application never opens a connection or
requires DATABASE_URL to be present.
"""

from functools import lru_cache

import structlog
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from skynest.config import Settings, get_settings

logger = structlog.get_logger(__name__)


def create_db_engine(settings: Settings) -> Engine:
    """
    Create the pooled engine for the configured database.

    Args:
        settings: Process settings carrying the database URL and pool sizes

    Returns:
        Engine: SQLAlchemy engine

    Raises:
        RuntimeError: If DATABASE_URL is not configured
    """
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not set.")

    return create_engine(
        settings.database_url,
        future=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,  # detect stale connections
        pool_recycle=3600,
        echo=False,
    )


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Return the process-wide engine, creating it on first use."""
    return create_db_engine(get_settings())


def check_engine_health(engine: Engine) -> bool:
    """
    Check if database engine is healthy and connections are working.

    This function is used by the /ready endpoint to verify database
    connectivity before allowing traffic to the service.

    Returns:
        bool: True if database is reachable and healthy, False otherwise
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning("database_health_check_failed", error=str(e))
        return False
