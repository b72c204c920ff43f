from __future__ import annotations

import logging
import sys
from typing import Any, Callable, MutableMapping, cast

import structlog

from skynest.config import Settings

Processor = Callable[[Any, str, MutableMapping[str, Any]], Any]

# Third-party loggers that only speak up at WARNING and above
QUIET_LOGGERS = ("multipart", "sqlalchemy.engine", "uvicorn.access")


def select_renderer(settings: Settings) -> Processor:
    """
    Pick the final structlog processor for this deployment.

    Production (ENVIRONMENT=production) always writes one JSON object per
    line. Elsewhere LOG_LEVEL=DEBUG switches to the coloured console
    renderer and any other level keeps JSON.
    """
    if settings.debug and not settings.is_production:
        return cast(Processor, structlog.dev.ConsoleRenderer(colors=True))
    return cast(Processor, structlog.processors.JSONRenderer())


def setup_logging(settings: Settings) -> None:
    """Route stdlib and structlog output to stdout at the configured level."""
    level = logging.getLevelName(settings.log_level)

    logging.basicConfig(
        format="[%(asctime)s] %(levelname)s in %(name)s:%(lineno)d: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        level=level,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            select_renderer(settings),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
