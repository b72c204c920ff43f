"""
Unit tests for log renderer selection.
"""

from __future__ import annotations

import pytest
import structlog

from skynest.config import Settings
from skynest.logging_config import select_renderer


def _settings(environment: str, log_level: str) -> Settings:
    return Settings(database_url=None, jwt_secret="s3cret", environment=environment, log_level=log_level)


@pytest.mark.unit
@pytest.mark.parametrize(
    "environment,log_level,renderer",
    [
        ("development", "DEBUG", structlog.dev.ConsoleRenderer),
        ("development", "INFO", structlog.processors.JSONRenderer),
        ("development", "WARNING", structlog.processors.JSONRenderer),
        ("production", "DEBUG", structlog.processors.JSONRenderer),
        ("production", "INFO", structlog.processors.JSONRenderer),
    ],
)
def test_renderer_follows_environment_and_level(environment: str, log_level: str, renderer: type) -> None:
    assert isinstance(select_renderer(_settings(environment, log_level)), renderer)
