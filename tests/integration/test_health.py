"""
Integration tests for health and readiness endpoints.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
def test_health_endpoint_returns_ok(client: TestClient) -> None:
    """Test that /health endpoint returns 200 with status ok."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.integration
def test_readiness_endpoint_returns_ready_when_db_accessible(client: TestClient) -> None:
    """Test that /ready endpoint returns 200 when database is accessible."""
    response = client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": "ok"}}


@pytest.mark.integration
def test_readiness_endpoint_returns_503_when_db_not_accessible(client: TestClient) -> None:
    """Test that /ready endpoint returns 503 when database is not accessible."""
    with patch("skynest.routes.health.check_engine_health", return_value=False):
        response = client.get("/ready")

    assert response.status_code == 503
    assert response.json()["checks"]["database"] == "failed"
