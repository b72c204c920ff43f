"""
Unit tests for metrics endpoint.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from skynest.main import app
from skynest.metrics import auth_failures, bookings_created, payments_recorded


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app)


@pytest.mark.unit
def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    """Test that /metrics endpoint returns Prometheus text format."""
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]


@pytest.mark.unit
def test_metrics_endpoint_contains_custom_metrics(client: TestClient) -> None:
    """Test that /metrics endpoint includes the hotel metrics."""
    bookings_created.labels(branch_id="999").inc()
    payments_recorded.labels(method="Cash").inc()
    auth_failures.labels(reason="invalid_credentials").inc()

    body = client.get("/metrics").text

    assert 'skynest_bookings_created_total{branch_id="999"}' in body
    assert 'skynest_payments_recorded_total{method="Cash"}' in body
    assert "skynest_auth_failures_total" in body
    assert "skynest_http_request_duration_seconds" in body
