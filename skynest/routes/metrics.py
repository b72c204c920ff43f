"""
Prometheus metrics endpoint.

Example:
    GET /metrics

    Response:
        # HELP skynest_bookings_created_total Total number of bookings created
        # TYPE skynest_bookings_created_total counter
        skynest_bookings_created_total{branch_id="1"} 42.0
        ...
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics", response_class=Response)
async def metrics() -> Any:
    """
    Return all registered metrics in Prometheus text exposition format.

    Returns:
        Response: Metrics with Content-Type: text/plain
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
