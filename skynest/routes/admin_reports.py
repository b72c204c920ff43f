"""Admin reports. Date windows are half-open: [start_date, end_date)."""

from datetime import date, timedelta
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.engine import Engine

from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, SkyNestError, ValidationFailed
from skynest.models.enums import BookingStatus
from skynest.services.reports import (
    billing_report,
    occupancy_report,
    revenue_report,
    service_usage_report,
    top_services_report,
)
from skynest.services.sessions import Principal
from skynest.utils.datetime import utc_today

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/admin/reports")

DEFAULT_WINDOW_DAYS = 30


def _window(start: Optional[date], end: Optional[date]) -> tuple[date, date]:
    """Fill in a missing window end from today, and a missing start 30 days before it."""
    end = end or utc_today() + timedelta(days=1)
    start = start or end - timedelta(days=DEFAULT_WINDOW_DAYS)
    if end <= start:
        raise ValidationFailed("end_date must be after start_date")
    return start, end


@router.get("/occupancy", response_model=None)
def get_occupancy_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    branch_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("report", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Room occupancy over a date window.

    Args:
        start_date: First night counted (default: 30 days before end_date)
        end_date: Day after the last night counted (default: tomorrow)
        branch_id: Restrict to one branch

    Returns:
        dict: Per-room, per-branch and overall occupancy percentages
    """
    try:
        start, end = _window(start_date, end_date)
        with engine.connect() as conn:
            return occupancy_report(conn, start, end, branch_id)
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("occupancy_report_failed", error=str(e))
        raise InternalServerError("Failed to build occupancy report", details=str(e))


@router.get("/revenue", response_model=None)
def get_revenue_report(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    branch_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("report", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Completed-payment revenue by branch and month. Defaults to the current year."""
    try:
        with engine.connect() as conn:
            return revenue_report(conn, year or utc_today().year, month, branch_id)
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("revenue_report_failed", error=str(e))
        raise InternalServerError("Failed to build revenue report", details=str(e))


@router.get("/billing", response_model=None)
def get_billing_report(
    branch_id: Optional[int] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require("report", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return billing_report(conn, branch_id, start_date, end_date, status_filter)
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("billing_report_failed", error=str(e))
        raise InternalServerError("Failed to build billing report", details=str(e))


@router.get("/service-usage", response_model=None)
def get_service_usage_report(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    branch_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("report", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return service_usage_report(conn, start_date, end_date, branch_id)
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_usage_report_failed", error=str(e))
        raise InternalServerError("Failed to build service usage report", details=str(e))


@router.get("/top-services", response_model=None)
def get_top_services(
    limit: int = Query(10, ge=1, le=100),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    branch_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("report", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            services = top_services_report(conn, limit, start_date, end_date, branch_id)
        return {"services": services}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("top_services_report_failed", error=str(e))
        raise InternalServerError("Failed to build top services report", details=str(e))
