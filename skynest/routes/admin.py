"""Back-office endpoints: dashboard, bookings, users and work triage."""

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.engine import Engine

from skynest.db.readers.bookings import list_bookings
from skynest.db.readers.payments import list_payments
from skynest.db.readers.principals import list_users
from skynest.db.readers.services import list_service_requests, list_service_usage
from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, SkyNestError
from skynest.models.enums import BookingStatus, Role, WorkStatus
from skynest.routes._helpers import load_booking_or_404
from skynest.schemas.bookings import BookingStatusPayload
from skynest.schemas.operations import (
    AssignPayload,
    RejectPayload,
    UserCreatePayload,
    UserStatusPayload,
)
from skynest.services.accounts import create_user, set_user_active
from skynest.services.billing import with_balance
from skynest.services.bookings import change_booking_status
from skynest.services.maintenance import approve_log, assign_log, filter_logs, reject_log
from skynest.services.reports import admin_alerts, admin_dashboard
from skynest.services.service_requests import assign_request
from skynest.services.sessions import Principal

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/admin")


@router.get("/dashboard", response_model=None)
def get_dashboard(
    principal: Principal = Depends(require("dashboard", "admin")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Headline numbers for the admin home screen.

    Returns:
        dict: Booking counts by status, revenue, today's arrivals, user counts
        and rooms by status per branch.
    """
    try:
        with engine.connect() as conn:
            return admin_dashboard(conn)
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_dashboard_failed", error=str(e))
        raise InternalServerError("Failed to load dashboard", details=str(e))


@router.get("/alerts", response_model=None)
def get_alerts(
    principal: Principal = Depends(require("dashboard", "admin")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return admin_alerts(conn)
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_alerts_failed", error=str(e))
        raise InternalServerError("Failed to load alerts", details=str(e))


@router.get("/bookings", response_model=None)
def get_all_bookings(
    branch_id: Optional[int] = Query(None),
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    search: Optional[str] = Query(None),
    principal: Principal = Depends(require("booking", "list_all")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            rows = list_bookings(
                conn, branch_id=branch_id, status=status_filter, on_date=on_date, search=search
            )
        return {"bookings": [with_balance(r) for r in rows]}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_booking_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch bookings", details=str(e))


@router.get("/bookings/{booking_id}", response_model=None)
def get_booking_detail(
    booking_id: int,
    principal: Principal = Depends(require("booking", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Any branch's booking with guest contact, payments, services and requests."""
    try:
        with engine.connect() as conn:
            booking = load_booking_or_404(conn, principal, booking_id, action="manage")
            booking["payments"] = list_payments(conn, booking_id)
            booking["services"] = list_service_usage(conn, booking_id)
            booking["service_requests"] = list_service_requests(conn, booking_id=booking_id)
        return {"booking": booking}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_booking_fetch_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to fetch booking", details=str(e))


@router.patch("/bookings/{booking_id}/status", response_model=None)
def update_booking_status(
    booking_id: int,
    payload: BookingStatusPayload,
    principal: Principal = Depends(require("booking", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Change any booking's status.

    Follows the same transition rules as the front desk, so Pending only
    becomes Confirmed through payments.
    """
    try:
        with engine.begin() as conn:
            load_booking_or_404(conn, principal, booking_id, action="manage")
            result = change_booking_status(conn, booking_id, payload.status, payload.reason)
        logger.info(
            "admin_booking_status_changed",
            booking_id=booking_id,
            admin_id=principal.subject_id,
            status=payload.status.value,
        )
        return {"success": True, "message": "Booking updated successfully", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_booking_status_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to update booking", details=str(e))


@router.get("/users", response_model=None)
def get_users(
    role: Optional[Role] = Query(None),
    search: Optional[str] = Query(None),
    principal: Principal = Depends(require("user", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"users": list_users(conn, role=role, search=search)}
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("user_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch users", details=str(e))


@router.post("/users", status_code=status.HTTP_201_CREATED, response_model=None)
def create_user_endpoint(
    payload: UserCreatePayload,
    principal: Principal = Depends(require("user", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            user = create_user(conn, payload.role, payload.model_dump(exclude={"role"}))
        return {"success": True, "message": f"{payload.role.value.title()} account created", "user": user}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("user_create_failed", role=payload.role.value, error=str(e))
        raise InternalServerError("Failed to create user", details=str(e))


@router.patch("/users/{role}/{user_id}/status", response_model=None)
def update_user_status(
    role: Role,
    user_id: int,
    payload: UserStatusPayload,
    principal: Principal = Depends(require("user", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            result = set_user_active(conn, principal, role, user_id, payload.is_active)
        state = "activated" if payload.is_active else "deactivated"
        return {"success": True, "message": f"Account {state}", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("user_status_update_failed", role=role.value, user_id=user_id, error=str(e))
        raise InternalServerError("Failed to update user status", details=str(e))


@router.get("/maintenance", response_model=None)
def get_maintenance_logs(
    filter_name: str = Query("all", alias="filter"),
    branch_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("maintenance", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"logs": filter_logs(conn, filter_name, branch_id=branch_id)}
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_maintenance_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch maintenance logs", details=str(e))


@router.post("/maintenance/{log_id}/assign", response_model=None)
def assign_maintenance(
    log_id: int,
    payload: AssignPayload,
    principal: Principal = Depends(require("maintenance", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            result = assign_log(conn, log_id, payload.staff_id)
        return {"success": True, "message": "Maintenance task assigned", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_assign_failed", log_id=log_id, error=str(e))
        raise InternalServerError("Failed to assign maintenance task", details=str(e))


@router.post("/maintenance/{log_id}/approve", response_model=None)
def approve_maintenance(
    log_id: int,
    principal: Principal = Depends(require("maintenance", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Approve a Pending log. Assigned logs start immediately."""
    try:
        with engine.begin() as conn:
            result = approve_log(conn, log_id, principal.name or principal.email or "admin")
        return {"success": True, "message": "Maintenance request approved", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_approve_failed", log_id=log_id, error=str(e))
        raise InternalServerError("Failed to approve maintenance request", details=str(e))


@router.post("/maintenance/{log_id}/reject", response_model=None)
def reject_maintenance(
    log_id: int,
    payload: RejectPayload,
    principal: Principal = Depends(require("maintenance", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            result = reject_log(conn, log_id, payload.rejection_reason)
        return {"success": True, "message": "Maintenance request rejected", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_reject_failed", log_id=log_id, error=str(e))
        raise InternalServerError("Failed to reject maintenance request", details=str(e))


@router.get("/service-requests", response_model=None)
def get_all_service_requests(
    branch_id: Optional[int] = Query(None),
    status_filter: Optional[WorkStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require("service_request", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            requests = list_service_requests(
                conn,
                branch_id=branch_id,
                statuses=(status_filter,) if status_filter else None,
            )
        return {"requests": requests}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_service_request_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch service requests", details=str(e))


@router.post("/service-requests/{request_id}/assign", response_model=None)
def assign_service_request(
    request_id: int,
    payload: AssignPayload,
    principal: Principal = Depends(require("service_request", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            result = assign_request(conn, request_id, payload.staff_id)
        return {"success": True, "message": "Service request assigned", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_request_assign_failed", request_id=request_id, error=str(e))
        raise InternalServerError("Failed to assign service request", details=str(e))
