"""Endpoints for signed-in guests: availability, dashboard, payments, services, maintenance."""

from datetime import date
from typing import Any, Literal, Optional

import structlog
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.engine import Engine

from skynest.config import Settings, get_settings
from skynest.db.readers.maintenance import list_logs
from skynest.db.readers.payments import list_payments
from skynest.db.readers.services import list_service_requests, list_service_usage
from skynest.db.writers.principals import set_profile_picture
from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, NotFound, SkyNestError
from skynest.models.enums import Role, WorkStatus
from skynest.routes._helpers import load_booking_or_404, load_service_request_or_404
from skynest.schemas.bookings import AvailabilityPayload, PaymentPayload
from skynest.schemas.operations import GuestMaintenancePayload, ServiceRequestPayload
from skynest.services.availability import check_room_availability, list_room_availability
from skynest.services.billing import GUEST_CLOSED_FOR_PAYMENT, get_booking_balance, record_payment
from skynest.services.bookings import check_in_guest
from skynest.services.maintenance import report_issue
from skynest.services.reports import guest_alerts, guest_bills, guest_dashboard
from skynest.services.service_requests import cancel_request, request_service
from skynest.services.sessions import Principal
from skynest.services.uploads import save_image

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/guest")


@router.post("/rooms/check-availability", response_model=None)
def check_availability(
    payload: AvailabilityPayload,
    principal: Principal = Depends(require("availability", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Check whether one room is free for [check_in_date, check_out_date).

    Example:
        >>> POST /api/guest/rooms/check-availability
        {"available": true, "total_amount": 200.0, "booking_details": {"nights": 2, ...}}
    """
    try:
        with engine.connect() as conn:
            result = check_room_availability(
                conn, payload.room_id, payload.check_in_date, payload.check_out_date
            )
        return result.as_dict()

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("availability_check_failed", room_id=payload.room_id, error=str(e))
        raise InternalServerError("Failed to check availability", details=str(e))


@router.get("/rooms/availability", response_model=None)
def get_availability(
    check_in_date: date = Query(..., description="Arrival date"),
    check_out_date: date = Query(..., description="Departure date (exclusive)"),
    branch_id: Optional[int] = Query(None, description="Only rooms of this branch"),
    principal: Principal = Depends(require("availability", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return list_room_availability(conn, check_in_date, check_out_date, branch_id)
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("availability_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch availability", details=str(e))


@router.get("/dashboard", response_model=None)
def dashboard(
    principal: Principal = Depends(require("guest", "dashboard")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return guest_dashboard(conn, principal.subject_id)
    except Exception as e:
        logger.exception("guest_dashboard_failed", guest_id=principal.subject_id, error=str(e))
        raise InternalServerError("Failed to load dashboard", details=str(e))


@router.get("/bills", response_model=None)
def bills(
    principal: Principal = Depends(require("guest", "dashboard")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return guest_bills(conn, principal.subject_id)
    except Exception as e:
        logger.exception("guest_bills_failed", guest_id=principal.subject_id, error=str(e))
        raise InternalServerError("Failed to load bills", details=str(e))


@router.get("/alerts", response_model=None)
def alerts(
    filter_name: Literal["all", "unread"] = Query("all", alias="filter"),
    status_filter: Optional[WorkStatus] = Query(None, alias="status"),
    principal: Principal = Depends(require("guest", "dashboard")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Updates on the guest's maintenance requests.

    Example:
        >>> GET /api/guest/alerts?filter=unread
        {"alerts": [{"type": "maintenance", "status": "InProgress", ...}], "unread_count": 1, ...}
    """
    try:
        with engine.connect() as conn:
            result = guest_alerts(
                conn, principal.subject_id, status=status_filter, unread_only=filter_name == "unread"
            )
        return {"success": True, **result}
    except Exception as e:
        logger.exception("guest_alerts_failed", guest_id=principal.subject_id, error=str(e))
        raise InternalServerError("Failed to fetch alerts", details=str(e))


@router.get("/bookings/{booking_id}/payments", response_model=None)
def get_booking_payments(
    booking_id: int,
    principal: Principal = Depends(require("payment", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            booking = load_booking_or_404(conn, principal, booking_id)
            payments = list_payments(conn, booking_id)
            balance = get_booking_balance(conn, booking)
        return {"booking_id": booking_id, "payments": payments, **balance.as_dict()}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("payment_list_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to fetch payments", details=str(e))


@router.post("/bookings/{booking_id}/payments", status_code=status.HTTP_201_CREATED, response_model=None)
def pay_booking(
    booking_id: int,
    payload: PaymentPayload,
    principal: Principal = Depends(require("payment", "create")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Guest self-payment.

    Full payment of a Pending booking confirms it.

    Raises:
        ValidationFailed: 400 on overpayment, with outstanding_amount
    """
    try:
        with engine.begin() as conn:
            load_booking_or_404(conn, principal, booking_id)
            result = record_payment(
                conn,
                booking_id,
                payload.amount,
                payload.payment_method,
                closed_statuses=GUEST_CLOSED_FOR_PAYMENT,
                transaction_id=payload.transaction_id,
                notes=payload.notes,
            )
        return {"success": True, "message": "Payment successful", "payment": result.as_dict()}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("payment_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to process payment", details=str(e))


@router.post("/bookings/{booking_id}/checkin", response_model=None)
def self_check_in(
    booking_id: int,
    principal: Principal = Depends(require("booking", "check_in_self")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            load_booking_or_404(conn, principal, booking_id, action="check_in_self")
            result = check_in_guest(conn, booking_id)
        return {"success": True, "message": "Checked in successfully", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("check_in_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to check in", details=str(e))


@router.get("/bookings/{booking_id}/services", response_model=None)
def get_booking_services(
    booking_id: int,
    principal: Principal = Depends(require("service_request", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            booking = load_booking_or_404(conn, principal, booking_id)
            return {
                "booking_id": booking_id,
                "requests": list_service_requests(conn, booking_id=booking_id),
                "charges": list_service_usage(conn, booking_id),
                "total_amount": booking["total_amount"],
            }
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_list_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to fetch services", details=str(e))


@router.post("/bookings/{booking_id}/services", status_code=status.HTTP_201_CREATED, response_model=None)
def add_booking_service(
    booking_id: int,
    payload: ServiceRequestPayload,
    principal: Principal = Depends(require("service_request", "create")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            booking = load_booking_or_404(conn, principal, booking_id)
            request = request_service(
                conn,
                booking,
                service_id=payload.service_id,
                quantity=payload.quantity,
                priority=payload.priority,
                notes=payload.notes,
            )
        return {"success": True, "message": "Service requested", "request": request}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_request_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to request service", details=str(e))


@router.delete("/bookings/{booking_id}/services/{request_id}", response_model=None)
def remove_booking_service(
    booking_id: int,
    request_id: int,
    principal: Principal = Depends(require("service_request", "cancel")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            load_booking_or_404(conn, principal, booking_id)
            request = load_service_request_or_404(conn, principal, request_id, "cancel")
            if request["booking_id"] != booking_id:
                raise NotFound("Service request not found")
            result = cancel_request(conn, request_id)
        return {"success": True, "message": "Service request cancelled", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_cancel_failed", request_id=request_id, error=str(e))
        raise InternalServerError("Failed to cancel service request", details=str(e))


@router.get("/maintenance", response_model=None)
def get_my_maintenance(
    principal: Principal = Depends(require("maintenance", "list_own")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"logs": list_logs(conn, reported_by_guest_id=principal.subject_id)}
    except Exception as e:
        logger.exception("maintenance_list_failed", guest_id=principal.subject_id, error=str(e))
        raise InternalServerError("Failed to fetch maintenance requests", details=str(e))


@router.post("/maintenance", status_code=status.HTTP_201_CREATED, response_model=None)
def report_maintenance(
    payload: GuestMaintenancePayload,
    principal: Principal = Depends(require("maintenance", "report")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Report an issue with the room of one of the guest's active bookings."""
    try:
        with engine.begin() as conn:
            booking = load_booking_or_404(conn, principal, payload.booking_id)
            log = report_issue(
                conn,
                room_id=booking["room_id"],
                description=payload.issue_description,
                priority=payload.priority,
                booking=booking,
                guest_id=principal.subject_id,
            )
        return {"success": True, "message": "Maintenance request submitted", "log": log}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_report_failed", error=str(e))
        raise InternalServerError("Failed to submit maintenance request", details=str(e))


@router.post("/profile-picture", response_model=None)
def upload_profile_picture(
    file: UploadFile = File(..., description="JPEG, PNG, WebP or GIF, max 5 MB"),
    principal: Principal = Depends(require("guest", "upload_picture")),
    engine: Engine = Depends(get_db_engine),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    try:
        stored = save_image(file, "profiles", settings)
        with engine.begin() as conn:
            set_profile_picture(conn, Role.GUEST, principal.subject_id, stored["url"])
        return {"success": True, **stored}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("profile_picture_upload_failed", error=str(e))
        raise InternalServerError("Failed to upload file", details=str(e))
