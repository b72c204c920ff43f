"""Front-desk endpoints. Every staff action is limited to the staff member's branch."""

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.engine import Engine

from skynest.db.readers.bookings import get_booking_details, list_bookings
from skynest.db.readers.payments import get_payment
from skynest.db.readers.principals import get_principal_record, search_guests
from skynest.db.readers.properties import get_room, list_rooms
from skynest.db.readers.services import list_service_requests
from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, NotFound, SkyNestError
from skynest.models.enums import BookingStatus, Role, RoomStatus, WorkStatus
from skynest.routes._helpers import (
    load_booking_or_404,
    load_log_or_404,
    load_service_request_or_404,
    staff_branch_scope,
)
from skynest.schemas.bookings import BookingPaymentPayload, BookingStatusPayload
from skynest.schemas.operations import (
    CompletionPayload,
    StaffMaintenancePayload,
    WorkStatusPayload,
)
from skynest.schemas.properties import RoomStatusPayload
from skynest.services.access import authorize
from skynest.services.accounts import public_profile
from skynest.services.billing import complete_pending_payment, record_payment, with_balance
from skynest.services.bookings import change_booking_status
from skynest.services.maintenance import (
    change_log_status,
    complete_log,
    filter_logs,
    report_issue,
    set_housekeeping_status,
)
from skynest.services.reports import guest_bills
from skynest.services.service_requests import change_request_status
from skynest.services.sessions import Principal

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/staff")


@router.get("/bookings", response_model=None)
def get_branch_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date", description="Stays covering this date"),
    search: Optional[str] = Query(None, description="Reference, guest name or email"),
    principal: Principal = Depends(require("booking", "list_branch")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            rows = list_bookings(
                conn,
                branch_id=staff_branch_scope(principal),
                status=status_filter,
                on_date=on_date,
                search=search,
            )
        return {"bookings": [with_balance(r) for r in rows]}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("booking_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch bookings", details=str(e))


@router.patch("/bookings/{booking_id}/status", response_model=None)
def update_booking_status_endpoint(
    booking_id: int,
    payload: BookingStatusPayload,
    principal: Principal = Depends(require("booking", "update_status")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Check a guest in or out, cancel, or mark a no-show.

    Check-in marks the room Occupied, check-out marks it Cleaning.
    """
    try:
        with engine.begin() as conn:
            load_booking_or_404(conn, principal, booking_id, action="update_status")
            result = change_booking_status(conn, booking_id, payload.status, payload.reason)
        return {"success": True, "message": f"Booking status updated to {payload.status.value}", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("booking_status_update_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to update booking status", details=str(e))


@router.post("/payments/confirm", status_code=status.HTTP_201_CREATED, response_model=None)
def confirm_payment(
    payload: BookingPaymentPayload,
    principal: Principal = Depends(require("payment", "confirm")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Take a payment at the front desk. Full payment confirms a Pending booking."""
    try:
        with engine.begin() as conn:
            booking = get_booking_details(conn, payload.booking_id)
            if booking is None:
                raise NotFound(f"Booking {payload.booking_id} not found")
            authorize(principal, "payment", "confirm", branch_id=booking["branch_id"])
            result = record_payment(
                conn,
                payload.booking_id,
                payload.amount,
                payload.payment_method,
                processed_by_staff_id=principal.subject_id,
                transaction_id=payload.transaction_id,
                notes=payload.notes,
            )
        return {"success": True, "message": "Payment confirmed", "payment": result.as_dict()}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("payment_confirm_failed", booking_id=payload.booking_id, error=str(e))
        raise InternalServerError("Failed to confirm payment", details=str(e))


@router.post("/payments/{payment_id}/complete", response_model=None)
def complete_payment(
    payment_id: int,
    principal: Principal = Depends(require("payment", "confirm")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Mark a Pending payment (e.g. a cleared bank transfer) as Completed."""
    try:
        with engine.begin() as conn:
            payment = get_payment(conn, payment_id)
            if payment is None:
                raise NotFound(f"Payment {payment_id} not found")
            booking = get_booking_details(conn, payment["booking_id"])
            if booking is None:
                raise NotFound(f"Booking {payment['booking_id']} not found")
            authorize(principal, "payment", "confirm", branch_id=booking["branch_id"])
            result = complete_pending_payment(conn, payment_id)
        return {"success": True, "message": "Payment completed", "payment": result.as_dict()}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("payment_completion_failed", payment_id=payment_id, error=str(e))
        raise InternalServerError("Failed to complete payment", details=str(e))


@router.get("/rooms", response_model=None)
def get_branch_rooms(
    status_filter: Optional[RoomStatus] = Query(None, alias="status"),
    room_type_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("room", "list_branch")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            rooms = list_rooms(
                conn,
                branch_id=staff_branch_scope(principal),
                status=status_filter,
                room_type_id=room_type_id,
            )
        return {"rooms": rooms}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch rooms", details=str(e))


@router.put("/rooms/{room_id}/status", response_model=None)
def update_room_status(
    room_id: int,
    payload: RoomStatusPayload,
    principal: Principal = Depends(require("room", "update_status")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            room = get_room(conn, room_id)
            if room is None:
                raise NotFound("Room not found")
            authorize(principal, "room", "update_status", branch_id=room["branch_id"])
            result = set_housekeeping_status(conn, room_id, payload.status)
        return {"success": True, "message": "Room status updated", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_status_update_failed", room_id=room_id, error=str(e))
        raise InternalServerError("Failed to update room status", details=str(e))


@router.get("/guests/search", response_model=None)
def search_guests_endpoint(
    q: str = Query(..., min_length=1, description="Name, email or phone fragment"),
    principal: Principal = Depends(require("guest", "search")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"guests": search_guests(conn, q)}
    except Exception as e:
        logger.exception("guest_search_failed", error=str(e))
        raise InternalServerError("Failed to search guests", details=str(e))


@router.get("/guests/{guest_id}/bills", response_model=None)
def get_guest_bills(
    guest_id: int,
    principal: Principal = Depends(require("guest", "bills")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    A guest's bills at the caller's branch, for settling up at the desk.

    Returns:
        dict: guest profile, per-booking bills and a summary of totals
    """
    try:
        with engine.connect() as conn:
            record = get_principal_record(conn, Role.GUEST, guest_id)
            if record is None:
                raise NotFound("Guest not found")
            bills = guest_bills(conn, guest_id, branch_id=staff_branch_scope(principal))
        return {"guest": public_profile(record, Role.GUEST), **bills}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("staff_guest_bills_failed", guest_id=guest_id, error=str(e))
        raise InternalServerError("Failed to fetch guest bills", details=str(e))


@router.get("/maintenance", response_model=None)
def get_branch_maintenance(
    filter_name: str = Query("open", alias="filter", description="all, open, pending, in-progress, completed, cancelled, urgent"),
    principal: Principal = Depends(require("maintenance", "list_own")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            logs = filter_logs(conn, filter_name, branch_id=staff_branch_scope(principal))
        return {"logs": logs}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch maintenance logs", details=str(e))


@router.post("/maintenance", status_code=status.HTTP_201_CREATED, response_model=None)
def report_room_issue(
    payload: StaffMaintenancePayload,
    principal: Principal = Depends(require("maintenance", "report")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            room = get_room(conn, payload.room_id)
            if room is None:
                raise NotFound("Room not found")
            authorize(principal, "maintenance", "report", branch_id=room["branch_id"])
            log = report_issue(
                conn,
                room_id=payload.room_id,
                description=payload.issue_description,
                priority=payload.priority,
                staff_id=principal.subject_id,
            )
        return {"success": True, "message": "Maintenance issue reported", "log": log}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_report_failed", room_id=payload.room_id, error=str(e))
        raise InternalServerError("Failed to report maintenance issue", details=str(e))


@router.get("/maintenance/assigned", response_model=None)
def get_assigned_maintenance(
    filter_name: str = Query("open", alias="filter"),
    principal: Principal = Depends(require("maintenance", "work")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            logs = filter_logs(conn, filter_name, assigned_to_staff_id=principal.subject_id)
        return {"logs": logs}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("assigned_maintenance_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch assigned tasks", details=str(e))


@router.patch("/maintenance/{log_id}/status", response_model=None)
def update_maintenance_status(
    log_id: int,
    payload: WorkStatusPayload,
    principal: Principal = Depends(require("maintenance", "work")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Move an assigned maintenance task forward.

    Only the assigned staff member may do this. Starting work puts the room
    into Maintenance; completing it needs notes and frees the room.
    """
    try:
        with engine.begin() as conn:
            load_log_or_404(conn, principal, log_id, "work", check_assignee=True)
            result = change_log_status(conn, log_id, payload.status, payload.notes)
        return {"success": True, "message": f"Status updated to {payload.status.value}", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_status_update_failed", log_id=log_id, error=str(e))
        raise InternalServerError("Failed to update maintenance status", details=str(e))


@router.post("/maintenance/{log_id}/complete", response_model=None)
def complete_maintenance(
    log_id: int,
    payload: CompletionPayload,
    principal: Principal = Depends(require("maintenance", "work")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            load_log_or_404(conn, principal, log_id, "work", check_assignee=True)
            result = complete_log(conn, log_id, payload.resolution_notes)
        return {"success": True, "message": "Maintenance task completed", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("maintenance_completion_failed", log_id=log_id, error=str(e))
        raise InternalServerError("Failed to complete maintenance task", details=str(e))


@router.get("/service-requests", response_model=None)
def get_service_requests(
    status_filter: Optional[WorkStatus] = Query(None, alias="status"),
    assigned_only: bool = Query(False, description="Only requests assigned to me"),
    principal: Principal = Depends(require("service_request", "work")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            requests = list_service_requests(
                conn,
                branch_id=staff_branch_scope(principal),
                assigned_to_staff_id=principal.subject_id if assigned_only else None,
                statuses=(status_filter,) if status_filter else None,
            )
        return {"requests": requests}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_request_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch service requests", details=str(e))


@router.patch("/service-requests/{request_id}/status", response_model=None)
def update_service_request_status(
    request_id: int,
    payload: WorkStatusPayload,
    principal: Principal = Depends(require("service_request", "work")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Move an assigned service request forward. Completion charges the booking."""
    try:
        with engine.begin() as conn:
            load_service_request_or_404(conn, principal, request_id, "work", check_assignee=True)
            result = change_request_status(conn, request_id, payload.status, payload.notes)
        return {"success": True, "message": f"Status updated to {payload.status.value}", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_request_update_failed", request_id=request_id, error=str(e))
        raise InternalServerError("Failed to update service request", details=str(e))
