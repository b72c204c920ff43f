from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.engine import Engine

from skynest.db.readers.bookings import list_bookings, list_guest_bookings
from skynest.db.readers.payments import list_payments
from skynest.db.readers.services import list_service_usage
from skynest.dependencies import get_db_engine, require, require_principal
from skynest.errors import InternalServerError, SkyNestError
from skynest.models.enums import BookingStatus, Role
from skynest.routes._helpers import load_booking_or_404, staff_branch_scope
from skynest.schemas.bookings import BookingCancelPayload, BookingCreatePayload
from skynest.services.access import authorize
from skynest.services.billing import with_balance
from skynest.services.bookings import cancel_booking, create_booking
from skynest.services.sessions import Principal

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/bookings", status_code=status.HTTP_201_CREATED, response_model=None)
def create_booking_endpoint(
    payload: BookingCreatePayload,
    principal: Principal = Depends(require("booking", "create")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Create a Pending booking for the signed-in guest.

    The room row is locked for the length of the transaction, so two guests
    racing for overlapping dates on the same room cannot both succeed.

    Args:
        payload: Room (or room type + branch), dates, guests and requests

    Returns:
        dict: The new booking with amounts and outstanding balance

    Raises:
        BookingConflict: 400 when the room is taken for those dates
    """
    try:
        with engine.begin() as conn:
            booking = create_booking(
                conn,
                principal.subject_id,
                check_in=payload.check_in_date,
                check_out=payload.check_out_date,
                number_of_guests=payload.number_of_guests,
                room_id=payload.room_id,
                room_type_id=payload.room_type_id,
                branch_id=payload.branch_id,
                special_requests=payload.special_requests,
            )
        return {"success": True, "message": "Booking created successfully", "booking": booking}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("booking_creation_failed", guest_id=principal.subject_id, error=str(e))
        raise InternalServerError("Failed to create booking", details=str(e))


@router.get("/bookings", response_model=None)
def get_bookings(
    status_filter: Optional[BookingStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Reference, guest name or email"),
    principal: Principal = Depends(require_principal),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    List bookings visible to the caller.

    Guests see their own bookings, staff see their branch, admins see all.
    """
    try:
        with engine.connect() as conn:
            if principal.role is Role.GUEST:
                authorize(principal, "booking", "list_own")
                rows = list_guest_bookings(conn, principal.subject_id)
                if status_filter is not None:
                    rows = [r for r in rows if BookingStatus(r["status"]) is status_filter]
            else:
                authorize(principal, "booking", "list_branch")
                rows = list_bookings(
                    conn,
                    branch_id=staff_branch_scope(principal),
                    status=status_filter,
                    search=search,
                )
        return {"bookings": [with_balance(r) for r in rows]}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("booking_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch bookings", details=str(e))


@router.get("/bookings/{booking_id}", response_model=None)
def get_booking(
    booking_id: int,
    principal: Principal = Depends(require("booking", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Booking details with payments and charged services."""
    try:
        with engine.connect() as conn:
            booking = load_booking_or_404(conn, principal, booking_id)
            booking["payments"] = list_payments(conn, booking_id)
            booking["services"] = list_service_usage(conn, booking_id)
        return {"booking": booking}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("booking_fetch_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to fetch booking", details=str(e))


@router.post("/bookings/{booking_id}/cancel", response_model=None)
def cancel_booking_endpoint(
    booking_id: int,
    payload: Optional[BookingCancelPayload] = None,
    principal: Principal = Depends(require("booking", "cancel")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Cancel a Pending or Confirmed booking.

    Returns:
        dict: New status and the amount already paid, reported as refund_amount
    """
    try:
        with engine.begin() as conn:
            load_booking_or_404(conn, principal, booking_id, action="cancel")
            result = cancel_booking(conn, booking_id, payload.reason if payload else None)
        return {"success": True, "message": "Booking cancelled", **result}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("booking_cancel_failed", booking_id=booking_id, error=str(e))
        raise InternalServerError("Failed to cancel booking", details=str(e))
