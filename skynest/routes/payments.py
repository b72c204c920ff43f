from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.engine import Engine

from skynest.db.readers.payments import list_payments
from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, SkyNestError
from skynest.models.enums import Role
from skynest.routes._helpers import load_booking_or_404
from skynest.schemas.bookings import BookingPaymentPayload
from skynest.services.billing import (
    CLOSED_FOR_PAYMENT,
    GUEST_CLOSED_FOR_PAYMENT,
    get_booking_balance,
    record_payment,
)
from skynest.services.sessions import Principal

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/payments", status_code=status.HTTP_201_CREATED, response_model=None)
def create_payment(
    payload: BookingPaymentPayload,
    principal: Principal = Depends(require("payment", "create")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Record a Completed payment for a booking.

    Guests may only pay their own bookings, and not after checking out.
    Staff payments are recorded with the staff member as processor.

    Returns:
        dict: Payment id/reference, the booking's new status and balance
    """
    try:
        with engine.begin() as conn:
            load_booking_or_404(conn, principal, payload.booking_id)
            is_guest = principal.role is Role.GUEST
            result = record_payment(
                conn,
                payload.booking_id,
                payload.amount,
                payload.payment_method,
                closed_statuses=GUEST_CLOSED_FOR_PAYMENT if is_guest else CLOSED_FOR_PAYMENT,
                processed_by_staff_id=principal.subject_id if principal.role is Role.STAFF else None,
                transaction_id=payload.transaction_id,
                notes=payload.notes,
            )
        return {"success": True, "message": "Payment recorded", "payment": result.as_dict()}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("payment_failed", booking_id=payload.booking_id, error=str(e))
        raise InternalServerError("Failed to process payment", details=str(e))


@router.get("/payments", response_model=None)
def get_payments(
    booking_id: int = Query(..., description="Booking whose payments to list"),
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
