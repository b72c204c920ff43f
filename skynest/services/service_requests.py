"""
Guest service requests and the charges they produce.

A request snapshots the catalog price when it is made. Completing it writes
a ServiceUsage line and recomputes the booking's total_amount in the same
transaction.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection

from skynest.db.readers.principals import active_staff_exists
from skynest.db.readers.services import get_service, get_service_request
from skynest.db.writers.operations import (
    insert_service_request,
    insert_service_usage,
    update_service_request,
)
from skynest.errors import NotFound, ValidationFailed
from skynest.metrics import service_request_transitions
from skynest.models.enums import (
    ACTIVE_BOOKING_STATUSES,
    OPEN_WORK_STATUSES,
    BookingStatus,
    Priority,
    WorkStatus,
)
from skynest.services.billing import refresh_booking_total, sync_booking_status
from skynest.services.workflow import WORK_TRANSITIONS, ensure_transition
from skynest.utils.datetime import utc_now
from skynest.utils.money import to_decimal
from skynest.utils.references import service_request_reference

logger = structlog.get_logger(__name__)


def _load(conn: Connection, request_id: int) -> dict[str, Any]:
    request = get_service_request(conn, request_id, for_update=True)
    if request is None:
        raise NotFound("Service request not found")
    return request


def request_service(
    conn: Connection,
    booking: dict[str, Any],
    *,
    service_id: int,
    quantity: int = 1,
    priority: Priority = Priority.NORMAL,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    """
    Create a Pending service request against a guest's booking.

    Args:
        conn (Connection): SQLAlchemy DB connection inside a transaction.
        booking (dict): Booking row the service is charged to.
        service_id (int): Catalog service.
        quantity (int): Units requested (> 0).
        priority (Priority): Urgency for the staff queue.
        notes (Optional[str]): Free text from the guest.

    Returns:
        dict: The stored request with its branch and booking status

    Raises:
        ValidationFailed: Booking closed, service inactive or bad quantity
        NotFound: Unknown service
    """
    if quantity <= 0:
        raise ValidationFailed("Quantity must be greater than 0")
    if BookingStatus(booking["status"]) not in ACTIVE_BOOKING_STATUSES:
        raise ValidationFailed(
            "Services can only be requested for pending, confirmed or checked-in bookings"
        )

    service = get_service(conn, service_id)
    if service is None:
        raise NotFound("Service not found")
    if not service["is_active"]:
        raise ValidationFailed("This service is not currently available")

    reference = service_request_reference()
    request_id = insert_service_request(
        conn,
        {
            "request_reference": reference,
            "booking_id": booking["id"],
            "guest_id": booking["guest_id"],
            "service_id": service_id,
            "quantity": quantity,
            "unit_price": to_decimal(service["price"]),
            "priority": priority,
            "status": WorkStatus.PENDING,
            "notes": notes,
        },
    )
    service_request_transitions.labels(status=WorkStatus.PENDING.value).inc()
    logger.info(
        "service_requested",
        request_id=request_id,
        request_reference=reference,
        booking_id=booking["id"],
        service_id=service_id,
        quantity=quantity,
    )
    return _load(conn, request_id)


def cancel_request(conn: Connection, request_id: int) -> dict[str, Any]:
    """Guest cancellation. Only a request nobody has started can be withdrawn."""
    request = _load(conn, request_id)
    if WorkStatus(request["status"]) is not WorkStatus.PENDING:
        raise ValidationFailed("Only pending service requests can be cancelled")
    update_service_request(conn, request_id, {"status": WorkStatus.CANCELLED})
    service_request_transitions.labels(status=WorkStatus.CANCELLED.value).inc()
    logger.info("service_request_cancelled", request_id=request_id)
    return {"request_id": request_id, "status": WorkStatus.CANCELLED}


def assign_request(conn: Connection, request_id: int, staff_id: int) -> dict[str, Any]:
    request = _load(conn, request_id)
    if WorkStatus(request["status"]) not in OPEN_WORK_STATUSES:
        raise ValidationFailed("Only pending or in-progress requests can be assigned")
    if not active_staff_exists(conn, staff_id):
        raise NotFound("Staff member not found")
    update_service_request(conn, request_id, {"assigned_to_staff_id": staff_id})
    logger.info("service_request_assigned", request_id=request_id, staff_id=staff_id)
    return {
        "request_id": request_id,
        "assigned_to_staff_id": staff_id,
        "status": WorkStatus(request["status"]),
    }


def change_request_status(
    conn: Connection, request_id: int, target: WorkStatus, notes: Optional[str] = None
) -> dict[str, Any]:
    """
    Move a request along its lifecycle.

    Completing a request requires notes, records a ServiceUsage line at the
    snapshotted unit price and refreshes the booking total.

    Returns:
        dict: request_id, previous_status, status and, on completion, the
        charged amount and the booking's new total_amount
    """
    request = _load(conn, request_id)
    current = WorkStatus(request["status"])
    ensure_transition(WORK_TRANSITIONS, current, target)

    values: dict[str, Any] = {"status": target}
    if notes and notes.strip():
        values["notes"] = (
            f"{request['notes']}\n{notes.strip()}" if request["notes"] else notes.strip()
        )

    result: dict[str, Any] = {
        "request_id": request_id,
        "previous_status": current,
        "status": target,
    }

    if target is WorkStatus.COMPLETED:
        if not notes or not notes.strip():
            raise ValidationFailed("Completion notes are required to complete a service request")
        if BookingStatus(request["booking_status"]) in (BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
            raise ValidationFailed("Cannot charge a service to a cancelled booking")

        values["completed_at"] = utc_now()
        unit_price = to_decimal(request["unit_price"])
        charged = unit_price * request["quantity"]
        insert_service_usage(
            conn,
            {
                "booking_id": request["booking_id"],
                "service_id": request["service_id"],
                "service_request_id": request_id,
                "quantity": request["quantity"],
                "unit_price": unit_price,
                "total_price": charged,
            },
        )
        update_service_request(conn, request_id, values)
        result["charged_amount"] = charged
        result["booking_total_amount"] = refresh_booking_total(conn, request["booking_id"])
        sync_booking_status(conn, request["booking_id"])
    else:
        update_service_request(conn, request_id, values)

    service_request_transitions.labels(status=target.value).inc()
    logger.info(
        "service_request_status_changed",
        request_id=request_id,
        booking_id=request["booking_id"],
        previous_status=current.value,
        status=target.value,
    )
    return result
