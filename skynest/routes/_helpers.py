"""
Internal helper functions for route handlers.

Loading a row and checking the caller may touch it always happens together,
so these helpers do both and raise the matching domain error.
"""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.engine import Connection

from skynest.db.readers.bookings import get_booking_details
from skynest.db.readers.maintenance import get_log
from skynest.db.readers.services import get_service_request
from skynest.errors import NotFound
from skynest.models.enums import Role
from skynest.services.access import authorize
from skynest.services.billing import with_balance
from skynest.services.sessions import Principal


def load_booking_or_404(
    conn: Connection, principal: Principal, booking_id: int, action: str = "read"
) -> dict[str, Any]:
    """
    Load a booking with balance fields and check the caller may act on it.

    Guests must own the booking and staff must work at its branch.

    Args:
        conn: Database connection
        principal: Authenticated caller
        booking_id: Booking to load
        action: Policy action on the "booking" resource

    Returns:
        dict: Booking details including paid/outstanding amounts

    Raises:
        NotFound: 404 if the booking doesn't exist
        PermissionDenied: 403 if the caller may not act on it
    """
    booking = get_booking_details(conn, booking_id)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")
    authorize(
        principal,
        "booking",
        action,
        owner_id=booking["guest_id"],
        branch_id=booking["branch_id"],
    )
    return with_balance(booking)


def load_log_or_404(
    conn: Connection,
    principal: Principal,
    log_id: int,
    action: str,
    check_assignee: bool = False,
) -> dict[str, Any]:
    log = get_log(conn, log_id)
    if log is None:
        raise NotFound("Maintenance log not found")
    if check_assignee:
        authorize(
            principal,
            "maintenance",
            action,
            branch_id=log["branch_id"],
            assignee_id=log["assigned_to_staff_id"],
        )
    else:
        authorize(principal, "maintenance", action, branch_id=log["branch_id"])
    return log


def load_service_request_or_404(
    conn: Connection,
    principal: Principal,
    request_id: int,
    action: str,
    check_assignee: bool = False,
) -> dict[str, Any]:
    request = get_service_request(conn, request_id)
    if request is None:
        raise NotFound("Service request not found")
    if check_assignee:
        authorize(
            principal,
            "service_request",
            action,
            owner_id=request["guest_id"],
            branch_id=request["branch_id"],
            assignee_id=request["assigned_to_staff_id"],
        )
    else:
        authorize(
            principal,
            "service_request",
            action,
            owner_id=request["guest_id"],
            branch_id=request["branch_id"],
        )
    return request


def staff_branch_scope(principal: Principal) -> Optional[int]:
    """Branch a listing must be limited to: the staff member's own, none for admins."""
    return principal.branch_id if principal.role is Role.STAFF else None
