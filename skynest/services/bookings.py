"""
Booking lifecycle: create, check in, check out, cancel, no-show.

Creation is atomic per room: the room row is locked before the overlap check
and stays locked until the booking insert commits, so two overlapping
requests for the same room serialize and the second one sees the first.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from skynest.db.readers.bookings import get_booking_details, get_booking_row
from skynest.db.readers.properties import get_room, get_room_type, list_candidate_room_ids
from skynest.db.writers.bookings import insert_booking, update_booking_status
from skynest.db.writers.properties import set_room_status
from skynest.errors import BookingConflict, NotFound, ValidationFailed
from skynest.metrics import booking_conflicts, booking_transitions, bookings_created
from skynest.models.enums import BookingStatus, RoomStatus
from skynest.services.availability import evaluate_room, validate_stay_dates
from skynest.services.billing import get_booking_balance, with_balance
from skynest.services.workflow import BOOKING_TRANSITIONS, ensure_transition
from skynest.utils.datetime import utc_today
from skynest.utils.money import to_decimal
from skynest.utils.references import booking_reference

logger = structlog.get_logger(__name__)

OVERLAP_CONSTRAINT = "ex_bookings_room_no_overlap"

# Room status a booking transition leaves behind
ROOM_STATUS_AFTER = {
    BookingStatus.CHECKED_IN: RoomStatus.OCCUPIED,
    BookingStatus.CHECKED_OUT: RoomStatus.CLEANING,
}


def _lock_bookable_room(
    conn: Connection, room_id: int, check_in: date, check_out: date
) -> dict[str, Any]:
    room = get_room(conn, room_id, for_update=True)
    if room is None:
        raise NotFound("Room not found")

    result = evaluate_room(conn, room, check_in, check_out)
    if not result.available:
        booking_conflicts.inc()
        payload = result.as_dict()
        raise BookingConflict(
            result.reason or "Room is not available for the selected dates",
            conflicting_bookings=payload.get("conflicting_bookings", []),
        )
    return room


def _pick_room_of_type(
    conn: Connection, room_type_id: int, branch_id: int, check_in: date, check_out: date
) -> dict[str, Any]:
    room_type = get_room_type(conn, room_type_id)
    if room_type is None or room_type["branch_id"] != branch_id:
        raise NotFound("Room type not found in this branch")

    for room_id in list_candidate_room_ids(conn, room_type_id, branch_id):
        room = get_room(conn, room_id, for_update=True)
        if room is not None and evaluate_room(conn, room, check_in, check_out).available:
            return room

    booking_conflicts.inc()
    raise ValidationFailed("No rooms of this type are available for the selected dates")


def create_booking(
    conn: Connection,
    guest_id: int,
    *,
    check_in: date,
    check_out: date,
    number_of_guests: int = 1,
    room_id: Optional[int] = None,
    room_type_id: Optional[int] = None,
    branch_id: Optional[int] = None,
    special_requests: Optional[str] = None,
    today: Optional[date] = None,
) -> dict[str, Any]:
    """
    Create a Pending booking for a guest.

    Either ``room_id`` or ``room_type_id`` plus ``branch_id`` selects the room;
    with a room type the first free room of that type in the branch is used.

    Args:
        conn (Connection): SQLAlchemy DB connection inside a transaction.
        guest_id (int): Booking guest.
        check_in (date): Arrival date (today or later).
        check_out (date): Departure date (after check_in).
        number_of_guests (int): Must fit the room type's capacity.
        room_id, room_type_id, branch_id: Room selection.
        special_requests (Optional[str]): Free text.
        today (Optional[date]): Override for the current date.

    Returns:
        dict: Booking details with balance fields

    Raises:
        ValidationFailed: Bad dates, capacity exceeded or nothing free
        BookingConflict: The chosen room overlaps an active booking
        NotFound: Unknown room or room type
    """
    today = today or utc_today()
    if check_in < today:
        raise ValidationFailed("Check-in date cannot be in the past")
    nights = validate_stay_dates(check_in, check_out)

    if room_id is not None:
        room = _lock_bookable_room(conn, room_id, check_in, check_out)
    elif room_type_id is not None and branch_id is not None:
        room = _pick_room_of_type(conn, room_type_id, branch_id, check_in, check_out)
    else:
        raise ValidationFailed("Either room_id or room_type_id with branch_id is required")

    if number_of_guests > room["capacity"]:
        raise ValidationFailed(
            f"This room accommodates at most {room['capacity']} guests",
            capacity=room["capacity"],
        )

    amount = to_decimal(room["base_price"]) * nights
    reference = booking_reference()
    try:
        booking_id = insert_booking(
            conn,
            {
                "booking_reference": reference,
                "guest_id": guest_id,
                "room_id": room["id"],
                "check_in_date": check_in,
                "check_out_date": check_out,
                "number_of_guests": number_of_guests,
                "status": BookingStatus.PENDING,
                "base_amount": amount,
                "total_amount": amount,
                "special_requests": special_requests,
            },
        )
    except IntegrityError as e:
        if OVERLAP_CONSTRAINT in str(e.orig):
            booking_conflicts.inc()
            raise BookingConflict("Room is not available for the selected dates") from e
        raise

    bookings_created.labels(branch_id=str(room["branch_id"])).inc()
    logger.info(
        "booking_created",
        booking_id=booking_id,
        booking_reference=reference,
        guest_id=guest_id,
        room_id=room["id"],
        nights=nights,
    )

    details = get_booking_details(conn, booking_id)
    if details is None:
        raise NotFound(f"Booking {booking_id} not found")
    return with_balance(details)


def _apply_transition(
    conn: Connection,
    booking: dict[str, Any],
    target: BookingStatus,
    reason: Optional[str] = None,
) -> None:
    current = BookingStatus(booking["status"])
    ensure_transition(BOOKING_TRANSITIONS, current, target)

    update_booking_status(
        conn,
        booking["id"],
        target,
        cancellation_reason=reason if target is BookingStatus.CANCELLED else None,
    )
    room_status = ROOM_STATUS_AFTER.get(target)
    if room_status is not None:
        set_room_status(conn, booking["room_id"], room_status)

    booking_transitions.labels(status=target.value).inc()
    logger.info(
        "booking_status_changed",
        booking_id=booking["id"],
        previous_status=current.value,
        status=target.value,
    )


def _locked_booking(conn: Connection, booking_id: int) -> dict[str, Any]:
    booking = get_booking_row(conn, booking_id, for_update=True)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")
    return booking


def change_booking_status(
    conn: Connection,
    booking_id: int,
    target: BookingStatus,
    reason: Optional[str] = None,
) -> dict[str, Any]:
    """
    Front-desk status change (check-in, check-out, cancel, no-show).

    Check-in marks the room Occupied and check-out marks it Cleaning.

    Returns:
        dict: booking_id, previous_status, status and the booking's balance
    """
    booking = _locked_booking(conn, booking_id)
    previous = BookingStatus(booking["status"])
    _apply_transition(conn, booking, target, reason)

    return {
        "booking_id": booking_id,
        "previous_status": previous,
        "status": target,
        **get_booking_balance(conn, booking).as_dict(),
    }


def check_in_guest(conn: Connection, booking_id: int) -> dict[str, Any]:
    """
    Guest self check-in.

    Only a Confirmed, fully paid booking can be checked in this way.

    Raises:
        ValidationFailed: Booking is not Confirmed or still has a balance
    """
    booking = _locked_booking(conn, booking_id)
    if BookingStatus(booking["status"]) is not BookingStatus.CONFIRMED:
        raise ValidationFailed("Only confirmed bookings can be checked in")

    balance = get_booking_balance(conn, booking)
    if not balance.is_fully_paid:
        raise ValidationFailed(
            "Booking must be fully paid before check-in",
            outstanding_amount=balance.outstanding_amount,
        )

    _apply_transition(conn, booking, BookingStatus.CHECKED_IN)
    return {"booking_id": booking_id, "status": BookingStatus.CHECKED_IN, **balance.as_dict()}


def cancel_booking(conn: Connection, booking_id: int, reason: Optional[str]) -> dict[str, Any]:
    """
    Cancel a Pending or Confirmed booking.

    Completed payments are not reversed here; their sum is reported as
    refund_amount for the cashier to settle.

    Returns:
        dict: booking_id, status and refund_amount
    """
    booking = _locked_booking(conn, booking_id)
    _apply_transition(conn, booking, BookingStatus.CANCELLED, reason or "Cancelled by request")
    balance = get_booking_balance(conn, booking)
    return {
        "booking_id": booking_id,
        "status": BookingStatus.CANCELLED,
        "refund_amount": balance.paid_amount,
    }
