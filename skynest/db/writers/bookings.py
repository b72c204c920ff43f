from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from skynest.models.bookings import Booking, Payment
from skynest.models.enums import BookingStatus, PaymentStatus
from skynest.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

# Timestamp column stamped when a booking enters each status
STATUS_TIMESTAMPS = {
    BookingStatus.CONFIRMED: "confirmed_at",
    BookingStatus.CHECKED_IN: "checked_in_at",
    BookingStatus.CHECKED_OUT: "checked_out_at",
    BookingStatus.CANCELLED: "cancelled_at",
}


def insert_booking(conn: Connection, data: dict[str, Any]) -> int:
    """
    Insert a booking row.

    Args:
        conn (Connection): SQLAlchemy DB connection (caller holds the room lock).
        data (dict): Column values.

    Returns:
        int: New booking id.
    """
    result = conn.execute(insert(Booking).values(**data))
    return int(result.inserted_primary_key[0])


def update_booking_status(
    conn: Connection,
    booking_id: int,
    status: BookingStatus,
    cancellation_reason: Optional[str] = None,
) -> None:
    """
    Move a booking to a new status and stamp the matching timestamp column.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (int): Booking ID.
        status (BookingStatus): New status.
        cancellation_reason (Optional[str]): Stored when cancelling.
    """
    now = utc_now()
    values: dict[str, Any] = {"status": status, "updated_at": now}
    column = STATUS_TIMESTAMPS.get(status)
    if column:
        values[column] = now
    if cancellation_reason is not None:
        values["cancellation_reason"] = cancellation_reason
    conn.execute(update(Booking).where(Booking.id == booking_id).values(**values))


def set_booking_total(conn: Connection, booking_id: int, total_amount: Decimal) -> None:
    conn.execute(
        update(Booking)
        .where(Booking.id == booking_id)
        .values(total_amount=total_amount, updated_at=utc_now())
    )


def insert_payment(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(Payment).values(**data))
    return int(result.inserted_primary_key[0])


def mark_payment_completed(conn: Connection, payment_id: int) -> None:
    conn.execute(
        update(Payment)
        .where(Payment.id == payment_id)
        .values(payment_status=PaymentStatus.COMPLETED, paid_at=utc_now())
    )
