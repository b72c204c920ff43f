from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from skynest.models.bookings import Payment
from skynest.models.enums import PaymentStatus
from skynest.models.principals import Staff
from skynest.utils.money import to_decimal


def completed_payment_total(conn: Connection, booking_id: int) -> Decimal:
    """
    Σ Completed payments for a booking.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (int): Booking ID.

    Returns:
        Decimal: Amount paid so far (0.00 when nothing was paid).
    """
    total = conn.execute(
        select(func.coalesce(func.sum(Payment.amount), 0)).where(
            Payment.booking_id == booking_id,
            Payment.payment_status == PaymentStatus.COMPLETED,
        )
    ).scalar_one()
    return to_decimal(total)


def list_payments(conn: Connection, booking_id: int) -> list[dict[str, Any]]:
    stmt = (
        select(
            Payment.id,
            Payment.payment_reference,
            Payment.amount,
            Payment.payment_method,
            Payment.payment_status,
            Payment.transaction_id,
            Payment.notes,
            Payment.created_at,
            Payment.paid_at,
            Payment.processed_by_staff_id,
            (Staff.first_name + " " + Staff.last_name).label("processed_by"),
        )
        .outerjoin(Staff, Payment.processed_by_staff_id == Staff.id)
        .where(Payment.booking_id == booking_id)
        .order_by(Payment.created_at, Payment.id)
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]


def get_payment(conn: Connection, payment_id: int, for_update: bool = False) -> Optional[dict[str, Any]]:
    stmt = select(Payment.__table__).where(Payment.id == payment_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None
