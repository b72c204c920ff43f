"""
Balances, payments and the payment-driven booking status rule.

The amount paid is always Σ Completed payments read from the payments table;
nothing caches it on the booking. ``sync_booking_status`` is the only place
that changes a booking's status because of payment state, and every payment
mutation calls it inside the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from skynest.db.readers.bookings import get_booking_row
from skynest.db.readers.payments import completed_payment_total, get_payment
from skynest.db.writers.bookings import (
    insert_payment,
    mark_payment_completed,
    set_booking_total,
    update_booking_status,
)
from skynest.errors import NotFound, ValidationFailed
from skynest.metrics import booking_transitions, payment_amount, payments_recorded
from skynest.models.enums import BookingStatus, PaymentMethod, PaymentStatus
from skynest.models.operations import ServiceUsage
from skynest.utils.datetime import utc_now
from skynest.utils.money import to_decimal
from skynest.utils.references import payment_reference

logger = structlog.get_logger(__name__)

# Statuses in which no further money is accepted at all
CLOSED_FOR_PAYMENT = (BookingStatus.CANCELLED, BookingStatus.NO_SHOW)

# Guests additionally cannot pay after checking out; the front desk settles those
GUEST_CLOSED_FOR_PAYMENT = CLOSED_FOR_PAYMENT + (BookingStatus.CHECKED_OUT,)


@dataclass(frozen=True)
class BookingBalance:
    total_amount: Decimal
    paid_amount: Decimal

    @property
    def outstanding_amount(self) -> Decimal:
        return max(self.total_amount - self.paid_amount, Decimal("0.00"))

    @property
    def is_fully_paid(self) -> bool:
        return self.outstanding_amount == 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "total_amount": self.total_amount,
            "paid_amount": self.paid_amount,
            "outstanding_amount": self.outstanding_amount,
            "is_fully_paid": self.is_fully_paid,
        }


@dataclass(frozen=True)
class PaymentResult:
    payment_id: int
    payment_reference: str
    amount: Decimal
    booking_status: BookingStatus
    balance: BookingBalance

    def as_dict(self) -> dict[str, Any]:
        return {
            "payment_id": self.payment_id,
            "payment_reference": self.payment_reference,
            "amount": self.amount,
            "booking_status": self.booking_status,
            **self.balance.as_dict(),
            "remaining_balance": self.balance.outstanding_amount,
        }


def get_booking_balance(conn: Connection, booking: dict[str, Any]) -> BookingBalance:
    """
    Compute a booking's balance from its total and its Completed payments.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking (dict): Booking row (needs ``id`` and ``total_amount``).

    Returns:
        BookingBalance: total, paid and outstanding amounts
    """
    return BookingBalance(
        total_amount=to_decimal(booking["total_amount"]),
        paid_amount=completed_payment_total(conn, booking["id"]),
    )


def with_balance(row: dict[str, Any]) -> dict[str, Any]:
    """Add outstanding_amount to a booking listing row carrying paid_amount."""
    balance = BookingBalance(
        total_amount=to_decimal(row["total_amount"]),
        paid_amount=to_decimal(row.get("paid_amount")),
    )
    return {**row, **balance.as_dict()}


def sync_booking_status(conn: Connection, booking_id: int) -> BookingStatus:
    """
    Apply the payment-driven status rule to a booking.

    A Pending booking becomes Confirmed once Completed payments cover its
    total_amount. No other transition is made here and nothing ever moves
    back to Pending.

    Args:
        conn (Connection): SQLAlchemy DB connection (same transaction as the payment change).
        booking_id (int): Booking ID.

    Returns:
        BookingStatus: The booking's status after the rule was applied.
    """
    booking = get_booking_row(conn, booking_id)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")

    status = BookingStatus(booking["status"])
    if status is not BookingStatus.PENDING:
        return status

    balance = get_booking_balance(conn, booking)
    if balance.total_amount > 0 and balance.paid_amount >= balance.total_amount:
        update_booking_status(conn, booking_id, BookingStatus.CONFIRMED)
        booking_transitions.labels(status=BookingStatus.CONFIRMED.value).inc()
        logger.info("booking_confirmed_by_payment", booking_id=booking_id)
        return BookingStatus.CONFIRMED

    return status


def _ensure_open_for_payment(booking: dict[str, Any], closed_statuses: tuple[BookingStatus, ...]) -> None:
    status = BookingStatus(booking["status"])
    if status in closed_statuses:
        raise ValidationFailed(
            f"Cannot accept payments for a booking that is {status.value}",
            current_status=status,
        )


def record_payment(
    conn: Connection,
    booking_id: int,
    amount: Any,
    method: PaymentMethod,
    *,
    closed_statuses: tuple[BookingStatus, ...] = CLOSED_FOR_PAYMENT,
    processed_by_staff_id: Optional[int] = None,
    transaction_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> PaymentResult:
    """
    Record a Completed payment against a booking.

    The booking row is locked for the rest of the transaction so concurrent
    payments cannot both pass the outstanding-balance check.

    Args:
        conn (Connection): SQLAlchemy DB connection inside a transaction.
        booking_id (int): Booking being paid.
        amount: Payment amount (> 0 and <= outstanding).
        method (PaymentMethod): How the guest paid.
        closed_statuses (tuple): Booking statuses that refuse payments.
        processed_by_staff_id (Optional[int]): Front-desk staff taking the payment.
        transaction_id (Optional[str]): External transaction id, if any.
        notes (Optional[str]): Free text.

    Returns:
        PaymentResult: The payment plus the booking's new status and balance.

    Raises:
        NotFound: Booking does not exist
        ValidationFailed: Non-positive amount, closed booking, or overpayment
    """
    amount = to_decimal(amount)
    if amount <= 0:
        raise ValidationFailed("Payment amount must be greater than 0")

    booking = get_booking_row(conn, booking_id, for_update=True)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")

    _ensure_open_for_payment(booking, closed_statuses)

    balance = get_booking_balance(conn, booking)
    if amount > balance.outstanding_amount:
        raise ValidationFailed(
            "Payment amount exceeds outstanding balance",
            outstanding_amount=balance.outstanding_amount,
        )

    reference = payment_reference()
    payment_id = insert_payment(
        conn,
        {
            "payment_reference": reference,
            "booking_id": booking_id,
            "amount": amount,
            "payment_method": method,
            "payment_status": PaymentStatus.COMPLETED,
            "transaction_id": transaction_id,
            "processed_by_staff_id": processed_by_staff_id,
            "notes": notes,
            "paid_at": utc_now(),
        },
    )

    new_status = sync_booking_status(conn, booking_id)
    new_balance = BookingBalance(balance.total_amount, balance.paid_amount + amount)

    payments_recorded.labels(method=method.value).inc()
    payment_amount.observe(float(amount))
    logger.info(
        "payment_recorded",
        booking_id=booking_id,
        payment_id=payment_id,
        amount=str(amount),
        method=method.value,
        outstanding=str(new_balance.outstanding_amount),
    )

    return PaymentResult(
        payment_id=payment_id,
        payment_reference=reference,
        amount=amount,
        booking_status=new_status,
        balance=new_balance,
    )


def complete_pending_payment(conn: Connection, payment_id: int) -> PaymentResult:
    """
    Mark a Pending payment (e.g. a bank transfer that has cleared) as Completed.

    Raises:
        NotFound: Payment does not exist
        ValidationFailed: Payment is not Pending, the booking is Cancelled or
            NoShow, or the payment would overpay the booking
    """
    payment = get_payment(conn, payment_id, for_update=True)
    if payment is None:
        raise NotFound(f"Payment {payment_id} not found")
    if PaymentStatus(payment["payment_status"]) is not PaymentStatus.PENDING:
        raise ValidationFailed("Only pending payments can be completed")

    booking = get_booking_row(conn, payment["booking_id"], for_update=True)
    if booking is None:
        raise NotFound(f"Booking {payment['booking_id']} not found")
    _ensure_open_for_payment(booking, CLOSED_FOR_PAYMENT)

    amount = to_decimal(payment["amount"])
    balance = get_booking_balance(conn, booking)
    if amount > balance.outstanding_amount:
        raise ValidationFailed(
            "Payment amount exceeds outstanding balance",
            outstanding_amount=balance.outstanding_amount,
        )

    mark_payment_completed(conn, payment_id)
    new_status = sync_booking_status(conn, booking["id"])

    method = PaymentMethod(payment["payment_method"])
    payments_recorded.labels(method=method.value).inc()
    payment_amount.observe(float(amount))
    logger.info("pending_payment_completed", payment_id=payment_id, booking_id=booking["id"])

    return PaymentResult(
        payment_id=payment_id,
        payment_reference=payment["payment_reference"],
        amount=amount,
        booking_status=new_status,
        balance=BookingBalance(balance.total_amount, balance.paid_amount + amount),
    )


def refresh_booking_total(conn: Connection, booking_id: int) -> Decimal:
    """
    Recompute total_amount = base_amount + Σ service usage for a booking.

    Returns:
        Decimal: The new total
    """
    booking = get_booking_row(conn, booking_id)
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")

    services = conn.execute(
        select(func.coalesce(func.sum(ServiceUsage.total_price), 0)).where(
            ServiceUsage.booking_id == booking_id
        )
    ).scalar_one()

    total = to_decimal(booking["base_amount"]) + to_decimal(services)
    set_booking_total(conn, booking_id, total)
    return total
