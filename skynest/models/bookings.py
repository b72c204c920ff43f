# models/bookings.py

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from skynest.config import SCHEMA
from skynest.models.base import Base
from skynest.models.enums import (
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    db_enum,
)


class Booking(Base):
    """
    A reservation of one room by one guest over [check_in_date, check_out_date).

    base_amount is the room charge agreed when the booking was made
    (base price x nights). total_amount is base_amount plus every charged
    service line; it only changes when service usage is recorded.

    Paid and outstanding amounts are not stored: they are always computed from
    the Completed rows in payments.
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("check_out_date > check_in_date", name="ck_bookings_date_order"),
        Index("ix_bookings_room_dates", "room_id", "check_in_date", "check_out_date"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True)
    booking_reference = Column(String(40), nullable=False, unique=True, index=True)
    guest_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.guests.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    room_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.rooms.id", ondelete="RESTRICT"), nullable=False
    )
    check_in_date = Column(Date, nullable=False)
    check_out_date = Column(Date, nullable=False)
    number_of_guests = Column(Integer, nullable=False, default=1)
    status = Column(
        db_enum(BookingStatus, "booking_status"), nullable=False, default=BookingStatus.PENDING
    )
    base_amount = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    special_requests = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    checked_in_at = Column(DateTime(timezone=True), nullable=True)
    checked_out_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)


class Payment(Base):
    """
    A monetary transaction against a booking.

    Only Completed payments count towards the amount paid.
    """

    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True)
    payment_reference = Column(String(40), nullable=False, unique=True)
    booking_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(db_enum(PaymentMethod, "payment_method"), nullable=False)
    payment_status = Column(
        db_enum(PaymentStatus, "payment_status"), nullable=False, default=PaymentStatus.PENDING
    )
    transaction_id = Column(String(100), nullable=True)
    processed_by_staff_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.staff.id", ondelete="SET NULL"), nullable=True
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
