from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from skynest.models.enums import BookingStatus, PaymentMethod


class AvailabilityPayload(BaseModel):
    """
    Schema for checking a single room over a date range.
    """

    room_id: int = Field(..., description="Room to check")
    check_in_date: date = Field(..., description="Arrival date")
    check_out_date: date = Field(..., description="Departure date (exclusive)")


class BookingCreatePayload(BaseModel):
    """
    Schema for creating a booking.

    Give either room_id, or room_type_id together with branch_id to let the
    service pick a free room of that type.
    """

    room_id: Optional[int] = Field(None, description="Specific room to book")
    room_type_id: Optional[int] = Field(None, description="Room type to book any free room of")
    branch_id: Optional[int] = Field(None, description="Branch of room_type_id")
    check_in_date: date = Field(..., description="Arrival date")
    check_out_date: date = Field(..., description="Departure date (exclusive)")
    number_of_guests: int = Field(1, ge=1, description="Number of guests staying")
    special_requests: Optional[str] = Field(None, max_length=2000, description="Free-text requests")


class BookingCancelPayload(BaseModel):
    reason: Optional[str] = Field(None, max_length=500, description="Cancellation reason")


class BookingStatusPayload(BaseModel):
    """
    Schema for a front-desk booking status change.
    """

    status: BookingStatus = Field(..., description="Target status")
    reason: Optional[str] = Field(None, max_length=500, description="Reason (used when cancelling)")


class PaymentPayload(BaseModel):
    amount: Decimal = Field(..., description="Amount paid, greater than 0")
    payment_method: PaymentMethod = Field(..., description="How the guest paid")
    transaction_id: Optional[str] = Field(None, max_length=100, description="External transaction id")
    notes: Optional[str] = Field(None, max_length=1000, description="Free text")


class BookingPaymentPayload(PaymentPayload):
    booking_id: int = Field(..., description="Booking being paid")
