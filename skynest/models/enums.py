"""Enumerations shared by models, schemas and services."""

from __future__ import annotations

from enum import Enum
from typing import Type

import sqlalchemy as sa


class Role(str, Enum):
    GUEST = "guest"
    STAFF = "staff"
    ADMIN = "admin"


class RoomStatus(str, Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"
    CLEANING = "Cleaning"


class BookingStatus(str, Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CHECKED_IN = "CheckedIn"
    CHECKED_OUT = "CheckedOut"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class PaymentMethod(str, Enum):
    CASH = "Cash"
    CREDIT_CARD = "CreditCard"
    DEBIT_CARD = "DebitCard"
    BANK_TRANSFER = "BankTransfer"
    ONLINE = "Online"


class Priority(str, Enum):
    LOW = "Low"
    NORMAL = "Normal"
    HIGH = "High"
    URGENT = "Urgent"


class WorkStatus(str, Enum):
    """Lifecycle shared by maintenance logs and service requests."""

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


# Bookings in these states hold their room for the booked nights
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
)

# Bookings whose nights count as occupied in reports
STAYED_BOOKING_STATUSES = (
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
    BookingStatus.CHECKED_OUT,
)

OPEN_WORK_STATUSES = (WorkStatus.PENDING, WorkStatus.IN_PROGRESS)

PRIORITY_ORDER = {
    Priority.URGENT: 0,
    Priority.HIGH: 1,
    Priority.NORMAL: 2,
    Priority.LOW: 3,
}


def db_enum(enum_cls: Type[Enum], name: str) -> sa.Enum:
    """Column type storing an enum's values (e.g. 'CheckedIn') rather than member names."""
    return sa.Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
        inherit_schema=True,
    )
