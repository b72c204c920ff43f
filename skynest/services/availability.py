"""Room availability for a candidate stay."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.engine import Connection

from skynest.db.readers.bookings import count_active_bookings_per_room, find_conflicting_bookings
from skynest.db.readers.properties import get_room, list_rooms
from skynest.errors import NotFound, ValidationFailed
from skynest.models.enums import RoomStatus
from skynest.utils.datetime import nights_between
from skynest.utils.money import to_decimal


@dataclass
class AvailabilityResult:
    available: bool
    room: dict[str, Any]
    nights: int
    price_per_night: Decimal
    reason: Optional[str] = None
    conflicts: list[dict[str, Any]] = field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return self.price_per_night * self.nights

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "available": self.available,
            "room": {
                "id": self.room["id"],
                "room_number": self.room["room_number"],
                "room_type": self.room["room_type"],
                "branch_name": self.room["branch_name"],
                "capacity": self.room["capacity"],
                "status": self.room["status"],
            },
        }
        if self.available:
            payload["message"] = "Room is available for the selected dates"
            payload["total_amount"] = self.total_amount
            payload["booking_details"] = {
                "nights": self.nights,
                "price_per_night": self.price_per_night,
                "base_amount": self.total_amount,
                "total_amount": self.total_amount,
            }
        else:
            payload["message"] = self.reason
            payload["conflicting_bookings"] = [
                {
                    "booking_reference": c["booking_reference"],
                    "check_in_date": c["check_in_date"],
                    "check_out_date": c["check_out_date"],
                    "status": c["status"],
                }
                for c in self.conflicts
            ]
        return payload


def validate_stay_dates(check_in: date, check_out: date) -> int:
    """
    Validate a stay and return its number of nights.

    Raises:
        ValidationFailed: check_out is not after check_in
    """
    if check_out <= check_in:
        raise ValidationFailed("Check-out date must be after check-in date")
    return nights_between(check_in, check_out)


def evaluate_room(
    conn: Connection,
    room: dict[str, Any],
    check_in: date,
    check_out: date,
) -> AvailabilityResult:
    """Availability of an already-loaded (possibly locked) room row."""
    nights = validate_stay_dates(check_in, check_out)
    price = to_decimal(room["base_price"])

    if RoomStatus(room["status"]) is RoomStatus.MAINTENANCE:
        return AvailabilityResult(
            available=False,
            room=room,
            nights=nights,
            price_per_night=price,
            reason="Room is currently under maintenance",
        )

    conflicts = find_conflicting_bookings(conn, room["id"], check_in, check_out)
    if conflicts:
        return AvailabilityResult(
            available=False,
            room=room,
            nights=nights,
            price_per_night=price,
            reason="Room is not available for the selected dates",
            conflicts=conflicts,
        )

    return AvailabilityResult(available=True, room=room, nights=nights, price_per_night=price)


def check_room_availability(
    conn: Connection,
    room_id: int,
    check_in: date,
    check_out: date,
    for_update: bool = False,
) -> AvailabilityResult:
    """
    Decide whether a room can be booked for [check_in, check_out).

    Args:
        conn (Connection): SQLAlchemy DB connection.
        room_id (int): Room to check.
        check_in (date): Arrival date.
        check_out (date): Departure date (exclusive).
        for_update (bool): Lock the room row so the answer holds until commit.

    Returns:
        AvailabilityResult

    Raises:
        ValidationFailed: Invalid date range
        NotFound: Unknown room
    """
    validate_stay_dates(check_in, check_out)
    room = get_room(conn, room_id, for_update=for_update)
    if room is None:
        raise NotFound("Room not found")
    return evaluate_room(conn, room, check_in, check_out)


def list_room_availability(
    conn: Connection,
    check_in: date,
    check_out: date,
    branch_id: Optional[int] = None,
) -> dict[str, Any]:
    """
    Availability of every room (optionally in one branch) for a date range.

    Returns:
        dict: ``rooms`` with booking_count/available/availability_status and ``summary`` totals
    """
    nights = validate_stay_dates(check_in, check_out)
    booking_counts = count_active_bookings_per_room(conn, check_in, check_out, branch_id)

    rooms = []
    for room in list_rooms(conn, branch_id=branch_id):
        booking_count = booking_counts.get(room["id"], 0)
        if RoomStatus(room["status"]) is RoomStatus.MAINTENANCE:
            availability_status = "Maintenance"
        elif booking_count:
            availability_status = "Booked"
        else:
            availability_status = "Available"
        price = to_decimal(room["base_price"])
        rooms.append(
            {
                **room,
                "booking_count": booking_count,
                "available": availability_status == "Available",
                "availability_status": availability_status,
                "total_amount": price * nights,
            }
        )

    available = sum(1 for r in rooms if r["available"])
    return {
        "check_in_date": check_in,
        "check_out_date": check_out,
        "nights": nights,
        "rooms": rooms,
        "summary": {
            "total_rooms": len(rooms),
            "available_rooms": available,
            "unavailable_rooms": len(rooms) - available,
        },
    }
