from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from skynest.models.bookings import Booking
from skynest.models.operations import Review
from skynest.models.principals import Guest
from skynest.models.properties import Branch, Room, RoomType


def _scoped(stmt: Any, room_type_id: Optional[int], branch_id: Optional[int]) -> Any:
    if room_type_id is not None:
        stmt = stmt.where(Room.room_type_id == room_type_id)
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    return stmt


def list_reviews(
    conn: Connection,
    room_type_id: Optional[int] = None,
    branch_id: Optional[int] = None,
    limit: int = 50,
) -> list[dict[str, Any]]:
    """
    Public review listing, newest first.

    Only the reviewer's first name and last initial are exposed.
    """
    stmt = (
        select(
            Review.id,
            Review.rating,
            Review.title,
            Review.comment,
            Review.created_at,
            Guest.first_name,
            func.substr(Guest.last_name, 1, 1).label("last_initial"),
            RoomType.name.label("room_type"),
            Branch.name.label("branch_name"),
        )
        .select_from(Review)
        .join(Booking, Review.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
        .join(RoomType, Room.room_type_id == RoomType.id)
        .join(Branch, Room.branch_id == Branch.id)
        .join(Guest, Review.guest_id == Guest.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(limit)
    )
    return [dict(r) for r in conn.execute(_scoped(stmt, room_type_id, branch_id)).mappings()]


def rating_summary(
    conn: Connection, room_type_id: Optional[int] = None, branch_id: Optional[int] = None
) -> dict[str, Any]:
    stmt = (
        select(func.count(Review.id).label("review_count"), func.avg(Review.rating).label("average"))
        .select_from(Review)
        .join(Booking, Review.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
    )
    row = conn.execute(_scoped(stmt, room_type_id, branch_id)).mappings().one()
    average = row["average"]
    return {
        "review_count": row["review_count"],
        "average_rating": round(float(average), 2) if average is not None else None,
    }


def review_exists_for_booking(conn: Connection, booking_id: int) -> bool:
    return conn.execute(select(Review.id).where(Review.booking_id == booking_id)).fetchone() is not None
