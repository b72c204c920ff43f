from typing import Any, Optional

from sqlalchemy import case, func, select
from sqlalchemy.engine import Connection

from skynest.models.bookings import Booking
from skynest.models.enums import RoomStatus
from skynest.models.properties import (
    Amenity,
    Branch,
    Room,
    RoomImage,
    RoomType,
    RoomTypeAmenity,
)


def branch_exists(conn: Connection, branch_id: int) -> bool:
    """
    Check if a branch exists.

    Args:
        conn (Connection): An active SQLAlchemy database connection.
        branch_id (int): Branch ID to check.

    Returns:
        bool: True if the branch exists, False otherwise.
    """
    row = conn.execute(select(Branch.id).where(Branch.id == branch_id)).fetchone()
    return row is not None


def get_branch(conn: Connection, branch_id: int) -> Optional[dict[str, Any]]:
    row = conn.execute(select(Branch.__table__).where(Branch.id == branch_id)).mappings().fetchone()
    return dict(row) if row else None


def list_branches(conn: Connection, active_only: bool = True) -> list[dict[str, Any]]:
    """
    List branches with their room counts, ordered by name.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        active_only (bool): Skip deactivated branches.

    Returns:
        list[dict]: Branch rows with a ``room_count`` column.
    """
    room_counts = (
        select(Room.branch_id, func.count(Room.id).label("room_count"))
        .group_by(Room.branch_id)
        .subquery()
    )
    stmt = (
        select(Branch.__table__, func.coalesce(room_counts.c.room_count, 0).label("room_count"))
        .outerjoin(room_counts, room_counts.c.branch_id == Branch.id)
        .order_by(Branch.name)
    )
    if active_only:
        stmt = stmt.where(Branch.is_active.is_(True))
    return [dict(r) for r in conn.execute(stmt).mappings()]


def branch_email_taken(
    conn: Connection, email: str, exclude_branch_id: Optional[int] = None
) -> bool:
    stmt = select(Branch.id).where(func.lower(Branch.email) == email.lower())
    if exclude_branch_id is not None:
        stmt = stmt.where(Branch.id != exclude_branch_id)
    return conn.execute(stmt).fetchone() is not None


def count_rooms_in_branch(conn: Connection, branch_id: int) -> int:
    return conn.execute(
        select(func.count(Room.id)).where(Room.branch_id == branch_id)
    ).scalar_one()


def count_bookings_in_branch(conn: Connection, branch_id: int) -> int:
    return conn.execute(
        select(func.count(Booking.id))
        .join(Room, Booking.room_id == Room.id)
        .where(Room.branch_id == branch_id)
    ).scalar_one()


def _room_type_columns() -> list[Any]:
    return [
        RoomType.id,
        RoomType.branch_id,
        RoomType.name,
        RoomType.description,
        RoomType.base_price,
        RoomType.capacity,
        RoomType.bed_type,
        RoomType.size_sqm,
        RoomType.is_active,
        Branch.name.label("branch_name"),
        Branch.location.label("branch_location"),
    ]


def get_room_type(conn: Connection, room_type_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch one room type with its branch name and location.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        room_type_id (int): Room type ID.

    Returns:
        Optional[dict]: Room type row, or None if not found.
    """
    stmt = (
        select(*_room_type_columns())
        .join(Branch, RoomType.branch_id == Branch.id)
        .where(RoomType.id == room_type_id)
    )
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def list_room_types(
    conn: Connection,
    branch_id: Optional[int] = None,
    min_capacity: Optional[int] = None,
    active_only: bool = True,
) -> list[dict[str, Any]]:
    """
    List room types with total and currently Available room counts.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        branch_id (Optional[int]): Restrict to one branch.
        min_capacity (Optional[int]): Only types sleeping at least this many guests.
        active_only (bool): Skip deactivated room types.

    Returns:
        list[dict]: Room type rows with ``total_rooms`` and ``available_rooms``.
    """
    counts = (
        select(
            Room.room_type_id,
            func.count(Room.id).label("total_rooms"),
            func.sum(case((Room.status == RoomStatus.AVAILABLE, 1), else_=0)).label(
                "available_rooms"
            ),
        )
        .group_by(Room.room_type_id)
        .subquery()
    )
    stmt = (
        select(
            *_room_type_columns(),
            func.coalesce(counts.c.total_rooms, 0).label("total_rooms"),
            func.coalesce(counts.c.available_rooms, 0).label("available_rooms"),
        )
        .join(Branch, RoomType.branch_id == Branch.id)
        .outerjoin(counts, counts.c.room_type_id == RoomType.id)
        .order_by(Branch.name, RoomType.base_price)
    )
    if branch_id is not None:
        stmt = stmt.where(RoomType.branch_id == branch_id)
    if min_capacity is not None:
        stmt = stmt.where(RoomType.capacity >= min_capacity)
    if active_only:
        stmt = stmt.where(RoomType.is_active.is_(True), Branch.is_active.is_(True))
    return [dict(r) for r in conn.execute(stmt).mappings()]


def get_room_type_amenities(conn: Connection, room_type_id: int) -> list[dict[str, Any]]:
    stmt = (
        select(Amenity.id, Amenity.name, Amenity.icon)
        .join(RoomTypeAmenity, RoomTypeAmenity.amenity_id == Amenity.id)
        .where(RoomTypeAmenity.room_type_id == room_type_id)
        .order_by(Amenity.name)
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]


def get_room_type_images(conn: Connection, room_type_id: int) -> list[dict[str, Any]]:
    stmt = (
        select(RoomImage.id, RoomImage.url, RoomImage.alt_text, RoomImage.display_order)
        .where(RoomImage.room_type_id == room_type_id)
        .order_by(RoomImage.display_order, RoomImage.id)
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]


def count_rooms_of_type(conn: Connection, room_type_id: int) -> int:
    return conn.execute(
        select(func.count(Room.id)).where(Room.room_type_id == room_type_id)
    ).scalar_one()


def list_amenities(conn: Connection) -> list[dict[str, Any]]:
    stmt = select(Amenity.id, Amenity.name, Amenity.icon).order_by(Amenity.name)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def existing_amenity_ids(conn: Connection, amenity_ids: list[int]) -> set[int]:
    if not amenity_ids:
        return set()
    rows = conn.execute(select(Amenity.id).where(Amenity.id.in_(amenity_ids))).fetchall()
    return {r[0] for r in rows}


def amenity_name_taken(conn: Connection, name: str) -> bool:
    stmt = select(Amenity.id).where(func.lower(Amenity.name) == name.lower())
    return conn.execute(stmt).fetchone() is not None


def _room_columns() -> list[Any]:
    return [
        Room.id,
        Room.branch_id,
        Room.room_type_id,
        Room.room_number,
        Room.floor,
        Room.status,
        Room.last_cleaned,
        RoomType.name.label("room_type"),
        RoomType.base_price,
        RoomType.capacity,
        Branch.name.label("branch_name"),
    ]


def get_room(conn: Connection, room_id: int, for_update: bool = False) -> Optional[dict[str, Any]]:
    """
    Fetch one room with its type's price and capacity.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        room_id (int): Room ID.
        for_update (bool): Lock the room row until the transaction ends.

    Returns:
        Optional[dict]: Room row, or None if not found.
    """
    stmt = (
        select(*_room_columns())
        .join(RoomType, Room.room_type_id == RoomType.id)
        .join(Branch, Room.branch_id == Branch.id)
        .where(Room.id == room_id)
    )
    if for_update:
        stmt = stmt.with_for_update(of=Room)
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def list_rooms(
    conn: Connection,
    branch_id: Optional[int] = None,
    status: Optional[RoomStatus] = None,
    room_type_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    stmt = (
        select(*_room_columns())
        .join(RoomType, Room.room_type_id == RoomType.id)
        .join(Branch, Room.branch_id == Branch.id)
        .order_by(Branch.name, Room.room_number)
    )
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    if status is not None:
        stmt = stmt.where(Room.status == status)
    if room_type_id is not None:
        stmt = stmt.where(Room.room_type_id == room_type_id)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def list_candidate_room_ids(conn: Connection, room_type_id: int, branch_id: int) -> list[int]:
    """Room ids of a type in a branch that are not under maintenance, by room number."""
    stmt = (
        select(Room.id)
        .where(
            Room.room_type_id == room_type_id,
            Room.branch_id == branch_id,
            Room.status != RoomStatus.MAINTENANCE,
        )
        .order_by(Room.room_number)
    )
    return [r[0] for r in conn.execute(stmt)]


def room_number_taken(
    conn: Connection,
    branch_id: int,
    room_number: str,
    exclude_room_id: Optional[int] = None,
) -> bool:
    stmt = select(Room.id).where(Room.branch_id == branch_id, Room.room_number == room_number)
    if exclude_room_id is not None:
        stmt = stmt.where(Room.id != exclude_room_id)
    return conn.execute(stmt).fetchone() is not None


def count_bookings_for_room(conn: Connection, room_id: int) -> int:
    return conn.execute(
        select(func.count(Booking.id)).where(Booking.room_id == room_id)
    ).scalar_one()
