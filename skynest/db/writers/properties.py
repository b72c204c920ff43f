from typing import Any, Optional

import structlog
from sqlalchemy import delete, insert, update
from sqlalchemy.engine import Connection

from skynest.models.enums import RoomStatus
from skynest.models.properties import (
    Amenity,
    Branch,
    Room,
    RoomImage,
    RoomType,
    RoomTypeAmenity,
)
from skynest.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_branch(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(Branch).values(**data))
    return int(result.inserted_primary_key[0])


def update_branch(conn: Connection, branch_id: int, data: dict[str, Any]) -> None:
    """
    Update branch fields.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        branch_id (int): Branch ID.
        data (dict): Fields to update (only non-None values).
    """
    data["updated_at"] = utc_now()
    conn.execute(update(Branch).where(Branch.id == branch_id).values(**data))


def delete_branch(conn: Connection, branch_id: int) -> None:
    conn.execute(delete(Branch).where(Branch.id == branch_id))


def insert_room_type(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(RoomType).values(**data))
    return int(result.inserted_primary_key[0])


def update_room_type(conn: Connection, room_type_id: int, data: dict[str, Any]) -> None:
    data["updated_at"] = utc_now()
    conn.execute(update(RoomType).where(RoomType.id == room_type_id).values(**data))


def delete_room_type(conn: Connection, room_type_id: int) -> None:
    conn.execute(delete(RoomTypeAmenity).where(RoomTypeAmenity.room_type_id == room_type_id))
    conn.execute(delete(RoomImage).where(RoomImage.room_type_id == room_type_id))
    conn.execute(delete(RoomType).where(RoomType.id == room_type_id))


def replace_room_type_amenities(conn: Connection, room_type_id: int, amenity_ids: list[int]) -> None:
    """
    Replace the amenity set of a room type.

    Must run inside the caller's transaction so a failure leaves the old set intact.
    """
    conn.execute(delete(RoomTypeAmenity).where(RoomTypeAmenity.room_type_id == room_type_id))
    if amenity_ids:
        conn.execute(
            insert(RoomTypeAmenity),
            [{"room_type_id": room_type_id, "amenity_id": a} for a in dict.fromkeys(amenity_ids)],
        )


def replace_room_type_images(
    conn: Connection, room_type_id: int, images: list[dict[str, Any]]
) -> None:
    """
    Replace the ordered image list of a room type.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        room_type_id (int): Room type ID.
        images (list[dict]): Dicts with ``url`` and optional ``alt_text``; list order
            becomes display_order.
    """
    conn.execute(delete(RoomImage).where(RoomImage.room_type_id == room_type_id))
    if images:
        conn.execute(
            insert(RoomImage),
            [
                {
                    "room_type_id": room_type_id,
                    "url": image["url"],
                    "alt_text": image.get("alt_text"),
                    "display_order": position,
                }
                for position, image in enumerate(images)
            ],
        )


def insert_amenity(conn: Connection, name: str, icon: Optional[str]) -> int:
    result = conn.execute(insert(Amenity).values(name=name, icon=icon))
    return int(result.inserted_primary_key[0])


def insert_room(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(Room).values(**data))
    return int(result.inserted_primary_key[0])


def update_room(conn: Connection, room_id: int, data: dict[str, Any]) -> None:
    data["updated_at"] = utc_now()
    conn.execute(update(Room).where(Room.id == room_id).values(**data))


def delete_room(conn: Connection, room_id: int) -> None:
    conn.execute(delete(Room).where(Room.id == room_id))


def set_room_status(conn: Connection, room_id: int, status: RoomStatus) -> None:
    """
    Set a room's housekeeping status.

    Moving a room to Available also stamps last_cleaned.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        room_id (int): Room ID.
        status (RoomStatus): New status.
    """
    now = utc_now()
    values: dict[str, Any] = {"status": status, "updated_at": now}
    if status is RoomStatus.AVAILABLE:
        values["last_cleaned"] = now
    conn.execute(update(Room).where(Room.id == room_id).values(**values))
    logger.info("room_status_changed", room_id=room_id, status=status.value)
