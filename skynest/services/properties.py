"""
Back-office management of branches, room types, amenities, rooms and the
service catalog.

Deletes are refused while dependent rows exist; those checks run here, in
the same transaction as the DELETE.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection

from skynest.db.readers.properties import (
    amenity_name_taken,
    branch_email_taken,
    branch_exists,
    count_bookings_for_room,
    count_bookings_in_branch,
    count_rooms_in_branch,
    count_rooms_of_type,
    existing_amenity_ids,
    get_branch,
    get_room,
    get_room_type,
    get_room_type_amenities,
    get_room_type_images,
    room_number_taken,
)
from skynest.db.readers.services import get_service
from skynest.db.writers.operations import insert_service, update_service
from skynest.db.writers.properties import (
    delete_branch,
    delete_room,
    delete_room_type,
    insert_amenity,
    insert_branch,
    insert_room,
    insert_room_type,
    replace_room_type_amenities,
    replace_room_type_images,
    update_branch,
    update_room,
    update_room_type,
)
from skynest.errors import Conflict, NotFound, ValidationFailed
from skynest.models.enums import RoomStatus
from skynest.services.maintenance import set_housekeeping_status

logger = structlog.get_logger(__name__)


def _present(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _require_branch(conn: Connection, branch_id: int) -> None:
    if not branch_exists(conn, branch_id):
        raise NotFound("Branch not found")


def _require_amenities(conn: Connection, amenity_ids: list[int]) -> None:
    missing = set(amenity_ids) - existing_amenity_ids(conn, amenity_ids)
    if missing:
        raise ValidationFailed("Unknown amenity ids", amenity_ids=sorted(missing))


def room_type_with_details(conn: Connection, room_type_id: int) -> dict[str, Any]:
    room_type = get_room_type(conn, room_type_id)
    if room_type is None:
        raise NotFound("Room type not found")
    room_type["amenities"] = get_room_type_amenities(conn, room_type_id)
    room_type["images"] = get_room_type_images(conn, room_type_id)
    room_type["room_count"] = count_rooms_of_type(conn, room_type_id)
    return room_type


# Branches


def create_branch(conn: Connection, data: dict[str, Any]) -> dict[str, Any]:
    if data.get("email") and branch_email_taken(conn, data["email"]):
        raise Conflict("A branch with this email already exists")
    branch_id = insert_branch(conn, data)
    logger.info("branch_created", branch_id=branch_id)
    return get_branch(conn, branch_id) or {"id": branch_id}


def edit_branch(conn: Connection, branch_id: int, data: dict[str, Any]) -> dict[str, Any]:
    _require_branch(conn, branch_id)
    values = _present(data)
    if values.get("email") and branch_email_taken(conn, values["email"], exclude_branch_id=branch_id):
        raise Conflict("A branch with this email already exists")
    if values:
        update_branch(conn, branch_id, values)
    logger.info("branch_updated", branch_id=branch_id, fields=sorted(values))
    return get_branch(conn, branch_id) or {"id": branch_id}


def remove_branch(conn: Connection, branch_id: int) -> None:
    """
    Delete a branch that owns no rooms and no bookings.

    Raises:
        NotFound: Unknown branch
        ValidationFailed: Rooms or bookings still reference it
    """
    _require_branch(conn, branch_id)
    rooms = count_rooms_in_branch(conn, branch_id)
    bookings = count_bookings_in_branch(conn, branch_id)
    if rooms or bookings:
        raise ValidationFailed(
            "Cannot delete a branch that has rooms or bookings; deactivate it instead",
            room_count=rooms,
            booking_count=bookings,
        )
    delete_branch(conn, branch_id)
    logger.info("branch_deleted", branch_id=branch_id)


# Room types


def create_room_type(conn: Connection, data: dict[str, Any]) -> dict[str, Any]:
    """
    Create a room type with its amenities and images in one transaction.

    Args:
        conn (Connection): SQLAlchemy DB connection inside a transaction.
        data (dict): RoomTypePayload fields; ``amenity_ids`` and ``images`` are split off.

    Returns:
        dict: The room type with amenities, images and room_count
    """
    data = dict(data)
    amenity_ids = data.pop("amenity_ids", None) or []
    images = data.pop("images", None) or []
    _require_branch(conn, data["branch_id"])
    _require_amenities(conn, amenity_ids)

    room_type_id = insert_room_type(conn, data)
    replace_room_type_amenities(conn, room_type_id, amenity_ids)
    replace_room_type_images(conn, room_type_id, images)
    logger.info("room_type_created", room_type_id=room_type_id, branch_id=data["branch_id"])
    return room_type_with_details(conn, room_type_id)


def edit_room_type(conn: Connection, room_type_id: int, data: dict[str, Any]) -> dict[str, Any]:
    """Update scalar fields and, when given, replace the amenity and image lists."""
    if get_room_type(conn, room_type_id) is None:
        raise NotFound("Room type not found")

    data = dict(data)
    amenity_ids = data.pop("amenity_ids", None)
    images = data.pop("images", None)
    values = _present(data)
    if values:
        update_room_type(conn, room_type_id, values)
    if amenity_ids is not None:
        _require_amenities(conn, amenity_ids)
        replace_room_type_amenities(conn, room_type_id, amenity_ids)
    if images is not None:
        replace_room_type_images(conn, room_type_id, images)

    logger.info("room_type_updated", room_type_id=room_type_id, fields=sorted(values))
    return room_type_with_details(conn, room_type_id)


def remove_room_type(conn: Connection, room_type_id: int) -> None:
    if get_room_type(conn, room_type_id) is None:
        raise NotFound("Room type not found")
    rooms = count_rooms_of_type(conn, room_type_id)
    if rooms:
        raise ValidationFailed(
            "Cannot delete a room type that still has rooms", room_count=rooms
        )
    delete_room_type(conn, room_type_id)
    logger.info("room_type_deleted", room_type_id=room_type_id)


def create_amenity(conn: Connection, name: str, icon: Optional[str]) -> dict[str, Any]:
    if amenity_name_taken(conn, name):
        raise Conflict("An amenity with this name already exists")
    amenity_id = insert_amenity(conn, name.strip(), icon)
    logger.info("amenity_created", amenity_id=amenity_id)
    return {"id": amenity_id, "name": name.strip(), "icon": icon}


# Rooms


def _check_room_type_in_branch(conn: Connection, room_type_id: int, branch_id: int) -> None:
    room_type = get_room_type(conn, room_type_id)
    if room_type is None:
        raise NotFound("Room type not found")
    if room_type["branch_id"] != branch_id:
        raise ValidationFailed("Room type does not belong to this branch")


def create_room(conn: Connection, data: dict[str, Any]) -> dict[str, Any]:
    """
    Add a room to a branch.

    Raises:
        NotFound: Unknown branch or room type
        ValidationFailed: Room type from another branch
        Conflict: Room number already used in the branch
    """
    _require_branch(conn, data["branch_id"])
    _check_room_type_in_branch(conn, data["room_type_id"], data["branch_id"])
    if room_number_taken(conn, data["branch_id"], data["room_number"]):
        raise Conflict("Room number already exists in this branch")

    room_id = insert_room(conn, data)
    logger.info("room_created", room_id=room_id, branch_id=data["branch_id"])
    return get_room(conn, room_id) or {"id": room_id}


def edit_room(conn: Connection, room_id: int, data: dict[str, Any]) -> dict[str, Any]:
    room = get_room(conn, room_id, for_update=True)
    if room is None:
        raise NotFound("Room not found")

    values = _present(data)
    if "room_type_id" in values:
        _check_room_type_in_branch(conn, values["room_type_id"], room["branch_id"])
    if "room_number" in values and room_number_taken(
        conn, room["branch_id"], values["room_number"], exclude_room_id=room_id
    ):
        raise Conflict("Room number already exists in this branch")
    if values.get("status") is RoomStatus.AVAILABLE:
        set_housekeeping_status(conn, room_id, values.pop("status"))
    if values:
        update_room(conn, room_id, values)

    logger.info("room_updated", room_id=room_id, fields=sorted(values))
    return get_room(conn, room_id) or {"id": room_id}


def remove_room(conn: Connection, room_id: int) -> None:
    if get_room(conn, room_id) is None:
        raise NotFound("Room not found")
    bookings = count_bookings_for_room(conn, room_id)
    if bookings:
        raise ValidationFailed(
            "Cannot delete a room that has bookings", booking_count=bookings
        )
    delete_room(conn, room_id)
    logger.info("room_deleted", room_id=room_id)


# Service catalog


def create_service(conn: Connection, data: dict[str, Any]) -> dict[str, Any]:
    service_id = insert_service(conn, data)
    logger.info("service_created", service_id=service_id)
    return get_service(conn, service_id) or {"id": service_id}


def edit_service(conn: Connection, service_id: int, data: dict[str, Any]) -> dict[str, Any]:
    if get_service(conn, service_id) is None:
        raise NotFound("Service not found")
    values = _present(data)
    if values:
        update_service(conn, service_id, values)
    logger.info("service_updated", service_id=service_id, fields=sorted(values))
    return get_service(conn, service_id) or {"id": service_id}
