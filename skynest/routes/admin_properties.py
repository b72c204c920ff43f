"""Admin management of branches, room types, rooms, amenities and the service catalog."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.engine import Engine

from skynest.config import Settings, get_settings
from skynest.db.readers.properties import (
    get_branch,
    get_room,
    list_amenities,
    list_branches,
    list_room_types,
    list_rooms,
)
from skynest.db.readers.services import list_catalog
from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, NotFound, SkyNestError
from skynest.models.enums import RoomStatus
from skynest.schemas.operations import ServicePayload, ServiceUpdatePayload
from skynest.schemas.properties import (
    AmenityPayload,
    BranchPayload,
    BranchUpdatePayload,
    RoomPayload,
    RoomTypePayload,
    RoomTypeUpdatePayload,
    RoomUpdatePayload,
)
from skynest.services.properties import (
    create_amenity,
    create_branch,
    create_room,
    create_room_type,
    create_service,
    edit_branch,
    edit_room,
    edit_room_type,
    edit_service,
    remove_branch,
    remove_room,
    remove_room_type,
    room_type_with_details,
)
from skynest.services.sessions import Principal
from skynest.services.uploads import save_image

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/admin")


# Branches


@router.get("/branches", response_model=None)
def get_all_branches(
    principal: Principal = Depends(require("branch", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"branches": list_branches(conn, active_only=False)}
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_branch_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch branches", details=str(e))


@router.get("/branches/{branch_id}", response_model=None)
def get_branch_endpoint(
    branch_id: int,
    principal: Principal = Depends(require("branch", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            branch = get_branch(conn, branch_id)
        if branch is None:
            raise NotFound("Branch not found")
        return {"branch": branch}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("branch_fetch_failed", branch_id=branch_id, error=str(e))
        raise InternalServerError("Failed to fetch branch", details=str(e))


@router.post("/branches", status_code=status.HTTP_201_CREATED, response_model=None)
def create_branch_endpoint(
    payload: BranchPayload,
    principal: Principal = Depends(require("branch", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            branch = create_branch(conn, payload.model_dump())
        return {"success": True, "message": "Branch created", "branch": branch}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("branch_create_failed", error=str(e))
        raise InternalServerError("Failed to create branch", details=str(e))


@router.put("/branches/{branch_id}", response_model=None)
def update_branch_endpoint(
    branch_id: int,
    payload: BranchUpdatePayload,
    principal: Principal = Depends(require("branch", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            branch = edit_branch(conn, branch_id, payload.model_dump())
        return {"success": True, "message": "Branch updated", "branch": branch}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("branch_update_failed", branch_id=branch_id, error=str(e))
        raise InternalServerError("Failed to update branch", details=str(e))


@router.delete("/branches/{branch_id}", response_model=None)
def delete_branch_endpoint(
    branch_id: int,
    principal: Principal = Depends(require("branch", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            remove_branch(conn, branch_id)
        return {"success": True, "message": "Branch deleted"}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("branch_delete_failed", branch_id=branch_id, error=str(e))
        raise InternalServerError("Failed to delete branch", details=str(e))


# Room types


@router.get("/room-types", response_model=None)
def get_all_room_types(
    branch_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("room_type", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"room_types": list_room_types(conn, branch_id=branch_id, active_only=False)}
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_room_type_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch room types", details=str(e))


@router.get("/room-types/{room_type_id}", response_model=None)
def get_room_type_endpoint(
    room_type_id: int,
    principal: Principal = Depends(require("room_type", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"room_type": room_type_with_details(conn, room_type_id)}
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_type_fetch_failed", room_type_id=room_type_id, error=str(e))
        raise InternalServerError("Failed to fetch room type", details=str(e))


@router.post("/room-types", status_code=status.HTTP_201_CREATED, response_model=None)
def create_room_type_endpoint(
    payload: RoomTypePayload,
    principal: Principal = Depends(require("room_type", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Create a room type together with its amenities and images."""
    try:
        with engine.begin() as conn:
            room_type = create_room_type(conn, payload.model_dump())
        return {"success": True, "message": "Room type created", "room_type": room_type}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_type_create_failed", branch_id=payload.branch_id, error=str(e))
        raise InternalServerError("Failed to create room type", details=str(e))


@router.put("/room-types/{room_type_id}", response_model=None)
def update_room_type_endpoint(
    room_type_id: int,
    payload: RoomTypeUpdatePayload,
    principal: Principal = Depends(require("room_type", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            room_type = edit_room_type(conn, room_type_id, payload.model_dump())
        return {"success": True, "message": "Room type updated", "room_type": room_type}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_type_update_failed", room_type_id=room_type_id, error=str(e))
        raise InternalServerError("Failed to update room type", details=str(e))


@router.delete("/room-types/{room_type_id}", response_model=None)
def delete_room_type_endpoint(
    room_type_id: int,
    principal: Principal = Depends(require("room_type", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            remove_room_type(conn, room_type_id)
        return {"success": True, "message": "Room type deleted"}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_type_delete_failed", room_type_id=room_type_id, error=str(e))
        raise InternalServerError("Failed to delete room type", details=str(e))


@router.get("/amenities", response_model=None)
def get_amenities(
    principal: Principal = Depends(require("amenity", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"amenities": list_amenities(conn)}
    except Exception as e:
        logger.exception("amenity_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch amenities", details=str(e))


@router.post("/amenities", status_code=status.HTTP_201_CREATED, response_model=None)
def create_amenity_endpoint(
    payload: AmenityPayload,
    principal: Principal = Depends(require("amenity", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            amenity = create_amenity(conn, payload.name, payload.icon)
        return {"success": True, "message": "Amenity created", "amenity": amenity}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("amenity_create_failed", error=str(e))
        raise InternalServerError("Failed to create amenity", details=str(e))


# Rooms


@router.get("/rooms", response_model=None)
def get_all_rooms(
    branch_id: Optional[int] = Query(None),
    status_filter: Optional[RoomStatus] = Query(None, alias="status"),
    room_type_id: Optional[int] = Query(None),
    principal: Principal = Depends(require("room", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            rooms = list_rooms(
                conn, branch_id=branch_id, status=status_filter, room_type_id=room_type_id
            )
        return {"rooms": rooms}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("admin_room_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch rooms", details=str(e))


@router.post("/rooms", status_code=status.HTTP_201_CREATED, response_model=None)
def create_room_endpoint(
    payload: RoomPayload,
    principal: Principal = Depends(require("room", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            room = create_room(conn, payload.model_dump())
        return {"success": True, "message": "Room created", "room": room}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_create_failed", branch_id=payload.branch_id, error=str(e))
        raise InternalServerError("Failed to create room", details=str(e))


@router.put("/rooms/{room_id}", response_model=None)
def update_room_endpoint(
    room_id: int,
    payload: RoomUpdatePayload,
    principal: Principal = Depends(require("room", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            room = edit_room(conn, room_id, payload.model_dump())
        return {"success": True, "message": "Room updated", "room": room}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_update_failed", room_id=room_id, error=str(e))
        raise InternalServerError("Failed to update room", details=str(e))


@router.delete("/rooms/{room_id}", response_model=None)
def delete_room_endpoint(
    room_id: int,
    principal: Principal = Depends(require("room", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            remove_room(conn, room_id)
        return {"success": True, "message": "Room deleted"}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_delete_failed", room_id=room_id, error=str(e))
        raise InternalServerError("Failed to delete room", details=str(e))


@router.get("/rooms/{room_id}", response_model=None)
def get_room_endpoint(
    room_id: int,
    principal: Principal = Depends(require("room", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            room = get_room(conn, room_id)
        if room is None:
            raise NotFound("Room not found")
        return {"room": room}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_fetch_failed", room_id=room_id, error=str(e))
        raise InternalServerError("Failed to fetch room", details=str(e))


# Service catalog


@router.get("/services", response_model=None)
def get_all_services(
    category: Optional[str] = Query(None),
    principal: Principal = Depends(require("service", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"services": list_catalog(conn, category=category, active_only=False)}
    except Exception as e:
        logger.exception("admin_service_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch services", details=str(e))


@router.post("/services", status_code=status.HTTP_201_CREATED, response_model=None)
def create_service_endpoint(
    payload: ServicePayload,
    principal: Principal = Depends(require("service", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            service = create_service(conn, payload.model_dump())
        return {"success": True, "message": "Service created", "service": service}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_create_failed", error=str(e))
        raise InternalServerError("Failed to create service", details=str(e))


@router.put("/services/{service_id}", response_model=None)
def update_service_endpoint(
    service_id: int,
    payload: ServiceUpdatePayload,
    principal: Principal = Depends(require("service", "manage")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.begin() as conn:
            service = edit_service(conn, service_id, payload.model_dump())
        return {"success": True, "message": "Service updated", "service": service}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("service_update_failed", service_id=service_id, error=str(e))
        raise InternalServerError("Failed to update service", details=str(e))


@router.post("/upload/room-image", status_code=status.HTTP_201_CREATED, response_model=None)
def upload_room_image(
    file: UploadFile = File(..., description="JPEG, PNG, WebP or GIF"),
    principal: Principal = Depends(require("room_type", "manage")),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Store a room image and return its public URL for use in a room type payload."""
    try:
        return {"success": True, **save_image(file, "rooms", settings)}
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_image_upload_failed", error=str(e))
        raise InternalServerError("Failed to upload file", details=str(e))
