"""Browsing endpoints that need no session, plus guest review submission."""

from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.engine import Engine

from skynest.db.readers.properties import (
    get_room_type,
    get_room_type_amenities,
    get_room_type_images,
    list_branches,
    list_room_types,
)
from skynest.db.readers.reviews import list_reviews, rating_summary
from skynest.db.readers.services import list_catalog
from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, NotFound, SkyNestError
from skynest.routes._helpers import load_booking_or_404
from skynest.schemas.operations import ReviewPayload
from skynest.services.reviews import submit_review
from skynest.services.sessions import Principal

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/branches", response_model=None)
def get_branches(engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"branches": list_branches(conn)}
    except Exception as e:
        logger.exception("branch_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch branches", details=str(e))


@router.get("/rooms", response_model=None)
def get_room_types(
    branch_id: Optional[int] = Query(None, description="Only room types of this branch"),
    guests: Optional[int] = Query(None, ge=1, description="Minimum capacity"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    List bookable room types with their amenities and cover image.

    Args:
        branch_id: Optional branch filter
        guests: Optional minimum capacity

    Returns:
        dict: ``rooms`` list of room types with total/available room counts
    """
    try:
        with engine.connect() as conn:
            room_types = list_room_types(conn, branch_id=branch_id, min_capacity=guests)
            for room_type in room_types:
                room_type["amenities"] = get_room_type_amenities(conn, room_type["id"])
                images = get_room_type_images(conn, room_type["id"])
                room_type["image_url"] = images[0]["url"] if images else None
        return {"rooms": room_types}

    except Exception as e:
        logger.exception("room_type_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch rooms", details=str(e))


@router.get("/rooms/{room_type_id}", response_model=None)
def get_room_type_detail(room_type_id: int, engine: Engine = Depends(get_db_engine)) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            room_type = get_room_type(conn, room_type_id)
            if room_type is None or not room_type["is_active"]:
                raise NotFound("Room type not found")
            room_type["amenities"] = get_room_type_amenities(conn, room_type_id)
            room_type["images"] = get_room_type_images(conn, room_type_id)
            room_type["rating"] = rating_summary(conn, room_type_id=room_type_id)
            room_type["reviews"] = list_reviews(conn, room_type_id=room_type_id, limit=10)
        return {"room": room_type}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("room_type_fetch_failed", room_type_id=room_type_id, error=str(e))
        raise InternalServerError("Failed to fetch room", details=str(e))


@router.get("/services", response_model=None)
def get_services(
    category: Optional[str] = Query(None, description="Only services in this category"),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {"services": list_catalog(conn, category=category)}
    except Exception as e:
        logger.exception("service_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch services", details=str(e))


@router.get("/reviews", response_model=None)
def get_reviews(
    room_type_id: Optional[int] = Query(None, description="Only reviews of this room type"),
    branch_id: Optional[int] = Query(None, description="Only reviews of this branch"),
    limit: int = Query(50, ge=1, le=200),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    try:
        with engine.connect() as conn:
            return {
                "reviews": list_reviews(conn, room_type_id, branch_id, limit),
                "summary": rating_summary(conn, room_type_id, branch_id),
            }
    except Exception as e:
        logger.exception("review_list_failed", error=str(e))
        raise InternalServerError("Failed to fetch reviews", details=str(e))


@router.post("/reviews", status_code=status.HTTP_201_CREATED, response_model=None)
def create_review(
    payload: ReviewPayload,
    principal: Principal = Depends(require("review", "create")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Review a checked-out stay. One review per booking."""
    try:
        with engine.begin() as conn:
            booking = load_booking_or_404(conn, principal, payload.booking_id)
            review = submit_review(conn, booking, payload.rating, payload.title, payload.comment)
        return {"success": True, "review": review}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("review_submission_failed", error=str(e))
        raise InternalServerError("Failed to submit review", details=str(e))
