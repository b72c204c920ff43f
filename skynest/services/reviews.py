from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection

from skynest.db.readers.reviews import review_exists_for_booking
from skynest.db.writers.operations import insert_review
from skynest.errors import Conflict, ValidationFailed
from skynest.models.enums import BookingStatus

logger = structlog.get_logger(__name__)


def submit_review(
    conn: Connection,
    booking: dict[str, Any],
    rating: int,
    title: Optional[str] = None,
    comment: Optional[str] = None,
) -> dict[str, Any]:
    """
    Store a guest's review of a completed stay.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking (dict): The reviewed booking (already ownership-checked).
        rating (int): 1 to 5.
        title (Optional[str]): Short headline.
        comment (Optional[str]): Free text.

    Returns:
        dict: review_id, booking_id and rating

    Raises:
        ValidationFailed: Rating out of range or stay not checked out
        Conflict: The booking already has a review
    """
    if not 1 <= rating <= 5:
        raise ValidationFailed("Rating must be between 1 and 5")
    if BookingStatus(booking["status"]) is not BookingStatus.CHECKED_OUT:
        raise ValidationFailed("Only checked-out stays can be reviewed")
    if review_exists_for_booking(conn, booking["id"]):
        raise Conflict("This booking has already been reviewed")

    review_id = insert_review(
        conn,
        {
            "booking_id": booking["id"],
            "guest_id": booking["guest_id"],
            "rating": rating,
            "title": title,
            "comment": comment,
        },
    )
    logger.info("review_submitted", review_id=review_id, booking_id=booking["id"], rating=rating)
    return {"review_id": review_id, "booking_id": booking["id"], "rating": rating}
