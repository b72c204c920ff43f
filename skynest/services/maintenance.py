"""
Maintenance logs: reporting, admin triage, and the assignee-driven lifecycle.

A log's room is held in Maintenance while the log is InProgress. When the
last InProgress log on a room completes or is cancelled, the room goes back
to Available.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection

from skynest.db.readers.maintenance import count_logs_in_progress, get_log, list_logs
from skynest.db.readers.principals import active_staff_exists
from skynest.db.readers.properties import get_room
from skynest.db.writers.operations import insert_maintenance_log, update_maintenance_log
from skynest.db.writers.properties import set_room_status
from skynest.errors import NotFound, ValidationFailed
from skynest.metrics import maintenance_transitions
from skynest.models.enums import (
    OPEN_WORK_STATUSES,
    BookingStatus,
    Priority,
    RoomStatus,
    WorkStatus,
)
from skynest.services.workflow import WORK_TRANSITIONS, ensure_transition
from skynest.utils.datetime import utc_now
from skynest.utils.references import maintenance_reference

logger = structlog.get_logger(__name__)

# Booking states in which a guest may report an issue with their room
REPORTABLE_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)

# Named list filters used by the staff and admin screens
LOG_FILTERS: dict[str, dict[str, Any]] = {
    "all": {},
    "open": {"statuses": OPEN_WORK_STATUSES},
    "pending": {"statuses": (WorkStatus.PENDING,)},
    "in-progress": {"statuses": (WorkStatus.IN_PROGRESS,)},
    "completed": {"statuses": (WorkStatus.COMPLETED,)},
    "cancelled": {"statuses": (WorkStatus.CANCELLED,)},
    "urgent": {"statuses": OPEN_WORK_STATUSES, "priorities": (Priority.HIGH, Priority.URGENT)},
}

RESOLUTION_MARKER = "--- RESOLUTION ---"


def _append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}\n{note}" if existing else note


def _load(conn: Connection, log_id: int) -> dict[str, Any]:
    log = get_log(conn, log_id, for_update=True)
    if log is None:
        raise NotFound("Maintenance log not found")
    return log


def filter_logs(conn: Connection, filter_name: str = "all", **scope: Any) -> list[dict[str, Any]]:
    """
    List logs using one of the named filters in LOG_FILTERS.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        filter_name (str): Key of LOG_FILTERS.
        **scope: Extra list_logs arguments (branch_id, assigned_to_staff_id, ...).

    Raises:
        ValidationFailed: Unknown filter name
    """
    criteria = LOG_FILTERS.get(filter_name)
    if criteria is None:
        raise ValidationFailed(
            f"Unknown filter '{filter_name}'", allowed_filters=sorted(LOG_FILTERS)
        )
    return list_logs(conn, **criteria, **scope)


def report_issue(
    conn: Connection,
    *,
    room_id: int,
    description: str,
    priority: Priority = Priority.NORMAL,
    booking: Optional[dict[str, Any]] = None,
    guest_id: Optional[int] = None,
    staff_id: Optional[int] = None,
) -> dict[str, Any]:
    """
    Open a Pending maintenance log on a room.

    Guests report against one of their bookings, which must be Confirmed or
    CheckedIn; the room is taken from the booking. Staff report directly on a
    room.

    Returns:
        dict: The new log row

    Raises:
        ValidationFailed: Empty description or booking not in a reportable state
        NotFound: Unknown room
    """
    if not description or not description.strip():
        raise ValidationFailed("Issue description is required")

    if booking is not None:
        if BookingStatus(booking["status"]) not in REPORTABLE_BOOKING_STATUSES:
            raise ValidationFailed(
                "Maintenance can only be reported for confirmed or checked-in bookings"
            )
        room_id = booking["room_id"]

    if get_room(conn, room_id) is None:
        raise NotFound("Room not found")

    reference = maintenance_reference()
    log_id = insert_maintenance_log(
        conn,
        {
            "log_reference": reference,
            "room_id": room_id,
            "booking_id": booking["id"] if booking is not None else None,
            "reported_by_guest_id": guest_id,
            "reported_by_staff_id": staff_id,
            "issue_description": description.strip(),
            "priority": priority,
            "status": WorkStatus.PENDING,
        },
    )
    maintenance_transitions.labels(status=WorkStatus.PENDING.value).inc()
    logger.info(
        "maintenance_reported",
        log_id=log_id,
        log_reference=reference,
        room_id=room_id,
        priority=priority.value,
        reported_by_guest_id=guest_id,
        reported_by_staff_id=staff_id,
    )
    return _load(conn, log_id)


def _release_room(conn: Connection, log: dict[str, Any]) -> None:
    if count_logs_in_progress(conn, log["room_id"], log["id"]) == 0:
        set_room_status(conn, log["room_id"], RoomStatus.AVAILABLE)


def _transition(
    conn: Connection,
    log: dict[str, Any],
    target: WorkStatus,
    notes: Optional[str] = None,
) -> dict[str, Any]:
    current = WorkStatus(log["status"])
    ensure_transition(WORK_TRANSITIONS, current, target)

    values: dict[str, Any] = {"status": target}
    if target is WorkStatus.COMPLETED:
        if not notes or not notes.strip():
            raise ValidationFailed("Resolution notes are required to complete a maintenance task")
        values["resolution_notes"] = notes.strip()
        values["resolved_at"] = utc_now()
        values["notes"] = _append_note(log["notes"], f"{RESOLUTION_MARKER}\n{notes.strip()}")
    elif notes:
        values["notes"] = _append_note(log["notes"], notes.strip())

    if target is WorkStatus.IN_PROGRESS:
        values["started_at"] = utc_now()

    update_maintenance_log(conn, log["id"], values)

    if target is WorkStatus.IN_PROGRESS:
        set_room_status(conn, log["room_id"], RoomStatus.MAINTENANCE)
    elif target is WorkStatus.COMPLETED or current is WorkStatus.IN_PROGRESS:
        _release_room(conn, log)

    maintenance_transitions.labels(status=target.value).inc()
    logger.info(
        "maintenance_status_changed",
        log_id=log["id"],
        room_id=log["room_id"],
        previous_status=current.value,
        status=target.value,
    )
    return {"log_id": log["id"], "previous_status": current, "status": target}


def change_log_status(
    conn: Connection, log_id: int, target: WorkStatus, notes: Optional[str] = None
) -> dict[str, Any]:
    """
    Move a log along Pending -> InProgress -> Completed (or Cancelled).

    Starting work puts the room into Maintenance. Completing it requires
    non-empty notes and returns the room to Available unless another log on
    the same room is still InProgress.

    Args:
        conn (Connection): SQLAlchemy DB connection inside a transaction.
        log_id (int): Maintenance log ID.
        target (WorkStatus): Requested status.
        notes (Optional[str]): Progress or resolution notes.

    Returns:
        dict: log_id, previous_status, status

    Raises:
        NotFound: Unknown log
        ValidationFailed: Transition not allowed or missing resolution notes
    """
    return _transition(conn, _load(conn, log_id), target, notes)


def complete_log(conn: Connection, log_id: int, resolution_notes: str) -> dict[str, Any]:
    return change_log_status(conn, log_id, WorkStatus.COMPLETED, resolution_notes)


def assign_log(conn: Connection, log_id: int, staff_id: int) -> dict[str, Any]:
    """
    Assign (or reassign) an open log to an active staff member.

    Raises:
        NotFound: Unknown log or staff member
        ValidationFailed: Log is already Completed or Cancelled
    """
    log = _load(conn, log_id)
    if WorkStatus(log["status"]) not in OPEN_WORK_STATUSES:
        raise ValidationFailed("Only pending or in-progress logs can be assigned")
    if not active_staff_exists(conn, staff_id):
        raise NotFound("Staff member not found")

    update_maintenance_log(conn, log_id, {"assigned_to_staff_id": staff_id})
    logger.info("maintenance_assigned", log_id=log_id, staff_id=staff_id)
    return {"log_id": log_id, "assigned_to_staff_id": staff_id, "status": WorkStatus(log["status"])}


def approve_log(conn: Connection, log_id: int, approved_by: str) -> dict[str, Any]:
    """
    Admin approval of a Pending log.

    An assigned log starts immediately; an unassigned one stays Pending with
    an approval note until someone is assigned and starts it.
    """
    log = _load(conn, log_id)
    if WorkStatus(log["status"]) is not WorkStatus.PENDING:
        raise ValidationFailed("Only pending logs can be approved")

    note = f"Approved by {approved_by}"
    if log["assigned_to_staff_id"] is not None:
        return _transition(conn, log, WorkStatus.IN_PROGRESS, note)

    update_maintenance_log(conn, log_id, {"notes": _append_note(log["notes"], note)})
    logger.info("maintenance_approved", log_id=log_id)
    return {"log_id": log_id, "previous_status": WorkStatus.PENDING, "status": WorkStatus.PENDING}


def reject_log(conn: Connection, log_id: int, reason: str) -> dict[str, Any]:
    if not reason or not reason.strip():
        raise ValidationFailed("A rejection reason is required")
    log = _load(conn, log_id)
    return _transition(conn, log, WorkStatus.CANCELLED, f"Rejected: {reason.strip()}")


def set_housekeeping_status(conn: Connection, room_id: int, status: RoomStatus) -> dict[str, Any]:
    """
    Front-desk room status change.

    A room cannot be released to Available while a maintenance log on it is
    still InProgress.

    Raises:
        NotFound: Unknown room
        ValidationFailed: Room still has work in progress
    """
    room = get_room(conn, room_id, for_update=True)
    if room is None:
        raise NotFound("Room not found")
    if status is RoomStatus.AVAILABLE and count_logs_in_progress(conn, room_id) > 0:
        raise ValidationFailed("Room has maintenance in progress and cannot be made available")

    set_room_status(conn, room_id, status)
    return {"room_id": room_id, "previous_status": RoomStatus(room["status"]), "status": status}
