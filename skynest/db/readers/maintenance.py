from typing import Any, Optional, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.engine import Connection
from sqlalchemy.orm import aliased

from skynest.models.bookings import Booking
from skynest.models.enums import (
    OPEN_WORK_STATUSES,
    PRIORITY_ORDER,
    Priority,
    RoomStatus,
    WorkStatus,
)
from skynest.models.operations import MaintenanceLog
from skynest.models.principals import Guest, Staff
from skynest.models.properties import Branch, Room, RoomType


def priority_rank(column: Any) -> Any:
    """SQL expression ranking Urgent first and Low last."""
    return case(*[(column == p, rank) for p, rank in PRIORITY_ORDER.items()], else_=len(PRIORITY_ORDER))


def get_log(conn: Connection, log_id: int, for_update: bool = False) -> Optional[dict[str, Any]]:
    """
    Fetch a maintenance log with its room's branch.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        log_id (int): Maintenance log ID.
        for_update (bool): Lock the log row until the transaction ends.

    Returns:
        Optional[dict]: Log columns plus ``branch_id`` and ``room_number``, or None.
    """
    stmt = (
        select(MaintenanceLog.__table__, Room.branch_id, Room.room_number)
        .join(Room, MaintenanceLog.room_id == Room.id)
        .where(MaintenanceLog.id == log_id)
    )
    if for_update:
        stmt = stmt.with_for_update(of=MaintenanceLog)
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def list_logs(
    conn: Connection,
    *,
    statuses: Optional[Sequence[WorkStatus]] = None,
    priorities: Optional[Sequence[Priority]] = None,
    branch_id: Optional[int] = None,
    reported_by_guest_id: Optional[int] = None,
    reported_by_staff_id: Optional[int] = None,
    assigned_to_staff_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    List maintenance logs, most urgent first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        statuses: Restrict to these statuses.
        priorities: Restrict to these priorities.
        branch_id: Restrict to rooms of one branch.
        reported_by_guest_id: Only logs this guest reported.
        reported_by_staff_id: Only logs this staff member reported.
        assigned_to_staff_id: Only logs assigned to this staff member.

    Returns:
        list[dict]: Logs with room, branch, booking and people names.
    """
    assignee = aliased(Staff)
    reporter_staff = aliased(Staff)

    stmt = (
        select(
            MaintenanceLog.id,
            MaintenanceLog.log_reference,
            MaintenanceLog.room_id,
            MaintenanceLog.booking_id,
            MaintenanceLog.issue_description,
            MaintenanceLog.priority,
            MaintenanceLog.status,
            MaintenanceLog.notes,
            MaintenanceLog.resolution_notes,
            MaintenanceLog.assigned_to_staff_id,
            MaintenanceLog.reported_by_guest_id,
            MaintenanceLog.reported_by_staff_id,
            MaintenanceLog.created_at,
            MaintenanceLog.started_at,
            MaintenanceLog.resolved_at,
            Room.room_number,
            Room.branch_id,
            RoomType.name.label("room_type"),
            Branch.name.label("branch_name"),
            Booking.booking_reference,
            (assignee.first_name + " " + assignee.last_name).label("assigned_to"),
            func.coalesce(
                reporter_staff.first_name + " " + reporter_staff.last_name,
                Guest.first_name + " " + Guest.last_name,
            ).label("reported_by"),
        )
        .select_from(MaintenanceLog)
        .join(Room, MaintenanceLog.room_id == Room.id)
        .join(RoomType, Room.room_type_id == RoomType.id)
        .join(Branch, Room.branch_id == Branch.id)
        .outerjoin(Booking, MaintenanceLog.booking_id == Booking.id)
        .outerjoin(assignee, MaintenanceLog.assigned_to_staff_id == assignee.id)
        .outerjoin(reporter_staff, MaintenanceLog.reported_by_staff_id == reporter_staff.id)
        .outerjoin(Guest, MaintenanceLog.reported_by_guest_id == Guest.id)
        .order_by(priority_rank(MaintenanceLog.priority), MaintenanceLog.created_at.desc())
    )
    if statuses:
        stmt = stmt.where(MaintenanceLog.status.in_(statuses))
    if priorities:
        stmt = stmt.where(MaintenanceLog.priority.in_(priorities))
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    if reported_by_guest_id is not None:
        stmt = stmt.where(MaintenanceLog.reported_by_guest_id == reported_by_guest_id)
    if reported_by_staff_id is not None:
        stmt = stmt.where(MaintenanceLog.reported_by_staff_id == reported_by_staff_id)
    if assigned_to_staff_id is not None:
        stmt = stmt.where(MaintenanceLog.assigned_to_staff_id == assigned_to_staff_id)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def count_logs_in_progress(
    conn: Connection, room_id: int, exclude_log_id: Optional[int] = None
) -> int:
    stmt = select(func.count(MaintenanceLog.id)).where(
        MaintenanceLog.room_id == room_id,
        MaintenanceLog.status == WorkStatus.IN_PROGRESS,
    )
    if exclude_log_id is not None:
        stmt = stmt.where(MaintenanceLog.id != exclude_log_id)
    return conn.execute(stmt).scalar_one()


def rooms_in_maintenance_without_open_log(
    conn: Connection, branch_id: Optional[int] = None
) -> list[dict[str, Any]]:
    """
    Rooms marked Maintenance that no Pending/InProgress log explains.

    These are invariant violations for the admin alerts screen.
    """
    open_logs = (
        select(MaintenanceLog.room_id)
        .where(MaintenanceLog.status.in_(OPEN_WORK_STATUSES))
        .scalar_subquery()
    )
    stmt = (
        select(Room.id, Room.room_number, Room.branch_id, Branch.name.label("branch_name"))
        .join(Branch, Room.branch_id == Branch.id)
        .where(Room.status == RoomStatus.MAINTENANCE, Room.id.not_in(open_logs))
        .order_by(Branch.name, Room.room_number)
    )
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    return [dict(r) for r in conn.execute(stmt).mappings()]
