"""
Report and dashboard projections.

Readers do the SQL aggregation; this module clips, sums and shapes the
results into the payloads the admin and guest screens consume.
"""

from __future__ import annotations

import calendar
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.engine import Connection

from skynest.db.readers.bookings import list_guest_bookings
from skynest.db.readers.maintenance import list_logs, rooms_in_maintenance_without_open_log
from skynest.db.readers.principals import count_users
from skynest.db.readers.properties import list_rooms
from skynest.db.readers.reports import (
    billing_rows,
    booking_status_counts,
    completed_revenue_total,
    count_check_ins_on,
    count_pending_maintenance,
    revenue_by_branch_month,
    room_status_by_branch,
    service_usage_by_service,
    stayed_bookings_in_window,
)
from skynest.db.readers.services import list_service_requests
from skynest.errors import ValidationFailed
from skynest.models.enums import (
    ACTIVE_BOOKING_STATUSES,
    OPEN_WORK_STATUSES,
    BookingStatus,
    Priority,
    WorkStatus,
)
from skynest.services.billing import with_balance
from skynest.utils.datetime import overlap_nights, utc_today
from skynest.utils.money import to_decimal

ZERO = Decimal("0.00")


def _percent(part: int, whole: int) -> float:
    return round(part / whole * 100, 2) if whole else 0.0


def occupancy_report(
    conn: Connection, start: date, end: date, branch_id: Optional[int] = None
) -> dict[str, Any]:
    """
    Occupancy over the half-open window [start, end).

    occupied room-nights / (rooms × days) × 100, counting Confirmed,
    CheckedIn and CheckedOut bookings clipped to the window.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        start (date): First day of the window.
        end (date): Day after the last day of the window.
        branch_id (Optional[int]): Restrict to one branch.

    Returns:
        dict: per-room rows, per-branch rows and an overall summary

    Raises:
        ValidationFailed: end is not after start
    """
    if end <= start:
        raise ValidationFailed("end_date must be after start_date")
    days = (end - start).days

    nights_by_room: dict[int, int] = defaultdict(int)
    for booking in stayed_bookings_in_window(conn, start, end, branch_id):
        nights_by_room[booking["room_id"]] += overlap_nights(
            booking["check_in_date"], booking["check_out_date"], start, end
        )

    rooms = []
    branches: dict[int, dict[str, Any]] = {}
    for room in list_rooms(conn, branch_id=branch_id):
        occupied = min(nights_by_room.get(room["id"], 0), days)
        rooms.append(
            {
                "room_id": room["id"],
                "room_number": room["room_number"],
                "room_type": room["room_type"],
                "branch_id": room["branch_id"],
                "branch_name": room["branch_name"],
                "occupied_nights": occupied,
                "available_nights": days,
                "occupancy_rate": _percent(occupied, days),
            }
        )
        branch = branches.setdefault(
            room["branch_id"],
            {
                "branch_id": room["branch_id"],
                "branch_name": room["branch_name"],
                "total_rooms": 0,
                "occupied_nights": 0,
            },
        )
        branch["total_rooms"] += 1
        branch["occupied_nights"] += occupied

    for branch in branches.values():
        branch["available_nights"] = branch["total_rooms"] * days
        branch["occupancy_rate"] = _percent(branch["occupied_nights"], branch["available_nights"])

    occupied_total = sum(r["occupied_nights"] for r in rooms)
    available_total = len(rooms) * days
    return {
        "start_date": start,
        "end_date": end,
        "days": days,
        "rooms": rooms,
        "branches": list(branches.values()),
        "summary": {
            "total_rooms": len(rooms),
            "occupied_nights": occupied_total,
            "available_nights": available_total,
            "occupancy_rate": _percent(occupied_total, available_total),
        },
    }


def revenue_report(
    conn: Connection, year: int, month: Optional[int] = None, branch_id: Optional[int] = None
) -> dict[str, Any]:
    """Completed-payment revenue per branch and month for a year or a single month."""
    if month is not None and not 1 <= month <= 12:
        raise ValidationFailed("month must be between 1 and 12")

    branches: dict[int, dict[str, Any]] = {}
    for row in revenue_by_branch_month(conn, year, month, branch_id):
        branch = branches.setdefault(
            row["branch_id"],
            {
                "branch_id": row["branch_id"],
                "branch_name": row["branch_name"],
                "total_revenue": ZERO,
                "payment_count": 0,
                "months": [],
            },
        )
        revenue = to_decimal(row["revenue"])
        month_number = int(row["month"])
        branch["months"].append(
            {
                "month": month_number,
                "month_name": calendar.month_name[month_number],
                "payment_count": int(row["payment_count"]),
                "revenue": revenue,
            }
        )
        branch["total_revenue"] += revenue
        branch["payment_count"] += int(row["payment_count"])

    return {
        "year": year,
        "month": month,
        "branches": list(branches.values()),
        "summary": {
            "total_revenue": sum((b["total_revenue"] for b in branches.values()), ZERO),
            "payment_count": sum(b["payment_count"] for b in branches.values()),
        },
    }


def _bill(row: dict[str, Any]) -> dict[str, Any]:
    bill = with_balance(row)
    bill["room_charges"] = to_decimal(row["room_charges"])
    bill["service_charges"] = to_decimal(row["service_charges"])
    return bill


def billing_report(
    conn: Connection,
    branch_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: Optional[BookingStatus] = None,
) -> dict[str, Any]:
    """Per-booking bills with room/service charges, payments and a summary."""
    bills = [_bill(row) for row in billing_rows(conn, branch_id, start, end, status)]
    return {
        "bookings": bills,
        "summary": {
            "booking_count": len(bills),
            "room_charges": sum((b["room_charges"] for b in bills), ZERO),
            "service_charges": sum((b["service_charges"] for b in bills), ZERO),
            "total_amount": sum((b["total_amount"] for b in bills), ZERO),
            "paid_amount": sum((b["paid_amount"] for b in bills), ZERO),
            "outstanding_amount": sum((b["outstanding_amount"] for b in bills), ZERO),
            "fully_paid_count": sum(1 for b in bills if b["is_fully_paid"]),
        },
    }


def service_usage_report(
    conn: Connection,
    start: Optional[date] = None,
    end: Optional[date] = None,
    branch_id: Optional[int] = None,
) -> dict[str, Any]:
    rows = service_usage_by_service(conn, start, end, branch_id)

    categories: dict[str, dict[str, Any]] = {}
    for row in rows:
        row["revenue"] = to_decimal(row["revenue"])
        row["total_quantity"] = int(row["total_quantity"])
        category = categories.setdefault(
            row["category"],
            {"category": row["category"], "total_quantity": 0, "revenue": ZERO, "services": []},
        )
        category["services"].append(row)
        category["total_quantity"] += row["total_quantity"]
        category["revenue"] += row["revenue"]

    return {
        "start_date": start,
        "end_date": end,
        "categories": sorted(categories.values(), key=lambda c: c["revenue"], reverse=True),
        "summary": {
            "total_quantity": sum(c["total_quantity"] for c in categories.values()),
            "total_revenue": sum((c["revenue"] for c in categories.values()), ZERO),
        },
    }


def top_services_report(
    conn: Connection,
    limit: int = 10,
    start: Optional[date] = None,
    end: Optional[date] = None,
    branch_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    rows = service_usage_by_service(conn, start, end, branch_id, limit=limit)
    return [
        {**row, "revenue": to_decimal(row["revenue"]), "total_quantity": int(row["total_quantity"])}
        for row in rows
    ]


def admin_dashboard(conn: Connection, today: Optional[date] = None) -> dict[str, Any]:
    """Headline numbers for the admin landing page."""
    today = today or utc_today()
    month_start = today.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)
    users = count_users(conn)
    status_counts = booking_status_counts(conn)

    return {
        "totals": {
            "bookings": sum(status_counts.values()),
            "revenue": to_decimal(completed_revenue_total(conn)),
            "active_staff": users["active_staffs"],
            "active_guests": users["active_guests"],
            "todays_check_ins": count_check_ins_on(conn, today),
            "pending_maintenance": count_pending_maintenance(conn),
        },
        "bookings_by_status": status_counts,
        "branches": room_status_by_branch(conn),
        "occupancy_this_month": occupancy_report(conn, month_start, next_month)["summary"],
    }


def admin_alerts(conn: Connection) -> dict[str, Any]:
    """
    Things needing an admin's attention.

    Lists open high/urgent maintenance, unassigned open logs and rooms left in
    Maintenance without an open log.
    """
    urgent = list_logs(conn, statuses=OPEN_WORK_STATUSES, priorities=(Priority.HIGH, Priority.URGENT))
    unassigned = [
        log for log in list_logs(conn, statuses=OPEN_WORK_STATUSES) if log["assigned_to_staff_id"] is None
    ]
    orphaned = rooms_in_maintenance_without_open_log(conn)
    return {
        "urgent_maintenance": urgent,
        "unassigned_maintenance": unassigned,
        "rooms_in_maintenance_without_open_log": orphaned,
        "alert_count": len(urgent) + len(unassigned) + len(orphaned),
    }


def guest_alerts(
    conn: Connection,
    guest_id: int,
    status: Optional[WorkStatus] = None,
    unread_only: bool = False,
    limit: int = 50,
) -> dict[str, Any]:
    """
    Progress notices on the maintenance requests a guest has reported.

    A notice counts as read once its request is closed (Completed or
    Cancelled). Ordering follows the logs: most urgent first, then newest.
    """
    logs = list_logs(conn, reported_by_guest_id=guest_id, statuses=(status,) if status else None)[:limit]
    alerts = [
        {
            "id": f"maintenance-{log['id']}",
            "type": "maintenance",
            "priority": log["priority"],
            "title": f"Maintenance Request {log['log_reference']}",
            "message": log["issue_description"],
            "status": log["status"],
            "created_at": log["created_at"],
            "reference": log["log_reference"],
            "booking_reference": log["booking_reference"],
            "room_info": f"{log['room_type']} - Room {log['room_number']}, {log['branch_name']}",
            "assigned_to": log["assigned_to"] or "Unassigned",
            "is_read": WorkStatus(log["status"]) not in OPEN_WORK_STATUSES,
        }
        for log in logs
    ]
    unread = [a for a in alerts if not a["is_read"]]
    return {
        "alerts": unread if unread_only else alerts,
        "total_count": len(alerts),
        "unread_count": len(unread),
    }


def guest_dashboard(conn: Connection, guest_id: int, today: Optional[date] = None) -> dict[str, Any]:
    """Upcoming stays, booking counts, amount still owed and recent service requests."""
    today = today or utc_today()
    bookings = [with_balance(b) for b in list_guest_bookings(conn, guest_id)]
    upcoming = sorted(
        (
            b
            for b in bookings
            if BookingStatus(b["status"]) in ACTIVE_BOOKING_STATUSES and b["check_out_date"] >= today
        ),
        key=lambda b: b["check_in_date"],
    )
    counts: dict[str, int] = defaultdict(int)
    for b in bookings:
        counts[BookingStatus(b["status"]).value] += 1

    return {
        "upcoming_bookings": upcoming,
        "booking_counts": {"total": len(bookings), **counts},
        "outstanding_total": sum(
            (
                b["outstanding_amount"]
                for b in bookings
                if BookingStatus(b["status"]) not in (BookingStatus.CANCELLED, BookingStatus.NO_SHOW)
            ),
            ZERO,
        ),
        "recent_service_requests": list_service_requests(conn, guest_id=guest_id)[:10],
    }


def guest_bills(conn: Connection, guest_id: int, branch_id: Optional[int] = None) -> dict[str, Any]:
    """Bills for one guest, optionally only for bookings at one branch."""
    bills = [_bill(row) for row in billing_rows(conn, branch_id=branch_id, guest_id=guest_id)]
    return {
        "bills": bills,
        "summary": {
            "total_amount": sum((b["total_amount"] for b in bills), ZERO),
            "paid_amount": sum((b["paid_amount"] for b in bills), ZERO),
            "outstanding_amount": sum((b["outstanding_amount"] for b in bills), ZERO),
        },
    }
