from typing import Any, Optional

from sqlalchemy import case, func, or_, select
from sqlalchemy.engine import Connection

from skynest.models.bookings import Booking
from skynest.models.enums import BookingStatus, Role
from skynest.models.principals import Admin, Guest, Staff
from skynest.models.properties import Branch

MODELS = {Role.GUEST: Guest, Role.STAFF: Staff, Role.ADMIN: Admin}


def get_guest_by_email(conn: Connection, email: str) -> Optional[dict[str, Any]]:
    """
    Fetch a guest (including password hash) by case-insensitive email.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        email (str): Login email.

    Returns:
        Optional[dict]: Guest row or None.
    """
    stmt = select(Guest.__table__).where(func.lower(Guest.email) == email.lower())
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_admin_by_email(conn: Connection, email: str) -> Optional[dict[str, Any]]:
    stmt = select(Admin.__table__).where(func.lower(Admin.email) == email.lower())
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_staff_by_employee_id(conn: Connection, employee_id: str) -> Optional[dict[str, Any]]:
    stmt = select(Staff.__table__).where(Staff.employee_id == employee_id)
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def get_principal_record(conn: Connection, role: Role, principal_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch the guests/staff/admins row for a role and id.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        role (Role): Which table to read.
        principal_id (int): Row id.

    Returns:
        Optional[dict]: Full row including password_hash, or None.
    """
    model = MODELS[role]
    row = conn.execute(
        select(model.__table__).where(model.id == principal_id)
    ).mappings().fetchone()
    return dict(row) if row else None


def email_taken(conn: Connection, role: Role, email: str) -> bool:
    model = MODELS[role]
    stmt = select(model.id).where(func.lower(model.email) == email.lower())
    return conn.execute(stmt).fetchone() is not None


def employee_id_taken(conn: Connection, employee_id: str) -> bool:
    return conn.execute(
        select(Staff.id).where(Staff.employee_id == employee_id)
    ).fetchone() is not None


def active_staff_exists(conn: Connection, staff_id: int) -> bool:
    stmt = select(Staff.id).where(Staff.id == staff_id, Staff.is_active.is_(True))
    return conn.execute(stmt).fetchone() is not None


def search_guests(conn: Connection, query: str, limit: int = 25) -> list[dict[str, Any]]:
    """
    Search guests by name, email or phone for the front desk.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        query (str): Substring to match (case-insensitive).
        limit (int): Maximum rows.

    Returns:
        list[dict]: Guests with total and currently checked-in booking counts.
    """
    pattern = f"%{query.lower()}%"
    counts = (
        select(
            Booking.guest_id,
            func.count(Booking.id).label("total_bookings"),
            func.sum(case((Booking.status == BookingStatus.CHECKED_IN, 1), else_=0)).label(
                "active_stays"
            ),
        )
        .group_by(Booking.guest_id)
        .subquery()
    )
    stmt = (
        select(
            Guest.id,
            Guest.email,
            Guest.first_name,
            Guest.last_name,
            Guest.phone,
            Guest.loyalty_points,
            func.coalesce(counts.c.total_bookings, 0).label("total_bookings"),
            func.coalesce(counts.c.active_stays, 0).label("active_stays"),
        )
        .outerjoin(counts, counts.c.guest_id == Guest.id)
        .where(
            or_(
                func.lower(Guest.first_name).like(pattern),
                func.lower(Guest.last_name).like(pattern),
                func.lower(Guest.email).like(pattern),
                func.lower(func.coalesce(Guest.phone, "")).like(pattern),
            )
        )
        .order_by(Guest.last_name, Guest.first_name)
        .limit(limit)
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]


def list_users(
    conn: Connection, role: Optional[Role] = None, search: Optional[str] = None
) -> list[dict[str, Any]]:
    """
    List principals of one role or all roles for the admin users screen.

    Password hashes are never selected.
    """
    roles = [role] if role else [Role.ADMIN, Role.STAFF, Role.GUEST]
    users: list[dict[str, Any]] = []
    for r in roles:
        model = MODELS[r]
        columns = [
            model.id,
            model.email,
            model.first_name,
            model.last_name,
            model.is_active,
            model.created_at,
        ]
        stmt = select(*columns)
        if model is Staff:
            stmt = select(
                *columns,
                Staff.employee_id,
                Staff.position,
                Staff.branch_id,
                Branch.name.label("branch_name"),
            ).outerjoin(Branch, Staff.branch_id == Branch.id)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(model.first_name).like(pattern),
                    func.lower(model.last_name).like(pattern),
                    func.lower(model.email).like(pattern),
                )
            )
        stmt = stmt.order_by(model.last_name, model.first_name)
        users.extend({**dict(row), "role": r.value} for row in conn.execute(stmt).mappings())
    return users


def count_users(conn: Connection) -> dict[str, int]:
    """Active and total counts per role."""
    counts: dict[str, int] = {}
    for role, model in MODELS.items():
        total, active = conn.execute(
            select(
                func.count(model.id),
                func.coalesce(func.sum(case((model.is_active.is_(True), 1), else_=0)), 0),
            )
        ).one()
        counts[f"total_{role.value}s"] = int(total)
        counts[f"active_{role.value}s"] = int(active)
    return counts
