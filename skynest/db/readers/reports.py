"""Read-only aggregates behind the admin reports and dashboards."""

from datetime import date, datetime, time, timezone
from typing import Any, Optional

from sqlalchemy import case, extract, func, select
from sqlalchemy.engine import Connection

from skynest.db.readers.bookings import paid_totals_subquery
from skynest.models.bookings import Booking, Payment
from skynest.models.enums import (
    STAYED_BOOKING_STATUSES,
    BookingStatus,
    PaymentStatus,
    RoomStatus,
    WorkStatus,
)
from skynest.models.operations import MaintenanceLog, ServiceCatalog, ServiceUsage
from skynest.models.principals import Guest
from skynest.models.properties import Branch, Room, RoomType


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def stayed_bookings_in_window(
    conn: Connection, start: date, end: date, branch_id: Optional[int] = None
) -> list[dict[str, Any]]:
    """Bookings whose nights count as occupied and that touch [start, end)."""
    stmt = (
        select(Booking.id, Booking.room_id, Booking.check_in_date, Booking.check_out_date)
        .join(Room, Booking.room_id == Room.id)
        .where(
            Booking.status.in_(STAYED_BOOKING_STATUSES),
            Booking.check_in_date < end,
            Booking.check_out_date > start,
        )
    )
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def revenue_by_branch_month(
    conn: Connection,
    year: int,
    month: Optional[int] = None,
    branch_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Σ Completed payments grouped by branch and calendar month.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        year (int): Calendar year of paid_at.
        month (Optional[int]): Restrict to one month (1-12).
        branch_id (Optional[int]): Restrict to one branch.

    Returns:
        list[dict]: branch_id, branch_name, month, payment_count, revenue
    """
    if month is None:
        window_start = datetime(year, 1, 1, tzinfo=timezone.utc)
        window_end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        window_start = datetime(year, month, 1, tzinfo=timezone.utc)
        window_end = (
            datetime(year + 1, 1, 1, tzinfo=timezone.utc)
            if month == 12
            else datetime(year, month + 1, 1, tzinfo=timezone.utc)
        )

    month_col = extract("month", Payment.paid_at).label("month")
    stmt = (
        select(
            Branch.id.label("branch_id"),
            Branch.name.label("branch_name"),
            month_col,
            func.count(Payment.id).label("payment_count"),
            func.coalesce(func.sum(Payment.amount), 0).label("revenue"),
        )
        .select_from(Payment)
        .join(Booking, Payment.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
        .join(Branch, Room.branch_id == Branch.id)
        .where(
            Payment.payment_status == PaymentStatus.COMPLETED,
            Payment.paid_at >= window_start,
            Payment.paid_at < window_end,
        )
        .group_by(Branch.id, Branch.name, month_col)
        .order_by(Branch.name, month_col)
    )
    if branch_id is not None:
        stmt = stmt.where(Branch.id == branch_id)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def _service_totals_subquery() -> Any:
    return (
        select(
            ServiceUsage.booking_id,
            func.coalesce(func.sum(ServiceUsage.total_price), 0).label("service_charges"),
        )
        .group_by(ServiceUsage.booking_id)
        .subquery()
    )


def billing_rows(
    conn: Connection,
    branch_id: Optional[int] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    status: Optional[BookingStatus] = None,
    guest_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Per-booking charges: room, services, total and Σ Completed payments.

    Cancelled and no-show bookings are left out unless asked for by status.
    """
    paid = paid_totals_subquery()
    services = _service_totals_subquery()
    stmt = (
        select(
            Booking.id.label("booking_id"),
            Booking.booking_reference,
            Booking.status,
            Booking.check_in_date,
            Booking.check_out_date,
            Booking.base_amount.label("room_charges"),
            func.coalesce(services.c.service_charges, 0).label("service_charges"),
            Booking.total_amount,
            func.coalesce(paid.c.paid_amount, 0).label("paid_amount"),
            Room.room_number,
            RoomType.name.label("room_type"),
            Branch.id.label("branch_id"),
            Branch.name.label("branch_name"),
            (Guest.first_name + " " + Guest.last_name).label("guest_name"),
            Guest.email.label("guest_email"),
        )
        .select_from(Booking)
        .join(Room, Booking.room_id == Room.id)
        .join(RoomType, Room.room_type_id == RoomType.id)
        .join(Branch, Room.branch_id == Branch.id)
        .join(Guest, Booking.guest_id == Guest.id)
        .outerjoin(paid, paid.c.booking_id == Booking.id)
        .outerjoin(services, services.c.booking_id == Booking.id)
        .order_by(Booking.check_in_date.desc(), Booking.id.desc())
    )
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    else:
        stmt = stmt.where(Booking.status.not_in((BookingStatus.CANCELLED, BookingStatus.NO_SHOW)))
    if branch_id is not None:
        stmt = stmt.where(Branch.id == branch_id)
    if guest_id is not None:
        stmt = stmt.where(Booking.guest_id == guest_id)
    if start is not None:
        stmt = stmt.where(Booking.check_out_date > start)
    if end is not None:
        stmt = stmt.where(Booking.check_in_date < end)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def _usage_base(start: Optional[date], end: Optional[date], branch_id: Optional[int]) -> list[Any]:
    criteria: list[Any] = []
    if start is not None:
        criteria.append(ServiceUsage.used_at >= _day_start(start))
    if end is not None:
        criteria.append(ServiceUsage.used_at < _day_start(end))
    if branch_id is not None:
        criteria.append(Room.branch_id == branch_id)
    return criteria


def service_usage_by_service(
    conn: Connection,
    start: Optional[date] = None,
    end: Optional[date] = None,
    branch_id: Optional[int] = None,
    limit: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Service usage grouped by category and service, highest revenue first.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        start (Optional[date]): Inclusive lower bound on used_at.
        end (Optional[date]): Exclusive upper bound on used_at.
        branch_id (Optional[int]): Restrict to one branch.
        limit (Optional[int]): Keep only the top N services.

    Returns:
        list[dict]: service_id, service_name, category, usage_count, total_quantity, revenue
    """
    revenue = func.coalesce(func.sum(ServiceUsage.total_price), 0)
    stmt = (
        select(
            ServiceCatalog.id.label("service_id"),
            ServiceCatalog.name.label("service_name"),
            ServiceCatalog.category,
            func.count(ServiceUsage.id).label("usage_count"),
            func.coalesce(func.sum(ServiceUsage.quantity), 0).label("total_quantity"),
            revenue.label("revenue"),
        )
        .select_from(ServiceUsage)
        .join(ServiceCatalog, ServiceUsage.service_id == ServiceCatalog.id)
        .join(Booking, ServiceUsage.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
        .where(*_usage_base(start, end, branch_id))
        .group_by(ServiceCatalog.id, ServiceCatalog.name, ServiceCatalog.category)
        .order_by(revenue.desc(), ServiceCatalog.name)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def booking_status_counts(conn: Connection, branch_id: Optional[int] = None) -> dict[str, int]:
    stmt = (
        select(Booking.status, func.count(Booking.id))
        .join(Room, Booking.room_id == Room.id)
        .group_by(Booking.status)
    )
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    return {BookingStatus(status).value: int(count) for status, count in conn.execute(stmt)}


def completed_revenue_total(conn: Connection, branch_id: Optional[int] = None) -> Any:
    stmt = (
        select(func.coalesce(func.sum(Payment.amount), 0))
        .select_from(Payment)
        .join(Booking, Payment.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
        .where(Payment.payment_status == PaymentStatus.COMPLETED)
    )
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    return conn.execute(stmt).scalar_one()


def count_check_ins_on(conn: Connection, day: date) -> int:
    return conn.execute(
        select(func.count(Booking.id)).where(
            Booking.check_in_date == day,
            Booking.status.in_((BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)),
        )
    ).scalar_one()


def count_pending_maintenance(conn: Connection) -> int:
    return conn.execute(
        select(func.count(MaintenanceLog.id)).where(MaintenanceLog.status == WorkStatus.PENDING)
    ).scalar_one()


def room_status_by_branch(conn: Connection) -> list[dict[str, Any]]:
    """Room totals per branch with occupied/maintenance/available counts."""

    def _count(status: RoomStatus) -> Any:
        return func.coalesce(func.sum(case((Room.status == status, 1), else_=0)), 0)

    stmt = (
        select(
            Branch.id.label("branch_id"),
            Branch.name.label("branch_name"),
            func.count(Room.id).label("total_rooms"),
            _count(RoomStatus.OCCUPIED).label("occupied_rooms"),
            _count(RoomStatus.AVAILABLE).label("available_rooms"),
            _count(RoomStatus.MAINTENANCE).label("maintenance_rooms"),
            _count(RoomStatus.CLEANING).label("cleaning_rooms"),
        )
        .select_from(Branch)
        .outerjoin(Room, Room.branch_id == Branch.id)
        .where(Branch.is_active.is_(True))
        .group_by(Branch.id, Branch.name)
        .order_by(Branch.name)
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]
