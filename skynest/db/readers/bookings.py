from datetime import date
from typing import Any, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.engine import Connection
from sqlalchemy.sql import Subquery

from skynest.models.bookings import Booking, Payment
from skynest.models.enums import ACTIVE_BOOKING_STATUSES, BookingStatus, PaymentStatus
from skynest.models.principals import Guest
from skynest.models.properties import Branch, Room, RoomType


def paid_totals_subquery() -> Subquery:
    """Σ Completed payments per booking, for joining into booking listings."""
    return (
        select(
            Payment.booking_id,
            func.coalesce(func.sum(Payment.amount), 0).label("paid_amount"),
        )
        .where(Payment.payment_status == PaymentStatus.COMPLETED)
        .group_by(Payment.booking_id)
        .subquery()
    )


def overlap_clause(start: date, end: date) -> Any:
    """
    Interval-overlap predicate between stored bookings and [start, end).

    Matches when the candidate start falls inside an existing stay, the
    candidate end falls inside it, or the candidate fully contains it.
    """
    return or_(
        and_(Booking.check_in_date <= start, Booking.check_out_date > start),
        and_(Booking.check_in_date < end, Booking.check_out_date >= end),
        and_(Booking.check_in_date >= start, Booking.check_out_date <= end),
    )


def find_conflicting_bookings(
    conn: Connection,
    room_id: int,
    start: date,
    end: date,
    exclude_booking_id: Optional[int] = None,
) -> list[dict[str, Any]]:
    """
    Active bookings on a room that overlap [start, end).

    Args:
        conn (Connection): SQLAlchemy DB connection.
        room_id (int): Room to check.
        start (date): Candidate check-in.
        end (date): Candidate check-out.
        exclude_booking_id (Optional[int]): Ignore this booking (re-checks of itself).

    Returns:
        list[dict]: booking_reference, check_in_date, check_out_date and status of each conflict.
    """
    stmt = (
        select(
            Booking.id,
            Booking.booking_reference,
            Booking.check_in_date,
            Booking.check_out_date,
            Booking.status,
        )
        .where(
            Booking.room_id == room_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            overlap_clause(start, end),
        )
        .order_by(Booking.check_in_date)
    )
    if exclude_booking_id is not None:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    return [dict(r) for r in conn.execute(stmt).mappings()]


def count_active_bookings_per_room(
    conn: Connection, start: date, end: date, branch_id: Optional[int] = None
) -> dict[int, int]:
    """Number of overlapping active bookings per room id within [start, end)."""
    stmt = (
        select(Booking.room_id, func.count(Booking.id))
        .join(Room, Booking.room_id == Room.id)
        .where(Booking.status.in_(ACTIVE_BOOKING_STATUSES), overlap_clause(start, end))
        .group_by(Booking.room_id)
    )
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    return {room_id: int(count) for room_id, count in conn.execute(stmt)}


def get_booking_row(conn: Connection, booking_id: int, for_update: bool = False) -> Optional[dict[str, Any]]:
    """
    Fetch the raw bookings row.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        booking_id (int): Booking ID.
        for_update (bool): Lock the row until the transaction ends.

    Returns:
        Optional[dict]: Booking columns, or None if not found.
    """
    stmt = select(Booking.__table__).where(Booking.id == booking_id)
    if for_update:
        stmt = stmt.with_for_update()
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def _detail_columns(paid: Subquery) -> list[Any]:
    return [
        Booking.id,
        Booking.booking_reference,
        Booking.guest_id,
        Booking.room_id,
        Booking.check_in_date,
        Booking.check_out_date,
        Booking.number_of_guests,
        Booking.status,
        Booking.base_amount,
        Booking.total_amount,
        Booking.special_requests,
        Booking.cancellation_reason,
        Booking.created_at,
        Booking.checked_in_at,
        Booking.checked_out_at,
        Booking.cancelled_at,
        Room.room_number,
        Room.branch_id,
        RoomType.id.label("room_type_id"),
        RoomType.name.label("room_type"),
        Branch.name.label("branch_name"),
        Guest.first_name.label("guest_first_name"),
        Guest.last_name.label("guest_last_name"),
        Guest.email.label("guest_email"),
        func.coalesce(paid.c.paid_amount, 0).label("paid_amount"),
    ]


def _detail_select(paid: Subquery) -> Any:
    return (
        select(*_detail_columns(paid))
        .join(Room, Booking.room_id == Room.id)
        .join(RoomType, Room.room_type_id == RoomType.id)
        .join(Branch, Room.branch_id == Branch.id)
        .join(Guest, Booking.guest_id == Guest.id)
        .outerjoin(paid, paid.c.booking_id == Booking.id)
    )


def get_booking_details(conn: Connection, booking_id: int) -> Optional[dict[str, Any]]:
    """
    Fetch a booking joined with room, branch, guest and paid amount.

    Returns:
        Optional[dict]: Booking details, or None if not found.
    """
    stmt = _detail_select(paid_totals_subquery()).where(Booking.id == booking_id)
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def list_guest_bookings(conn: Connection, guest_id: int) -> list[dict[str, Any]]:
    stmt = (
        _detail_select(paid_totals_subquery())
        .where(Booking.guest_id == guest_id)
        .order_by(Booking.check_in_date.desc(), Booking.id.desc())
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]


def list_bookings(
    conn: Connection,
    branch_id: Optional[int] = None,
    status: Optional[BookingStatus] = None,
    on_date: Optional[date] = None,
    search: Optional[str] = None,
    limit: int = 200,
) -> list[dict[str, Any]]:
    """
    List bookings for the front desk or the admin back office.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        branch_id (Optional[int]): Restrict to one branch.
        status (Optional[BookingStatus]): Restrict to one status.
        on_date (Optional[date]): Only stays covering this date (arrivals included).
        search (Optional[str]): Match booking reference, guest name or email.
        limit (int): Maximum rows.

    Returns:
        list[dict]: Booking details ordered by check-in date.
    """
    stmt = _detail_select(paid_totals_subquery())
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    if status is not None:
        stmt = stmt.where(Booking.status == status)
    if on_date is not None:
        stmt = stmt.where(Booking.check_in_date <= on_date, Booking.check_out_date >= on_date)
    if search:
        pattern = f"%{search.lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(Booking.booking_reference).like(pattern),
                func.lower(Guest.first_name).like(pattern),
                func.lower(Guest.last_name).like(pattern),
                func.lower(Guest.email).like(pattern),
            )
        )
    stmt = stmt.order_by(Booking.check_in_date, Booking.id).limit(limit)
    return [dict(r) for r in conn.execute(stmt).mappings()]
