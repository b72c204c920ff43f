from typing import Any, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.engine import Connection

from skynest.db.readers.maintenance import priority_rank
from skynest.models.bookings import Booking
from skynest.models.enums import WorkStatus
from skynest.models.operations import ServiceCatalog, ServiceRequest, ServiceUsage
from skynest.models.principals import Guest, Staff
from skynest.models.properties import Room


def list_catalog(
    conn: Connection, category: Optional[str] = None, active_only: bool = True
) -> list[dict[str, Any]]:
    stmt = select(ServiceCatalog.__table__).order_by(ServiceCatalog.category, ServiceCatalog.name)
    if active_only:
        stmt = stmt.where(ServiceCatalog.is_active.is_(True))
    if category:
        stmt = stmt.where(func.lower(ServiceCatalog.category) == category.lower())
    return [dict(r) for r in conn.execute(stmt).mappings()]


def get_service(conn: Connection, service_id: int) -> Optional[dict[str, Any]]:
    row = (
        conn.execute(select(ServiceCatalog.__table__).where(ServiceCatalog.id == service_id))
        .mappings()
        .fetchone()
    )
    return dict(row) if row else None


def get_service_request(
    conn: Connection, request_id: int, for_update: bool = False
) -> Optional[dict[str, Any]]:
    """
    Fetch a service request with the branch of the booked room.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        request_id (int): Service request ID.
        for_update (bool): Lock the request row until the transaction ends.

    Returns:
        Optional[dict]: Request columns plus ``branch_id`` and ``booking_status``, or None.
    """
    stmt = (
        select(
            ServiceRequest.__table__,
            Room.branch_id,
            Booking.status.label("booking_status"),
        )
        .join(Booking, ServiceRequest.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
        .where(ServiceRequest.id == request_id)
    )
    if for_update:
        stmt = stmt.with_for_update(of=ServiceRequest)
    row = conn.execute(stmt).mappings().fetchone()
    return dict(row) if row else None


def list_service_requests(
    conn: Connection,
    *,
    booking_id: Optional[int] = None,
    guest_id: Optional[int] = None,
    branch_id: Optional[int] = None,
    assigned_to_staff_id: Optional[int] = None,
    statuses: Optional[Sequence[WorkStatus]] = None,
) -> list[dict[str, Any]]:
    """
    List service requests with service, booking, room and assignee details.

    Open requests come first, ordered by priority then age.
    """
    stmt = (
        select(
            ServiceRequest.id,
            ServiceRequest.request_reference,
            ServiceRequest.booking_id,
            ServiceRequest.guest_id,
            ServiceRequest.service_id,
            ServiceRequest.quantity,
            ServiceRequest.unit_price,
            (ServiceRequest.unit_price * ServiceRequest.quantity).label("total_price"),
            ServiceRequest.priority,
            ServiceRequest.status,
            ServiceRequest.notes,
            ServiceRequest.assigned_to_staff_id,
            ServiceRequest.requested_at,
            ServiceRequest.completed_at,
            ServiceCatalog.name.label("service_name"),
            ServiceCatalog.category,
            ServiceCatalog.unit,
            Booking.booking_reference,
            Room.room_number,
            Room.branch_id,
            (Guest.first_name + " " + Guest.last_name).label("guest_name"),
            (Staff.first_name + " " + Staff.last_name).label("assigned_to"),
        )
        .select_from(ServiceRequest)
        .join(ServiceCatalog, ServiceRequest.service_id == ServiceCatalog.id)
        .join(Booking, ServiceRequest.booking_id == Booking.id)
        .join(Room, Booking.room_id == Room.id)
        .join(Guest, ServiceRequest.guest_id == Guest.id)
        .outerjoin(Staff, ServiceRequest.assigned_to_staff_id == Staff.id)
        .order_by(priority_rank(ServiceRequest.priority), ServiceRequest.requested_at.desc())
    )
    if booking_id is not None:
        stmt = stmt.where(ServiceRequest.booking_id == booking_id)
    if guest_id is not None:
        stmt = stmt.where(ServiceRequest.guest_id == guest_id)
    if branch_id is not None:
        stmt = stmt.where(Room.branch_id == branch_id)
    if assigned_to_staff_id is not None:
        stmt = stmt.where(ServiceRequest.assigned_to_staff_id == assigned_to_staff_id)
    if statuses:
        stmt = stmt.where(ServiceRequest.status.in_(statuses))
    return [dict(r) for r in conn.execute(stmt).mappings()]


def list_service_usage(conn: Connection, booking_id: int) -> list[dict[str, Any]]:
    stmt = (
        select(
            ServiceUsage.id,
            ServiceUsage.service_id,
            ServiceUsage.service_request_id,
            ServiceUsage.quantity,
            ServiceUsage.unit_price,
            ServiceUsage.total_price,
            ServiceUsage.used_at,
            ServiceCatalog.name.label("service_name"),
            ServiceCatalog.category,
        )
        .join(ServiceCatalog, ServiceUsage.service_id == ServiceCatalog.id)
        .where(ServiceUsage.booking_id == booking_id)
        .order_by(ServiceUsage.used_at)
    )
    return [dict(r) for r in conn.execute(stmt).mappings()]
