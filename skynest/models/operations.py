"""
SQLAlchemy models for day-to-day hotel operations: maintenance logs, the
service catalog, guest service requests, charged service usage and reviews.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from skynest.config import SCHEMA
from skynest.models.base import Base
from skynest.models.enums import Priority, WorkStatus, db_enum


class MaintenanceLog(Base):
    """
    A facility issue tied to a room.

    Reported either by a guest (against their active booking) or by a staff
    member. Only the assigned staff member may move it forward.
    """

    __tablename__ = "maintenance_logs"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    log_reference = Column(String(40), nullable=False, unique=True)
    room_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    booking_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.bookings.id", ondelete="SET NULL"), nullable=True
    )
    reported_by_guest_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.guests.id", ondelete="SET NULL"), nullable=True
    )
    reported_by_staff_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.staff.id", ondelete="SET NULL"), nullable=True
    )
    assigned_to_staff_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.staff.id", ondelete="SET NULL"), nullable=True, index=True
    )
    issue_description = Column(Text, nullable=False)
    priority = Column(db_enum(Priority, "maintenance_priority"), nullable=False, default=Priority.NORMAL)
    status = Column(db_enum(WorkStatus, "work_status"), nullable=False, default=WorkStatus.PENDING)
    notes = Column(Text, nullable=True)
    resolution_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    started_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)


class ServiceCatalog(Base):
    """A priced extra (spa, airport transfer, laundry) a guest can order."""

    __tablename__ = "service_catalog"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    unit = Column(String(50), nullable=False, default="item")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class ServiceRequest(Base):
    """
    A guest's order for a catalog service against one of their bookings.

    unit_price is snapshotted from the catalog when the request is made.
    Follows the same Pending/InProgress/Completed/Cancelled lifecycle as
    maintenance logs.
    """

    __tablename__ = "service_requests"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_service_requests_quantity_positive"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True)
    request_reference = Column(String(40), nullable=False, unique=True)
    booking_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    guest_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.guests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.service_catalog.id", ondelete="RESTRICT"), nullable=False
    )
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)
    priority = Column(db_enum(Priority, "service_priority"), nullable=False, default=Priority.NORMAL)
    status = Column(db_enum(WorkStatus, "service_status"), nullable=False, default=WorkStatus.PENDING)
    notes = Column(Text, nullable=True)
    assigned_to_staff_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.staff.id", ondelete="SET NULL"), nullable=True, index=True
    )
    requested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)


class ServiceUsage(Base):
    """A charged service line. Counted into the booking's total_amount."""

    __tablename__ = "service_usage"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    booking_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    service_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.service_catalog.id", ondelete="RESTRICT"), nullable=False
    )
    service_request_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.service_requests.id", ondelete="SET NULL"), nullable=True
    )
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)
    used_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class Review(Base):
    """A guest's rating of a completed stay. One per booking."""

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True)
    booking_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.bookings.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    guest_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.guests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    rating = Column(Integer, nullable=False)
    title = Column(String(200), nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
