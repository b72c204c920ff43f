"""SQLAlchemy models for branches, room types and rooms."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from skynest.config import SCHEMA
from skynest.models.base import Base
from skynest.models.enums import RoomStatus, db_enum


class Branch(Base):
    """A physical hotel property. Owns its room types and rooms."""

    __tablename__ = "branches"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    name = Column(String(150), nullable=False)
    location = Column(String(150), nullable=False)
    address = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True, unique=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class RoomType(Base):
    """
    Price and capacity template for a class of rooms in one branch.

    Amenities are attached through room_type_amenities and images are an
    ordered list in room_images.
    """

    __tablename__ = "room_types"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    branch_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.branches.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    capacity = Column(Integer, nullable=False)
    bed_type = Column(String(100), nullable=True)
    size_sqm = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Amenity(Base):
    __tablename__ = "amenities"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    icon = Column(String(100), nullable=True)


class RoomTypeAmenity(Base):
    __tablename__ = "room_type_amenities"
    __table_args__ = {"schema": SCHEMA}

    room_type_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.room_types.id", ondelete="CASCADE"), primary_key=True
    )
    amenity_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.amenities.id", ondelete="CASCADE"), primary_key=True
    )


class RoomImage(Base):
    __tablename__ = "room_images"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    room_type_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.room_types.id", ondelete="CASCADE"), nullable=False, index=True
    )
    url = Column(String(500), nullable=False)
    alt_text = Column(String(255), nullable=True)
    display_order = Column(Integer, nullable=False, default=0)


class Room(Base):
    """
    A concrete bookable unit.

    room_number is unique within a branch. Status moves between Available,
    Occupied, Maintenance and Cleaning as guests check in/out and maintenance
    work starts and finishes.
    """

    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("branch_id", "room_number", name="uq_rooms_branch_room_number"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True)
    branch_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.branches.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    room_type_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.room_types.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    room_number = Column(String(20), nullable=False)
    floor = Column(Integer, nullable=False)
    status = Column(
        db_enum(RoomStatus, "room_status"), nullable=False, default=RoomStatus.AVAILABLE
    )
    last_cleaned = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
