"""SQLAlchemy models for the three principal kinds: guests, staff and admins."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.sql import func

from skynest.config import SCHEMA
from skynest.models.base import Base


class Guest(Base):
    """
    A hotel guest. Guests self-register and may only see their own bookings,
    payments and reviews.
    """

    __tablename__ = "guests"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    loyalty_points = Column(Integer, nullable=False, default=0)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    profile_picture_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Staff(Base):
    """
    Front-desk and housekeeping staff. Every staff member belongs to one branch
    and signs in with their employee id.
    """

    __tablename__ = "staff"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    employee_id = Column(String(50), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(50), nullable=True)
    position = Column(String(100), nullable=True)
    branch_id = Column(
        Integer, ForeignKey(f"{SCHEMA}.branches.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    is_active = Column(Boolean, nullable=False, default=True)
    profile_picture_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Admin(Base):
    """Back-office administrators with access to every branch."""

    __tablename__ = "admins"
    __table_args__ = {"schema": SCHEMA}

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    access_level = Column(String(50), nullable=False, default="full")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
