"""Initial Sky Nest schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-08-04 10:12:31.418022

"""

import sqlalchemy as sa

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

SCHEMA = "skynest"

ENUMS = {
    "room_status": ("Available", "Occupied", "Maintenance", "Cleaning"),
    "booking_status": ("Pending", "Confirmed", "CheckedIn", "CheckedOut", "Cancelled", "NoShow"),
    "payment_method": ("Cash", "CreditCard", "DebitCard", "BankTransfer", "Online"),
    "payment_status": ("Pending", "Completed"),
    "maintenance_priority": ("Low", "Normal", "High", "Urgent"),
    "work_status": ("Pending", "InProgress", "Completed", "Cancelled"),
    "service_priority": ("Low", "Normal", "High", "Urgent"),
    "service_status": ("Pending", "InProgress", "Completed", "Cancelled"),
}


def _enum(name: str) -> sa.Enum:
    return sa.Enum(*ENUMS[name], name=name, schema=SCHEMA)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _fk(table: str, ondelete: str) -> sa.ForeignKey:
    return sa.ForeignKey(f"{SCHEMA}.{table}.id", ondelete=ondelete)


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "branches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("location", sa.String(150), nullable=False),
        sa.Column("address", sa.String(500)),
        sa.Column("phone", sa.String(50)),
        sa.Column("email", sa.String(255), unique=True),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        schema=SCHEMA,
    )

    op.create_table(
        "guests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("address", sa.String(500)),
        sa.Column("loyalty_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("profile_picture_url", sa.String(500)),
        *_timestamps(),
        schema=SCHEMA,
    )

    op.create_table(
        "staff",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("employee_id", sa.String(50), nullable=False, unique=True, index=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(50)),
        sa.Column("position", sa.String(100)),
        sa.Column("branch_id", sa.Integer(), _fk("branches", "RESTRICT"), nullable=False, index=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("profile_picture_url", sa.String(500)),
        *_timestamps(),
        schema=SCHEMA,
    )

    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True, index=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("access_level", sa.String(50), nullable=False, server_default="full"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        schema=SCHEMA,
    )

    op.create_table(
        "room_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("branch_id", sa.Integer(), _fk("branches", "RESTRICT"), nullable=False, index=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("base_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("bed_type", sa.String(100)),
        sa.Column("size_sqm", sa.Integer()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        schema=SCHEMA,
    )

    op.create_table(
        "amenities",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("icon", sa.String(100)),
        schema=SCHEMA,
    )

    op.create_table(
        "room_type_amenities",
        sa.Column("room_type_id", sa.Integer(), _fk("room_types", "CASCADE"), primary_key=True),
        sa.Column("amenity_id", sa.Integer(), _fk("amenities", "CASCADE"), primary_key=True),
        schema=SCHEMA,
    )

    op.create_table(
        "room_images",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("room_type_id", sa.Integer(), _fk("room_types", "CASCADE"), nullable=False, index=True),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("alt_text", sa.String(255)),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        schema=SCHEMA,
    )

    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("branch_id", sa.Integer(), _fk("branches", "RESTRICT"), nullable=False, index=True),
        sa.Column("room_type_id", sa.Integer(), _fk("room_types", "RESTRICT"), nullable=False, index=True),
        sa.Column("room_number", sa.String(20), nullable=False),
        sa.Column("floor", sa.Integer(), nullable=False),
        sa.Column("status", _enum("room_status"), nullable=False, server_default="Available"),
        sa.Column("last_cleaned", sa.DateTime(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint("branch_id", "room_number", name="uq_rooms_branch_room_number"),
        schema=SCHEMA,
    )

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_reference", sa.String(40), nullable=False, unique=True, index=True),
        sa.Column("guest_id", sa.Integer(), _fk("guests", "RESTRICT"), nullable=False, index=True),
        sa.Column("room_id", sa.Integer(), _fk("rooms", "RESTRICT"), nullable=False),
        sa.Column("check_in_date", sa.Date(), nullable=False),
        sa.Column("check_out_date", sa.Date(), nullable=False),
        sa.Column("number_of_guests", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("status", _enum("booking_status"), nullable=False, server_default="Pending"),
        sa.Column("base_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("special_requests", sa.Text()),
        sa.Column("cancellation_reason", sa.Text()),
        *_timestamps(),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
        sa.Column("checked_in_at", sa.DateTime(timezone=True)),
        sa.Column("checked_out_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("check_out_date > check_in_date", name="ck_bookings_date_order"),
        schema=SCHEMA,
    )
    op.create_index(
        "ix_bookings_room_dates",
        "bookings",
        ["room_id", "check_in_date", "check_out_date"],
        schema=SCHEMA,
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("payment_reference", sa.String(40), nullable=False, unique=True),
        sa.Column("booking_id", sa.Integer(), _fk("bookings", "CASCADE"), nullable=False, index=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("payment_method", _enum("payment_method"), nullable=False),
        sa.Column("payment_status", _enum("payment_status"), nullable=False, server_default="Pending"),
        sa.Column("transaction_id", sa.String(100)),
        sa.Column("processed_by_staff_id", sa.Integer(), _fk("staff", "SET NULL")),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("paid_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        schema=SCHEMA,
    )

    op.create_table(
        "maintenance_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("log_reference", sa.String(40), nullable=False, unique=True),
        sa.Column("room_id", sa.Integer(), _fk("rooms", "CASCADE"), nullable=False, index=True),
        sa.Column("booking_id", sa.Integer(), _fk("bookings", "SET NULL")),
        sa.Column("reported_by_guest_id", sa.Integer(), _fk("guests", "SET NULL")),
        sa.Column("reported_by_staff_id", sa.Integer(), _fk("staff", "SET NULL")),
        sa.Column("assigned_to_staff_id", sa.Integer(), _fk("staff", "SET NULL"), index=True),
        sa.Column("issue_description", sa.Text(), nullable=False),
        sa.Column("priority", _enum("maintenance_priority"), nullable=False, server_default="Normal"),
        sa.Column("status", _enum("work_status"), nullable=False, server_default="Pending"),
        sa.Column("notes", sa.Text()),
        sa.Column("resolution_notes", sa.Text()),
        *_timestamps(),
        sa.Column("started_at", sa.DateTime(timezone=True)),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        schema=SCHEMA,
    )

    op.create_table(
        "service_catalog",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(150), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("unit", sa.String(50), nullable=False, server_default="item"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        schema=SCHEMA,
    )

    op.create_table(
        "service_requests",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("request_reference", sa.String(40), nullable=False, unique=True),
        sa.Column("booking_id", sa.Integer(), _fk("bookings", "CASCADE"), nullable=False, index=True),
        sa.Column("guest_id", sa.Integer(), _fk("guests", "CASCADE"), nullable=False, index=True),
        sa.Column("service_id", sa.Integer(), _fk("service_catalog", "RESTRICT"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("priority", _enum("service_priority"), nullable=False, server_default="Normal"),
        sa.Column("status", _enum("service_status"), nullable=False, server_default="Pending"),
        sa.Column("notes", sa.Text()),
        sa.Column("assigned_to_staff_id", sa.Integer(), _fk("staff", "SET NULL"), index=True),
        sa.Column("requested_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("quantity > 0", name="ck_service_requests_quantity_positive"),
        schema=SCHEMA,
    )

    op.create_table(
        "service_usage",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), _fk("bookings", "CASCADE"), nullable=False, index=True),
        sa.Column("service_id", sa.Integer(), _fk("service_catalog", "RESTRICT"), nullable=False),
        sa.Column("service_request_id", sa.Integer(), _fk("service_requests", "SET NULL")),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        schema=SCHEMA,
    )

    op.create_table(
        "reviews",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), _fk("bookings", "CASCADE"), nullable=False, unique=True),
        sa.Column("guest_id", sa.Integer(), _fk("guests", "CASCADE"), nullable=False, index=True),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200)),
        sa.Column("comment", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("rating BETWEEN 1 AND 5", name="ck_reviews_rating_range"),
        schema=SCHEMA,
    )


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "reviews",
        "service_usage",
        "service_requests",
        "service_catalog",
        "maintenance_logs",
        "payments",
        "bookings",
        "rooms",
        "room_images",
        "room_type_amenities",
        "amenities",
        "room_types",
        "admins",
        "staff",
        "guests",
        "branches",
    ):
        op.drop_table(table, schema=SCHEMA)

    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).drop(bind, checkfirst=True)
