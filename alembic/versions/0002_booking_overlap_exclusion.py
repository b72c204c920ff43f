"""Forbid overlapping active bookings on the same room

Revision ID: 0002_booking_overlap_exclusion
Revises: 0001_initial_schema
Create Date: 2025-08-11 15:47:02.903716

"""

from alembic import op  # type: ignore[attr-defined]

# revision identifiers, used by Alembic.
revision = "0002_booking_overlap_exclusion"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None

SCHEMA = "skynest"
CONSTRAINT = "ex_bookings_room_no_overlap"


def upgrade() -> None:
    """Upgrade schema."""
    # gist index support for plain equality on room_id
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    # Half-open date ranges: a check-out day may be the next guest's check-in day
    op.execute(
        f"""
        ALTER TABLE {SCHEMA}.bookings
        ADD CONSTRAINT {CONSTRAINT}
        EXCLUDE USING gist (
            room_id WITH =,
            daterange(check_in_date, check_out_date, '[)') WITH &&
        )
        WHERE (status IN ('Pending', 'Confirmed', 'CheckedIn'))
        """
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute(f"ALTER TABLE {SCHEMA}.bookings DROP CONSTRAINT IF EXISTS {CONSTRAINT}")
