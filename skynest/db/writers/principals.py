from typing import Any

import structlog
from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from skynest.db.readers.principals import MODELS
from skynest.models.enums import Role
from skynest.models.principals import Admin, Guest, Staff
from skynest.utils.datetime import utc_now

logger = structlog.get_logger(__name__)


def insert_guest(conn: Connection, data: dict[str, Any]) -> int:
    """
    Insert a guest row.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        data (dict): Column values; password_hash must already be hashed.

    Returns:
        int: New guest id.
    """
    result = conn.execute(insert(Guest).values(**data))
    return int(result.inserted_primary_key[0])


def insert_staff(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(Staff).values(**data))
    return int(result.inserted_primary_key[0])


def insert_admin(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(Admin).values(**data))
    return int(result.inserted_primary_key[0])


def update_password_hash(conn: Connection, role: Role, principal_id: int, password_hash: str) -> None:
    model = MODELS[role]
    conn.execute(
        update(model)
        .where(model.id == principal_id)
        .values(password_hash=password_hash, updated_at=utc_now())
    )


def set_principal_active(conn: Connection, role: Role, principal_id: int, is_active: bool) -> None:
    """
    Activate or deactivate an account. Accounts are never hard-deleted.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        role (Role): Which table.
        principal_id (int): Row id.
        is_active (bool): New flag value.
    """
    model = MODELS[role]
    conn.execute(
        update(model).where(model.id == principal_id).values(is_active=is_active, updated_at=utc_now())
    )
    logger.info("principal_active_changed", role=role.value, principal_id=principal_id, is_active=is_active)


def set_profile_picture(conn: Connection, role: Role, principal_id: int, url: str) -> None:
    model = MODELS[role]
    conn.execute(
        update(model)
        .where(model.id == principal_id)
        .values(profile_picture_url=url, updated_at=utc_now())
    )


def update_profile_fields(conn: Connection, role: Role, principal_id: int, values: dict[str, Any]) -> None:
    model = MODELS[role]
    conn.execute(
        update(model).where(model.id == principal_id).values(**values, updated_at=utc_now())
    )
