from typing import Any

from sqlalchemy import insert, update
from sqlalchemy.engine import Connection

from skynest.models.operations import (
    MaintenanceLog,
    Review,
    ServiceCatalog,
    ServiceRequest,
    ServiceUsage,
)
from skynest.utils.datetime import utc_now


def insert_maintenance_log(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(MaintenanceLog).values(**data))
    return int(result.inserted_primary_key[0])


def update_maintenance_log(conn: Connection, log_id: int, data: dict[str, Any]) -> None:
    """
    Update maintenance log fields and bump updated_at.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        log_id (int): Maintenance log ID.
        data (dict): Column values to set.
    """
    data["updated_at"] = utc_now()
    conn.execute(update(MaintenanceLog).where(MaintenanceLog.id == log_id).values(**data))


def insert_service(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(ServiceCatalog).values(**data))
    return int(result.inserted_primary_key[0])


def update_service(conn: Connection, service_id: int, data: dict[str, Any]) -> None:
    conn.execute(update(ServiceCatalog).where(ServiceCatalog.id == service_id).values(**data))


def insert_service_request(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(ServiceRequest).values(**data))
    return int(result.inserted_primary_key[0])


def update_service_request(conn: Connection, request_id: int, data: dict[str, Any]) -> None:
    data["updated_at"] = utc_now()
    conn.execute(update(ServiceRequest).where(ServiceRequest.id == request_id).values(**data))


def insert_service_usage(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(ServiceUsage).values(**data))
    return int(result.inserted_primary_key[0])


def insert_review(conn: Connection, data: dict[str, Any]) -> int:
    result = conn.execute(insert(Review).values(**data))
    return int(result.inserted_primary_key[0])
