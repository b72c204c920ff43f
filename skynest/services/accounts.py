"""
Account flows: guest registration, logins for the three principal kinds,
password changes and admin-managed user creation.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from sqlalchemy.engine import Connection

from skynest.db.readers.principals import (
    email_taken,
    employee_id_taken,
    get_admin_by_email,
    get_guest_by_email,
    get_principal_record,
    get_staff_by_employee_id,
)
from skynest.db.readers.properties import branch_exists
from skynest.db.writers.principals import (
    insert_admin,
    insert_guest,
    insert_staff,
    set_principal_active,
    update_password_hash,
    update_profile_fields,
)
from skynest.errors import (
    AuthenticationRequired,
    Conflict,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from skynest.metrics import auth_failures
from skynest.models.enums import Role
from skynest.services.sessions import Principal, hash_password, verify_password

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 8

# Columns never returned to clients
PRIVATE_FIELDS = frozenset({"password_hash"})

# Columns each principal kind may edit on their own profile
PROFILE_FIELDS: dict[Role, frozenset[str]] = {
    Role.GUEST: frozenset({"first_name", "last_name", "phone", "address"}),
    Role.STAFF: frozenset({"first_name", "last_name", "phone", "position"}),
    Role.ADMIN: frozenset({"first_name", "last_name"}),
}


def public_profile(record: dict[str, Any], role: Role) -> dict[str, Any]:
    profile = {k: v for k, v in record.items() if k not in PRIVATE_FIELDS}
    profile["role"] = role.value
    profile["name"] = f"{record['first_name']} {record['last_name']}"
    return profile


def principal_from_record(record: dict[str, Any], role: Role) -> Principal:
    return Principal(
        subject_id=record["id"],
        role=role,
        email=record["email"],
        name=f"{record['first_name']} {record['last_name']}",
        branch_id=record.get("branch_id") if role is Role.STAFF else None,
    )


def _check_password_strength(password: str) -> None:
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")


def _reject_login(reason: str, message: str) -> None:
    auth_failures.labels(reason=reason).inc()
    raise AuthenticationRequired(message)


def register_guest(conn: Connection, data: dict[str, Any]) -> dict[str, Any]:
    """
    Create a guest account.

    Args:
        conn (Connection): SQLAlchemy DB connection.
        data (dict): first_name, last_name, email, password, optional phone/address.

    Returns:
        dict: Public guest profile

    Raises:
        ValidationFailed: Weak password
        Conflict: Email already registered
    """
    _check_password_strength(data["password"])
    email = data["email"].strip().lower()
    if email_taken(conn, Role.GUEST, email):
        raise Conflict("An account with this email already exists")

    guest_id = insert_guest(
        conn,
        {
            "email": email,
            "password_hash": hash_password(data["password"]),
            "first_name": data["first_name"].strip(),
            "last_name": data["last_name"].strip(),
            "phone": data.get("phone"),
            "address": data.get("address"),
            "is_verified": False,
        },
    )
    logger.info("guest_registered", guest_id=guest_id)
    record = get_principal_record(conn, Role.GUEST, guest_id)
    if record is None:
        raise NotFound("Guest not found")
    return public_profile(record, Role.GUEST)


def _finish_login(record: Optional[dict[str, Any]], password: str, role: Role, message: str) -> dict[str, Any]:
    if record is None or not verify_password(record["password_hash"], password):
        _reject_login("bad_credentials", message)
    if not record["is_active"]:
        auth_failures.labels(reason="inactive").inc()
        raise PermissionDenied("This account has been deactivated")
    logger.info("login_succeeded", role=role.value, subject_id=record["id"])
    return record


def login_guest(conn: Connection, email: str, password: str) -> dict[str, Any]:
    record = get_guest_by_email(conn, email.strip())
    return _finish_login(record, password, Role.GUEST, "Invalid email or password")


def login_admin(conn: Connection, email: str, password: str) -> dict[str, Any]:
    record = get_admin_by_email(conn, email.strip())
    return _finish_login(record, password, Role.ADMIN, "Invalid email or password")


def login_staff(
    conn: Connection, employee_id: str, password: str, branch_id: Optional[int] = None
) -> dict[str, Any]:
    """
    Authenticate a staff member by employee id.

    When a branch is given it must be the staff member's own branch.
    """
    message = "Invalid employee ID or password"
    record = _finish_login(get_staff_by_employee_id(conn, employee_id.strip()), password, Role.STAFF, message)
    if branch_id is not None and record["branch_id"] != branch_id:
        _reject_login("wrong_branch", message)
    return record


def change_password(
    conn: Connection, principal: Principal, current_password: str, new_password: str
) -> None:
    """
    Change the caller's own password.

    Raises:
        ValidationFailed: Weak new password or wrong current password
        NotFound: The account no longer exists
    """
    _check_password_strength(new_password)
    record = get_principal_record(conn, principal.role, principal.subject_id)
    if record is None:
        raise NotFound("Account not found")
    if not verify_password(record["password_hash"], current_password):
        auth_failures.labels(reason="bad_current_password").inc()
        raise ValidationFailed("Current password is incorrect")

    update_password_hash(conn, principal.role, principal.subject_id, hash_password(new_password))
    logger.info("password_changed", role=principal.role.value, subject_id=principal.subject_id)


def update_profile(conn: Connection, principal: Principal, changes: dict[str, Any]) -> dict[str, Any]:
    """
    Update the caller's own contact details.

    Only the fields editable for the caller's role are applied; fields that
    are missing or None are left unchanged.

    Returns:
        dict: The updated public profile

    Raises:
        ValidationFailed: Nothing editable was supplied
        NotFound: The account no longer exists
    """
    allowed = PROFILE_FIELDS[principal.role]
    values = {k: v.strip() if isinstance(v, str) else v for k, v in changes.items() if k in allowed and v is not None}
    if not values:
        raise ValidationFailed("No valid fields to update", allowed_fields=sorted(allowed))
    if get_principal_record(conn, principal.role, principal.subject_id) is None:
        raise NotFound("Account not found")

    update_profile_fields(conn, principal.role, principal.subject_id, values)
    logger.info(
        "profile_updated",
        role=principal.role.value,
        subject_id=principal.subject_id,
        fields=sorted(values),
    )
    record = get_principal_record(conn, principal.role, principal.subject_id)
    if record is None:
        raise NotFound("Account not found")
    return public_profile(record, principal.role)


def create_user(conn: Connection, role: Role, data: dict[str, Any]) -> dict[str, Any]:
    """
    Admin-created account of any role.

    Staff need a unique employee_id and an existing branch.

    Returns:
        dict: Public profile of the new user
    """
    _check_password_strength(data["password"])
    email = data["email"].strip().lower()
    if email_taken(conn, role, email):
        raise Conflict("An account with this email already exists")

    common = {
        "email": email,
        "password_hash": hash_password(data["password"]),
        "first_name": data["first_name"].strip(),
        "last_name": data["last_name"].strip(),
    }
    if role is Role.STAFF:
        employee_id = data.get("employee_id")
        branch_id = data.get("branch_id")
        if not employee_id or branch_id is None:
            raise ValidationFailed("employee_id and branch_id are required for staff")
        if employee_id_taken(conn, employee_id):
            raise Conflict("Employee ID is already in use")
        if not branch_exists(conn, branch_id):
            raise NotFound("Branch not found")
        user_id = insert_staff(
            conn,
            {
                **common,
                "employee_id": employee_id,
                "branch_id": branch_id,
                "position": data.get("position"),
                "phone": data.get("phone"),
            },
        )
    elif role is Role.ADMIN:
        user_id = insert_admin(conn, {**common, "access_level": data.get("access_level") or "full"})
    else:
        user_id = insert_guest(
            conn, {**common, "phone": data.get("phone"), "address": data.get("address")}
        )

    logger.info("user_created", role=role.value, user_id=user_id)
    record = get_principal_record(conn, role, user_id)
    if record is None:
        raise NotFound("User not found")
    return public_profile(record, role)


def set_user_active(
    conn: Connection, acting: Principal, role: Role, user_id: int, is_active: bool
) -> dict[str, Any]:
    """Activate or deactivate an account. Admins cannot deactivate themselves."""
    if role is acting.role and user_id == acting.subject_id and not is_active:
        raise ValidationFailed("You cannot deactivate your own account")
    if get_principal_record(conn, role, user_id) is None:
        raise NotFound("User not found")
    set_principal_active(conn, role, user_id, is_active)
    logger.info("user_status_changed", role=role.value, user_id=user_id, is_active=is_active)
    return {"id": user_id, "role": role.value, "is_active": is_active}
