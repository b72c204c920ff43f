from typing import Any, Callable

import structlog
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.engine import Connection, Engine

from skynest.config import Settings, get_settings
from skynest.db.readers.principals import get_principal_record
from skynest.dependencies import get_db_engine, require
from skynest.errors import InternalServerError, NotFound, SkyNestError
from skynest.models.enums import Role
from skynest.schemas.auth import (
    ChangePasswordPayload,
    ProfileUpdatePayload,
    LoginPayload,
    RegisterPayload,
    StaffLoginPayload,
)
from skynest.services.accounts import (
    change_password,
    login_admin,
    login_guest,
    login_staff,
    principal_from_record,
    public_profile,
    register_guest,
    update_profile,
)
from skynest.services.sessions import (
    Principal,
    clear_session_cookies,
    issue_session_token,
    set_session_cookie,
)

logger = structlog.get_logger(__name__)
router = APIRouter()


def _start_session(
    response: Response,
    engine: Engine,
    settings: Settings,
    role: Role,
    authenticate: Callable[[Connection], dict[str, Any]],
) -> dict[str, Any]:
    with engine.begin() as conn:
        record = authenticate(conn)
    token = issue_session_token(principal_from_record(record, role), settings)
    set_session_cookie(response, token, settings)
    return {"success": True, "message": "Login successful", "user": public_profile(record, role)}


@router.post("/auth/register", status_code=status.HTTP_201_CREATED, response_model=None)
def register(
    payload: RegisterPayload,
    response: Response,
    engine: Engine = Depends(get_db_engine),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Register a guest account and sign the new guest in.

    Args:
        payload: Name, email, password and optional contact details

    Returns:
        dict: The new guest's public profile
    """
    try:
        with engine.begin() as conn:
            profile = register_guest(conn, payload.model_dump())

        principal = Principal(
            subject_id=profile["id"],
            role=Role.GUEST,
            email=profile["email"],
            name=profile["name"],
        )
        set_session_cookie(response, issue_session_token(principal, settings), settings)
        return {"success": True, "message": "Registration successful", "user": profile}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("registration_failed", error=str(e))
        raise InternalServerError("Registration failed", details=str(e))


@router.post("/auth/login", response_model=None)
def login(
    payload: LoginPayload,
    response: Response,
    engine: Engine = Depends(get_db_engine),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Guest login by email and password. Sets the session cookie."""
    try:
        return _start_session(
            response,
            engine,
            settings,
            Role.GUEST,
            lambda conn: login_guest(conn, payload.email, payload.password),
        )
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("login_failed", role="guest", error=str(e))
        raise InternalServerError("Login failed", details=str(e))


@router.post("/auth/staff-login", response_model=None)
def staff_login(
    payload: StaffLoginPayload,
    response: Response,
    engine: Engine = Depends(get_db_engine),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Staff login by employee ID. The session carries the staff member's branch."""
    try:
        return _start_session(
            response,
            engine,
            settings,
            Role.STAFF,
            lambda conn: login_staff(conn, payload.employee_id, payload.password, payload.branch_id),
        )
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("login_failed", role="staff", error=str(e))
        raise InternalServerError("Login failed", details=str(e))


@router.post("/auth/admin-login", response_model=None)
def admin_login(
    payload: LoginPayload,
    response: Response,
    engine: Engine = Depends(get_db_engine),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    try:
        return _start_session(
            response,
            engine,
            settings,
            Role.ADMIN,
            lambda conn: login_admin(conn, payload.email, payload.password),
        )
    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("login_failed", role="admin", error=str(e))
        raise InternalServerError("Login failed", details=str(e))


@router.post("/auth/logout", response_model=None)
def logout(response: Response) -> dict[str, Any]:
    clear_session_cookies(response)
    return {"success": True, "message": "Logged out"}


@router.post("/auth/change-password", response_model=None)
def change_password_endpoint(
    payload: ChangePasswordPayload,
    principal: Principal = Depends(require("profile", "update")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """Change the signed-in user's password after verifying the current one."""
    try:
        with engine.begin() as conn:
            change_password(conn, principal, payload.current_password, payload.new_password)
        return {"success": True, "message": "Password changed successfully"}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("password_change_failed", error=str(e))
        raise InternalServerError("Failed to change password", details=str(e))


@router.get("/auth/me", response_model=None)
def me(
    principal: Principal = Depends(require("profile", "read")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Return the signed-in user's profile.

    Example:
        >>> GET /api/auth/me
        {"user": {"id": 1, "role": "guest", "email": "...", ...}}
    """
    try:
        with engine.connect() as conn:
            record = get_principal_record(conn, principal.role, principal.subject_id)
        if record is None:
            raise NotFound("Account not found")
        return {"user": public_profile(record, principal.role)}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("profile_fetch_failed", error=str(e))
        raise InternalServerError("Failed to load profile", details=str(e))


@router.put("/auth/profile", response_model=None)
def update_profile_endpoint(
    payload: ProfileUpdatePayload,
    principal: Principal = Depends(require("profile", "update")),
    engine: Engine = Depends(get_db_engine),
) -> dict[str, Any]:
    """
    Update the signed-in user's name and contact details.

    Guests may change phone and address, staff phone and position, admins
    only their name.
    """
    try:
        with engine.begin() as conn:
            profile = update_profile(conn, principal, payload.model_dump())
        return {"success": True, "message": "Profile updated successfully", "user": profile}

    except SkyNestError:
        raise
    except Exception as e:
        logger.exception("profile_update_failed", error=str(e))
        raise InternalServerError("Failed to update profile", details=str(e))
