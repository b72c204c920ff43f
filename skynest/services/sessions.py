"""
Session tokens and password hashing.

A session is an HS256 JWT carried in the ``token`` cookie. Decoding never
raises: any problem with the cookie (missing, tampered, expired, unknown
role) means the caller is simply not signed in.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

import jwt
import structlog
from fastapi import Response
from werkzeug.security import check_password_hash, generate_password_hash

from skynest.config import LEGACY_SESSION_COOKIE, SESSION_COOKIE, Settings
from skynest.models.enums import Role
from skynest.utils.datetime import utc_now

logger = structlog.get_logger(__name__)

JWT_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, as decoded from a session token."""

    subject_id: int
    role: Role
    email: Optional[str] = None
    name: Optional[str] = None
    branch_id: Optional[int] = None


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def normalize_role(raw: Any) -> Optional[Role]:
    """Map 'GUEST', 'Guest' or 'guest' to Role.GUEST; unknown values to None."""
    if not isinstance(raw, str):
        return None
    try:
        return Role(raw.strip().lower())
    except ValueError:
        return None


def issue_session_token(principal: Principal, settings: Settings) -> str:
    """
    Sign a session token for the principal.

    Args:
        principal: Authenticated caller
        settings: Carries the signing secret and session lifetime

    Returns:
        str: Encoded JWT
    """
    now = utc_now()
    payload: dict[str, Any] = {
        "sub": str(principal.subject_id),
        "role": principal.role.value,
        "email": principal.email,
        "name": principal.name,
        "iat": now,
        "exp": now + timedelta(days=settings.session_ttl_days),
    }
    if principal.branch_id is not None:
        payload["branch_id"] = principal.branch_id
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> Optional[Principal]:
    """
    Verify and decode a session token.

    Returns:
        Optional[Principal]: The principal, or None if the token is unusable
    """
    try:
        claims = jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("session_token_expired")
        return None
    except jwt.PyJWTError as e:
        logger.debug("session_token_invalid", error=str(e))
        return None

    role = normalize_role(claims.get("role"))
    if role is None:
        return None

    try:
        subject_id = int(claims["sub"])
        branch_id = claims.get("branch_id")
        return Principal(
            subject_id=subject_id,
            role=role,
            email=claims.get("email"),
            name=claims.get("name"),
            branch_id=int(branch_id) if branch_id is not None else None,
        )
    except (KeyError, TypeError, ValueError):
        return None


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=settings.session_ttl_days * 24 * 60 * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookies(response: Response) -> None:
    for name in (SESSION_COOKIE, LEGACY_SESSION_COOKIE):
        response.delete_cookie(key=name, path="/")
