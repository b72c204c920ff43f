"""
Unit tests for session tokens and password hashing.
"""

from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from skynest.config import Settings
from skynest.models.enums import Role
from skynest.services.sessions import (
    JWT_ALGORITHM,
    Principal,
    decode_session_token,
    hash_password,
    issue_session_token,
    normalize_role,
    verify_password,
)
from skynest.utils.datetime import utc_now


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url=None, jwt_secret="unit-test-secret")


@pytest.mark.unit
def test_password_hash_round_trip() -> None:
    """Test that a hashed password verifies and a wrong one does not."""
    hashed = hash_password("correct horse")

    assert hashed != "correct horse"
    assert verify_password(hashed, "correct horse")
    assert not verify_password(hashed, "wrong horse")


@pytest.mark.unit
def test_staff_token_carries_branch(settings: Settings) -> None:
    """Test that a staff session keeps its branch scope."""
    principal = Principal(subject_id=7, role=Role.STAFF, email="s@example.com", name="Sam", branch_id=3)

    decoded = decode_session_token(issue_session_token(principal, settings), settings)

    assert decoded == principal


@pytest.mark.unit
def test_token_signed_with_other_secret_is_rejected(settings: Settings) -> None:
    """Test that a tampered or foreign token yields no principal."""
    other = Settings(database_url=None, jwt_secret="someone-else")
    token = issue_session_token(Principal(subject_id=1, role=Role.ADMIN), other)

    assert decode_session_token(token, settings) is None


@pytest.mark.unit
def test_expired_token_is_rejected(settings: Settings) -> None:
    """Test that an expired token yields no principal."""
    past = utc_now() - timedelta(days=30)
    token = jwt.encode(
        {"sub": "1", "role": "guest", "iat": past, "exp": past + timedelta(days=1)},
        settings.jwt_secret,
        algorithm=JWT_ALGORITHM,
    )

    assert decode_session_token(token, settings) is None


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["GUEST", "Guest", " guest "])
def test_role_is_normalized_case_insensitively(raw: str, settings: Settings) -> None:
    """Test that legacy upper/mixed-case role claims still decode."""
    token = jwt.encode(
        {"sub": "5", "role": raw, "exp": utc_now() + timedelta(hours=1)},
        settings.jwt_secret,
        algorithm=JWT_ALGORITHM,
    )

    decoded = decode_session_token(token, settings)

    assert decoded is not None
    assert decoded.role is Role.GUEST
    assert decoded.subject_id == 5


@pytest.mark.unit
def test_unknown_role_is_rejected(settings: Settings) -> None:
    """Test that a token with an unknown role is treated as anonymous."""
    token = jwt.encode(
        {"sub": "5", "role": "superuser", "exp": utc_now() + timedelta(hours=1)},
        settings.jwt_secret,
        algorithm=JWT_ALGORITHM,
    )

    assert decode_session_token(token, settings) is None
    assert normalize_role(None) is None
