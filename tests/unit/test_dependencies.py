"""
Unit tests for FastAPI dependency injection and session guards.
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from skynest.config import Settings, get_settings
from skynest.dependencies import get_db_engine, require
from skynest.errors import SkyNestError
from skynest.main import skynest_error_handler
from skynest.models.enums import Role
from skynest.services.sessions import Principal, issue_session_token

SETTINGS = Settings(database_url=None, jwt_secret="dependency-test-secret")


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(SkyNestError, skynest_error_handler)
    app.dependency_overrides[get_settings] = lambda: SETTINGS

    @app.get("/reports")
    def reports(principal: Principal = Depends(require("report", "read"))) -> dict[str, int]:
        return {"subject_id": principal.subject_id}

    return app


def _cookie(role: Role, name: str = "token") -> dict[str, str]:
    token = issue_session_token(Principal(subject_id=42, role=role), SETTINGS)
    return {"Cookie": f"{name}={token}"}


@pytest.mark.unit
def test_dependency_injection_can_be_overridden() -> None:
    """Test that the engine dependency can be overridden for testing."""
    app = FastAPI()

    @app.get("/test")
    def test_endpoint(engine: Engine = Depends(get_db_engine)) -> dict[str, str]:
        return {"engine_name": engine.name}

    mock_engine = Mock(spec=Engine)
    mock_engine.name = "mock_engine"
    app.dependency_overrides[get_db_engine] = lambda: mock_engine

    response = TestClient(app).get("/test")

    assert response.status_code == 200
    assert response.json() == {"engine_name": "mock_engine"}


@pytest.mark.unit
def test_missing_session_is_401(app: FastAPI) -> None:
    response = TestClient(app).get("/reports")

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


@pytest.mark.unit
def test_wrong_role_is_403(app: FastAPI) -> None:
    response = TestClient(app).get("/reports", headers=_cookie(Role.GUEST))

    assert response.status_code == 403


@pytest.mark.unit
def test_admin_session_is_accepted(app: FastAPI) -> None:
    response = TestClient(app).get("/reports", headers=_cookie(Role.ADMIN))

    assert response.status_code == 200
    assert response.json() == {"subject_id": 42}


@pytest.mark.unit
def test_legacy_session_cookie_is_accepted(app: FastAPI) -> None:
    response = TestClient(app).get("/reports", headers=_cookie(Role.ADMIN, name="session"))

    assert response.status_code == 200


@pytest.mark.unit
def test_garbage_cookie_is_treated_as_anonymous(app: FastAPI) -> None:
    response = TestClient(app).get("/reports", headers={"Cookie": "token=not-a-jwt"})

    assert response.status_code == 401
