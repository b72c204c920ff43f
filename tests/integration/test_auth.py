"""
Integration tests for /api/auth endpoints.
"""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.engine import Engine

from tests.conftest import PASSWORD


@pytest.mark.integration
def test_register_sets_session_and_hides_password(client: TestClient, hotel: dict[str, Any]) -> None:
    """Test that registration signs the guest in and never returns the hash."""
    response = client.post(
        "/api/auth/register",
        json={
            "first_name": "Ravi",
            "last_name": "Kumar",
            "email": "Ravi@Example.com",
            "password": "longenough",
        },
    )

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "ravi@example.com"
    assert user["role"] == "guest"
    assert "password_hash" not in user
    assert "token" in response.cookies

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user["id"]


@pytest.mark.integration
def test_register_duplicate_email_conflicts(client: TestClient, hotel: dict[str, Any]) -> None:
    response = client.post(
        "/api/auth/register",
        json={"first_name": "N", "last_name": "P", "email": "guest@example.com", "password": "longenough"},
    )

    assert response.status_code == 409


@pytest.mark.integration
def test_register_rejects_short_password(client: TestClient, hotel: dict[str, Any]) -> None:
    response = client.post(
        "/api/auth/register",
        json={"first_name": "N", "last_name": "P", "email": "new@example.com", "password": "short"},
    )

    assert response.status_code == 400
    assert "at least 8" in response.json()["error"]


@pytest.mark.integration
def test_malformed_payload_is_400(client: TestClient, hotel: dict[str, Any]) -> None:
    response = client.post("/api/auth/login", json={"email": "not-an-email"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request payload"


@pytest.mark.integration
def test_guest_login_and_logout(client: TestClient, hotel: dict[str, Any]) -> None:
    response = client.post("/api/auth/login", json={"email": "guest@example.com", "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == hotel["guest_id"]
    assert client.get("/api/auth/me").status_code == 200

    client.post("/api/auth/logout")
    client.cookies.clear()
    assert client.get("/api/auth/me").status_code == 401


@pytest.mark.integration
def test_wrong_password_is_401(client: TestClient, hotel: dict[str, Any]) -> None:
    response = client.post("/api/auth/login", json={"email": "guest@example.com", "password": "nope-nope"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


@pytest.mark.integration
def test_inactive_account_is_403(client: TestClient, engine: Engine, hotel: dict[str, Any]) -> None:
    with engine.begin() as conn:
        conn.execute(text("UPDATE guests SET is_active = 0 WHERE id = :id"), {"id": hotel["guest_id"]})

    response = client.post("/api/auth/login", json={"email": "guest@example.com", "password": PASSWORD})

    assert response.status_code == 403


@pytest.mark.integration
def test_staff_login_scopes_session_to_branch(client: TestClient, hotel: dict[str, Any]) -> None:
    """Test that a staff session carries the staff member's branch."""
    response = client.post("/api/auth/staff-login", json={"employee_id": "EMP001", "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["branch_id"] == hotel["branch_id"]

    rooms = client.get("/api/staff/rooms").json()["rooms"]
    assert {r["room_number"] for r in rooms} == {"R101", "R102"}


@pytest.mark.integration
def test_staff_login_for_wrong_branch_is_401(client: TestClient, hotel: dict[str, Any]) -> None:
    response = client.post(
        "/api/auth/staff-login",
        json={"employee_id": "EMP001", "password": PASSWORD, "branch_id": hotel["other_branch_id"]},
    )

    assert response.status_code == 401


@pytest.mark.integration
def test_admin_login_is_separate_from_guest_login(client: TestClient, hotel: dict[str, Any]) -> None:
    assert client.post("/api/auth/login", json={"email": "admin@skynest.example.com", "password": PASSWORD}).status_code == 401

    response = client.post("/api/auth/admin-login", json={"email": "admin@skynest.example.com", "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


@pytest.mark.integration
def test_change_password(client: TestClient, guest: dict[str, str]) -> None:
    bad = client.post(
        "/api/auth/change-password",
        json={"current_password": "wrong-one", "new_password": "brand-new-pass"},
        headers=guest,
    )
    assert bad.status_code == 400

    ok = client.post(
        "/api/auth/change-password",
        json={"current_password": PASSWORD, "new_password": "brand-new-pass"},
        headers=guest,
    )
    assert ok.status_code == 200

    login = client.post("/api/auth/login", json={"email": "guest@example.com", "password": "brand-new-pass"})
    assert login.status_code == 200


@pytest.mark.integration
def test_guest_updates_own_profile(client: TestClient, guest: dict[str, str]) -> None:
    """Test that only the fields a guest may edit are applied."""
    response = client.put(
        "/api/auth/profile",
        json={"phone": " +94 77 123 4567 ", "address": "12 Galle Road, Colombo", "position": "Manager"},
        headers=guest,
    )

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["phone"] == "+94 77 123 4567"
    assert user["address"] == "12 Galle Road, Colombo"
    assert "position" not in user

    me = client.get("/api/auth/me", headers=guest).json()["user"]
    assert me["address"] == "12 Galle Road, Colombo"
    assert me["first_name"] == "Nimal"


@pytest.mark.integration
def test_staff_updates_position(client: TestClient, staff: dict[str, str]) -> None:
    response = client.put("/api/auth/profile", json={"position": "Night Manager"}, headers=staff)

    assert response.status_code == 200
    assert response.json()["user"]["position"] == "Night Manager"


@pytest.mark.integration
def test_profile_update_without_editable_fields_is_400(client: TestClient, admin: dict[str, str]) -> None:
    response = client.put("/api/auth/profile", json={"phone": "0112345678"}, headers=admin)

    assert response.status_code == 400
    assert response.json()["error"] == "No valid fields to update"
    assert response.json()["allowed_fields"] == ["first_name", "last_name"]


@pytest.mark.integration
def test_profile_endpoints_require_session(client: TestClient, hotel: dict[str, Any]) -> None:
    assert client.get("/api/auth/me").status_code == 401
    assert client.put("/api/auth/profile", json={"first_name": "X"}).status_code == 401
