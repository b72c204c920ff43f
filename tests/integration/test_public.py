"""
Integration tests for the public catalog and guest reviews.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def checked_out_booking(
    client: TestClient,
    staff: dict[str, str],
    book: Callable[..., dict[str, Any]],
    pay: Callable[..., Any],
) -> dict[str, Any]:
    booking = book()
    pay(booking["id"], "200.00")
    url = f"/api/staff/bookings/{booking['id']}/status"
    client.patch(url, json={"status": "CheckedIn"}, headers=staff)
    client.patch(url, json={"status": "CheckedOut"}, headers=staff)
    return booking


@pytest.mark.integration
def test_public_catalog_needs_no_session(client: TestClient, hotel: dict[str, Any]) -> None:
    branches = client.get("/api/branches").json()["branches"]
    rooms = client.get("/api/rooms", params={"branch_id": hotel["branch_id"]}).json()["rooms"]
    services = client.get("/api/services", params={"category": "dining"}).json()["services"]

    assert {b["name"] for b in branches} == {"Sky Nest Colombo", "Sky Nest Kandy"}
    assert [r["name"] for r in rooms] == ["Deluxe"]
    assert [s["name"] for s in services] == ["Breakfast"]


@pytest.mark.integration
def test_room_filter_by_capacity(client: TestClient, hotel: dict[str, Any]) -> None:
    assert client.get("/api/rooms", params={"guests": 3}).json()["rooms"] == []


@pytest.mark.integration
def test_unknown_room_type_is_404(client: TestClient, hotel: dict[str, Any]) -> None:
    assert client.get("/api/rooms/9999").status_code == 404


@pytest.mark.integration
def test_review_after_checkout(
    client: TestClient,
    hotel: dict[str, Any],
    guest: dict[str, str],
    checked_out_booking: dict[str, Any],
) -> None:
    payload = {"booking_id": checked_out_booking["id"], "rating": 4, "title": "Lovely", "comment": "Great view"}

    created = client.post("/api/reviews", json=payload, headers=guest)
    assert created.status_code == 201

    duplicate = client.post("/api/reviews", json=payload, headers=guest)
    assert duplicate.status_code == 409

    detail = client.get(f"/api/rooms/{hotel['room_type_id']}").json()["room"]
    assert detail["rating"] == {"review_count": 1, "average_rating": 4.0}
    assert detail["reviews"][0]["first_name"] == "Nimal"
    assert detail["reviews"][0]["last_initial"] == "P"
    assert "email" not in detail["reviews"][0]


@pytest.mark.integration
def test_review_requires_checked_out_stay(
    client: TestClient, guest: dict[str, str], book: Callable[..., dict[str, Any]]
) -> None:
    booking = book()

    response = client.post("/api/reviews", json={"booking_id": booking["id"], "rating": 5}, headers=guest)

    assert response.status_code == 400
    assert response.json()["error"] == "Only checked-out stays can be reviewed"


@pytest.mark.integration
def test_review_rating_out_of_range(
    client: TestClient, guest: dict[str, str], checked_out_booking: dict[str, Any]
) -> None:
    response = client.post("/api/reviews", json={"booking_id": checked_out_booking["id"], "rating": 6}, headers=guest)

    assert response.status_code == 400


@pytest.mark.integration
def test_only_the_guest_who_stayed_can_review(
    client: TestClient, other_guest: dict[str, str], checked_out_booking: dict[str, Any]
) -> None:
    response = client.post(
        "/api/reviews", json={"booking_id": checked_out_booking["id"], "rating": 3}, headers=other_guest
    )

    assert response.status_code == 403


@pytest.mark.integration
def test_staff_guest_search(
    client: TestClient, staff: dict[str, str], guest: dict[str, str]
) -> None:
    found = client.get("/api/staff/guests/search", params={"q": "perera"}, headers=staff).json()["guests"]

    assert [g["email"] for g in found] == ["guest@example.com"]
    assert "password_hash" not in found[0]
    assert client.get("/api/staff/guests/search", params={"q": "perera"}, headers=guest).status_code == 403


@pytest.mark.integration
def test_guest_profile_picture_upload(client: TestClient, guest: dict[str, str]) -> None:
    response = client.post(
        "/api/guest/profile-picture",
        files={"file": ("me.jpg", b"\xff\xd8\xff" + b"0" * 64, "image/jpeg")},
        headers=guest,
    )

    assert response.status_code == 200
    url = response.json()["url"]
    assert url.startswith("/uploads/profiles/")
    assert client.get("/api/auth/me", headers=guest).json()["user"]["profile_picture_url"] == url
