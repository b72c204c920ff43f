"""
Integration tests for the admin property back office.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
class TestBranches:
    def test_create_update_delete_branch(self, client: TestClient, admin: dict[str, str]) -> None:
        created = client.post(
            "/api/admin/branches",
            json={"name": "Sky Nest Galle", "location": "Galle", "email": "galle@skynest.example.com"},
            headers=admin,
        )
        assert created.status_code == 201
        branch_id = created.json()["branch"]["id"]

        updated = client.put(f"/api/admin/branches/{branch_id}", json={"phone": "+94 91 222 3333"}, headers=admin)
        assert updated.status_code == 200
        assert updated.json()["branch"]["phone"] == "+94 91 222 3333"
        assert updated.json()["branch"]["name"] == "Sky Nest Galle"

        deleted = client.delete(f"/api/admin/branches/{branch_id}", headers=admin)
        assert deleted.status_code == 200
        assert client.get(f"/api/admin/branches/{branch_id}", headers=admin).status_code == 404

    def test_duplicate_branch_email_conflicts(self, client: TestClient, admin: dict[str, str]) -> None:
        response = client.post(
            "/api/admin/branches",
            json={"name": "Copy", "location": "Colombo", "email": "colombo@skynest.example.com"},
            headers=admin,
        )

        assert response.status_code == 409

    def test_branch_with_rooms_cannot_be_deleted(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        response = client.delete(f"/api/admin/branches/{hotel['branch_id']}", headers=admin)

        assert response.status_code == 400
        assert response.json()["room_count"] == 2

    def test_inactive_branch_hidden_from_public_list(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        client.put(f"/api/admin/branches/{hotel['other_branch_id']}", json={"is_active": False}, headers=admin)

        public = client.get("/api/branches").json()["branches"]
        everything = client.get("/api/admin/branches", headers=admin).json()["branches"]

        assert [b["id"] for b in public] == [hotel["branch_id"]]
        assert len(everything) == 2

    def test_guest_cannot_manage_branches(self, client: TestClient, guest: dict[str, str]) -> None:
        response = client.post("/api/admin/branches", json={"name": "X", "location": "Y"}, headers=guest)

        assert response.status_code == 403


@pytest.mark.integration
class TestRoomTypes:
    def test_room_type_with_amenities_and_images(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        wifi = client.post("/api/admin/amenities", json={"name": "WiFi"}, headers=admin).json()["amenity"]
        pool = client.post("/api/admin/amenities", json={"name": "Pool"}, headers=admin).json()["amenity"]

        created = client.post(
            "/api/admin/room-types",
            json={
                "branch_id": hotel["branch_id"],
                "name": "Suite",
                "base_price": "250.00",
                "capacity": 4,
                "amenity_ids": [wifi["id"], pool["id"]],
                "images": [{"url": "/uploads/rooms/a.jpg"}, {"url": "/uploads/rooms/b.jpg"}],
            },
            headers=admin,
        )

        assert created.status_code == 201
        room_type = created.json()["room_type"]
        assert {a["name"] for a in room_type["amenities"]} == {"WiFi", "Pool"}
        assert [i["url"] for i in room_type["images"]] == ["/uploads/rooms/a.jpg", "/uploads/rooms/b.jpg"]
        assert room_type["room_count"] == 0

        updated = client.put(
            f"/api/admin/room-types/{room_type['id']}",
            json={"amenity_ids": [wifi["id"]], "base_price": "275.00"},
            headers=admin,
        ).json()["room_type"]
        assert [a["name"] for a in updated["amenities"]] == ["WiFi"]
        assert len(updated["images"]) == 2
        assert updated["base_price"] == 275

    def test_unknown_amenity_is_rejected(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        response = client.post(
            "/api/admin/room-types",
            json={"branch_id": hotel["branch_id"], "name": "Odd", "base_price": "90", "capacity": 1, "amenity_ids": [404]},
            headers=admin,
        )

        assert response.status_code == 400
        assert response.json()["amenity_ids"] == [404]

    def test_duplicate_amenity_conflicts(self, client: TestClient, admin: dict[str, str]) -> None:
        client.post("/api/admin/amenities", json={"name": "Minibar"}, headers=admin)

        assert client.post("/api/admin/amenities", json={"name": "Minibar"}, headers=admin).status_code == 409

    def test_room_type_in_use_cannot_be_deleted(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        response = client.delete(f"/api/admin/room-types/{hotel['room_type_id']}", headers=admin)

        assert response.status_code == 400


@pytest.mark.integration
class TestRooms:
    def test_create_room(self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]) -> None:
        response = client.post(
            "/api/admin/rooms",
            json={"branch_id": hotel["branch_id"], "room_type_id": hotel["room_type_id"], "room_number": "R201", "floor": 2},
            headers=admin,
        )

        assert response.status_code == 201
        room = response.json()["room"]
        assert room["room_number"] == "R201"
        assert room["status"] == "Available"

    def test_duplicate_room_number_conflicts(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        response = client.post(
            "/api/admin/rooms",
            json={"branch_id": hotel["branch_id"], "room_type_id": hotel["room_type_id"], "room_number": "R101"},
            headers=admin,
        )

        assert response.status_code == 409

    def test_room_type_must_belong_to_branch(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        response = client.post(
            "/api/admin/rooms",
            json={"branch_id": hotel["branch_id"], "room_type_id": hotel["other_type_id"], "room_number": "X1"},
            headers=admin,
        )

        assert response.status_code == 400

    def test_booked_room_cannot_be_deleted(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        admin: dict[str, str],
        book: Callable[..., dict[str, Any]],
    ) -> None:
        book()

        assert client.delete(f"/api/admin/rooms/{hotel['room_id']}", headers=admin).status_code == 400
        assert client.delete(f"/api/admin/rooms/{hotel['room2_id']}", headers=admin).status_code == 200

    def test_room_filters(self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]) -> None:
        rooms = client.get("/api/admin/rooms", params={"branch_id": hotel["other_branch_id"]}, headers=admin).json()["rooms"]

        assert [r["room_number"] for r in rooms] == ["K201"]


@pytest.mark.integration
class TestCatalogAndUploads:
    def test_service_catalog_management(self, client: TestClient, admin: dict[str, str], hotel: dict[str, Any]) -> None:
        created = client.post(
            "/api/admin/services",
            json={"name": "Airport Transfer", "category": "Transport", "price": "40.00", "unit": "trip"},
            headers=admin,
        )
        assert created.status_code == 201
        service_id = created.json()["service"]["id"]

        client.put(f"/api/admin/services/{service_id}", json={"is_active": False}, headers=admin)

        public = client.get("/api/services").json()["services"]
        assert [s["name"] for s in public] == ["Breakfast"]
        everything = client.get("/api/admin/services", headers=admin).json()["services"]
        assert len(everything) == 2

    def test_room_image_upload(self, client: TestClient, admin: dict[str, str]) -> None:
        response = client.post(
            "/api/admin/upload/room-image",
            files={"file": ("../../lobby.png", b"\x89PNG\r\n\x1a\n" + b"0" * 32, "image/png")},
            headers=admin,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["url"].startswith("/uploads/rooms/")
        assert body["url"].endswith(".png")

    def test_upload_rejects_non_images(self, client: TestClient, admin: dict[str, str]) -> None:
        response = client.post(
            "/api/admin/upload/room-image",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=admin,
        )

        assert response.status_code == 400


@pytest.mark.integration
class TestUsers:
    def test_admin_creates_staff_who_can_log_in(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        created = client.post(
            "/api/admin/users",
            json={
                "role": "staff",
                "email": "new.staff@skynest.example.com",
                "password": "welcome-123",
                "first_name": "Saman",
                "last_name": "Dias",
                "employee_id": "EMP010",
                "branch_id": hotel["branch_id"],
            },
            headers=admin,
        )
        assert created.status_code == 201

        login = client.post("/api/auth/staff-login", json={"employee_id": "EMP010", "password": "welcome-123"})
        assert login.status_code == 200

    def test_staff_account_requires_branch(self, client: TestClient, admin: dict[str, str], hotel: dict[str, Any]) -> None:
        response = client.post(
            "/api/admin/users",
            json={"role": "staff", "email": "x@skynest.example.com", "password": "welcome-123", "first_name": "X", "last_name": "Y"},
            headers=admin,
        )

        assert response.status_code == 400

    def test_deactivated_guest_cannot_log_in(
        self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]
    ) -> None:
        response = client.patch(
            f"/api/admin/users/guest/{hotel['guest_id']}/status", json={"is_active": False}, headers=admin
        )
        assert response.status_code == 200

        login = client.post("/api/auth/login", json={"email": "guest@example.com", "password": "password123"})
        assert login.status_code == 403

    def test_admin_cannot_deactivate_self(self, client: TestClient, hotel: dict[str, Any], admin: dict[str, str]) -> None:
        response = client.patch(
            f"/api/admin/users/admin/{hotel['admin_id']}/status", json={"is_active": False}, headers=admin
        )

        assert response.status_code == 400
