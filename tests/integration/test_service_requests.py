"""
Integration tests for guest service requests and the charges they add.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def booking(book: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return book()


@pytest.fixture
def service_request(
    client: TestClient, hotel: dict[str, Any], guest: dict[str, str], booking: dict[str, Any]
) -> dict[str, Any]:
    response = client.post(
        f"/api/guest/bookings/{booking['id']}/services",
        json={"service_id": hotel["service_id"], "notes": "Vegetarian please"},
        headers=guest,
    )
    assert response.status_code == 201, response.text
    return response.json()["request"]


def _assign_and_start(
    client: TestClient, hotel: dict[str, Any], admin: dict[str, str], staff: dict[str, str], request_id: int
) -> None:
    client.post(f"/api/admin/service-requests/{request_id}/assign", json={"staff_id": hotel["staff_id"]}, headers=admin)
    response = client.patch(
        f"/api/staff/service-requests/{request_id}/status", json={"status": "InProgress"}, headers=staff
    )
    assert response.status_code == 200, response.text


@pytest.mark.integration
def test_request_snapshots_catalog_price(service_request: dict[str, Any]) -> None:
    assert service_request["status"] == "Pending"
    assert service_request["unit_price"] == 25
    assert service_request["quantity"] == 1


@pytest.mark.integration
def test_guest_can_withdraw_pending_request(
    client: TestClient, guest: dict[str, str], booking: dict[str, Any], service_request: dict[str, Any]
) -> None:
    url = f"/api/guest/bookings/{booking['id']}/services/{service_request['id']}"

    response = client.delete(url, headers=guest)

    assert response.status_code == 200
    assert response.json()["status"] == "Cancelled"
    assert client.delete(url, headers=guest).status_code == 400


@pytest.mark.integration
def test_other_guest_cannot_request_on_booking(
    client: TestClient, hotel: dict[str, Any], other_guest: dict[str, str], booking: dict[str, Any]
) -> None:
    response = client.post(
        f"/api/guest/bookings/{booking['id']}/services",
        json={"service_id": hotel["service_id"]},
        headers=other_guest,
    )

    assert response.status_code == 403


@pytest.mark.integration
def test_unknown_service_is_404(
    client: TestClient, guest: dict[str, str], booking: dict[str, Any]
) -> None:
    response = client.post(f"/api/guest/bookings/{booking['id']}/services", json={"service_id": 9999}, headers=guest)

    assert response.status_code == 404


@pytest.mark.integration
def test_completion_charges_the_booking(
    client: TestClient,
    hotel: dict[str, Any],
    guest: dict[str, str],
    staff: dict[str, str],
    admin: dict[str, str],
    booking: dict[str, Any],
    service_request: dict[str, Any],
) -> None:
    """Test that a completed 25.00 service raises a 200.00 stay to 225.00."""
    _assign_and_start(client, hotel, admin, staff, service_request["id"])

    response = client.patch(
        f"/api/staff/service-requests/{service_request['id']}/status",
        json={"status": "Completed", "notes": "Delivered to room"},
        headers=staff,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["charged_amount"] == 25
    assert body["booking_total_amount"] == 225

    services = client.get(f"/api/guest/bookings/{booking['id']}/services", headers=guest).json()
    assert services["total_amount"] == 225
    assert [c["total_price"] for c in services["charges"]] == [25]


@pytest.mark.integration
def test_completion_requires_notes(
    client: TestClient,
    hotel: dict[str, Any],
    staff: dict[str, str],
    admin: dict[str, str],
    service_request: dict[str, Any],
) -> None:
    _assign_and_start(client, hotel, admin, staff, service_request["id"])

    response = client.patch(
        f"/api/staff/service-requests/{service_request['id']}/status",
        json={"status": "Completed"},
        headers=staff,
    )

    assert response.status_code == 400


@pytest.mark.integration
def test_confirmed_booking_stays_confirmed_after_new_charge(
    client: TestClient,
    hotel: dict[str, Any],
    guest: dict[str, str],
    staff: dict[str, str],
    admin: dict[str, str],
    booking: dict[str, Any],
    pay: Callable[..., Any],
) -> None:
    pay(booking["id"], "200.00")
    request = client.post(
        f"/api/guest/bookings/{booking['id']}/services",
        json={"service_id": hotel["service_id"]},
        headers=guest,
    ).json()["request"]
    _assign_and_start(client, hotel, admin, staff, request["id"])
    client.patch(
        f"/api/staff/service-requests/{request['id']}/status",
        json={"status": "Completed", "notes": "Served"},
        headers=staff,
    )

    details = client.get(f"/api/bookings/{booking['id']}", headers=guest).json()["booking"]

    assert details["status"] == "Confirmed"
    assert details["total_amount"] == 225
    assert details["outstanding_amount"] == 25
    assert pay(booking["id"], "25.00").json()["payment"]["is_fully_paid"] is True


@pytest.mark.integration
def test_unassigned_staff_cannot_work_request(
    client: TestClient, staff: dict[str, str], service_request: dict[str, Any]
) -> None:
    response = client.patch(
        f"/api/staff/service-requests/{service_request['id']}/status",
        json={"status": "InProgress"},
        headers=staff,
    )

    assert response.status_code == 403


@pytest.mark.integration
def test_staff_queue_is_branch_scoped(
    client: TestClient,
    staff: dict[str, str],
    other_staff: dict[str, str],
    service_request: dict[str, Any],
) -> None:
    mine = client.get("/api/staff/service-requests", headers=staff).json()["requests"]
    theirs = client.get("/api/staff/service-requests", headers=other_staff).json()["requests"]

    assert [r["id"] for r in mine] == [service_request["id"]]
    assert theirs == []
