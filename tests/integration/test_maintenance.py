"""
Integration tests for the maintenance workflow.

Guest or staff report -> admin assigns and approves -> assignee completes.
"""

from __future__ import annotations

from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from skynest.models.enums import Role


def _room_status(client: TestClient, headers: dict[str, str], room_id: int) -> str:
    rooms = client.get("/api/staff/rooms", headers=headers).json()["rooms"]
    return next(r["status"] for r in rooms if r["id"] == room_id)


@pytest.fixture
def reported_log(client: TestClient, hotel: dict[str, Any], staff: dict[str, str]) -> dict[str, Any]:
    response = client.post(
        "/api/staff/maintenance",
        json={"room_id": hotel["room_id"], "issue_description": "Air conditioner leaking", "priority": "High"},
        headers=staff,
    )
    assert response.status_code == 201, response.text
    return response.json()["log"]


@pytest.fixture
def started_log(
    client: TestClient, hotel: dict[str, Any], admin: dict[str, str], reported_log: dict[str, Any]
) -> dict[str, Any]:
    """A log assigned to EMP001 and approved, so work is InProgress."""
    log_id = reported_log["id"]
    client.post(f"/api/admin/maintenance/{log_id}/assign", json={"staff_id": hotel["staff_id"]}, headers=admin)
    response = client.post(f"/api/admin/maintenance/{log_id}/approve", headers=admin)
    assert response.json()["status"] == "InProgress"
    return reported_log


@pytest.mark.integration
class TestReporting:
    def test_staff_report_is_pending(self, reported_log: dict[str, Any]) -> None:
        assert reported_log["status"] == "Pending"
        assert reported_log["priority"] == "High"
        assert reported_log["log_reference"].startswith("MNT")

    def test_guest_reports_against_confirmed_booking(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        payload = {"booking_id": booking["id"], "issue_description": "Shower is cold"}

        pending = client.post("/api/guest/maintenance", json=payload, headers=guest)
        assert pending.status_code == 400

        pay(booking["id"], "200.00")
        response = client.post("/api/guest/maintenance", json=payload, headers=guest)

        assert response.status_code == 201
        assert response.json()["log"]["room_id"] == hotel["room_id"]
        mine = client.get("/api/guest/maintenance", headers=guest).json()["logs"]
        assert [log["id"] for log in mine] == [response.json()["log"]["id"]]

    def test_staff_cannot_report_for_another_branch(
        self, client: TestClient, hotel: dict[str, Any], other_staff: dict[str, str]
    ) -> None:
        response = client.post(
            "/api/staff/maintenance",
            json={"room_id": hotel["room_id"], "issue_description": "Broken lamp"},
            headers=other_staff,
        )

        assert response.status_code == 403

    def test_urgent_filter(
        self, client: TestClient, admin: dict[str, str], reported_log: dict[str, Any]
    ) -> None:
        urgent = client.get("/api/admin/maintenance", params={"filter": "urgent"}, headers=admin).json()["logs"]
        completed = client.get("/api/admin/maintenance", params={"filter": "completed"}, headers=admin).json()["logs"]

        assert [log["id"] for log in urgent] == [reported_log["id"]]
        assert completed == []

    def test_unknown_filter_is_400(self, client: TestClient, admin: dict[str, str], hotel: dict[str, Any]) -> None:
        response = client.get("/api/admin/maintenance", params={"filter": "bogus"}, headers=admin)

        assert response.status_code == 400
        assert "urgent" in response.json()["allowed_filters"]


@pytest.mark.integration
class TestTriage:
    def test_approving_unassigned_log_keeps_it_pending(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        admin: dict[str, str],
        staff: dict[str, str],
        reported_log: dict[str, Any],
    ) -> None:
        response = client.post(f"/api/admin/maintenance/{reported_log['id']}/approve", headers=admin)

        assert response.status_code == 200
        assert response.json()["status"] == "Pending"
        assert _room_status(client, staff, hotel["room_id"]) == "Available"

    def test_approving_assigned_log_starts_work(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        staff: dict[str, str],
        started_log: dict[str, Any],
    ) -> None:
        assert _room_status(client, staff, hotel["room_id"]) == "Maintenance"

        assigned = client.get("/api/staff/maintenance/assigned", headers=staff).json()["logs"]
        assert [log["id"] for log in assigned] == [started_log["id"]]

    def test_reject_cancels_with_reason(
        self, client: TestClient, admin: dict[str, str], reported_log: dict[str, Any]
    ) -> None:
        response = client.post(
            f"/api/admin/maintenance/{reported_log['id']}/reject",
            json={"rejection_reason": "Duplicate report"},
            headers=admin,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Cancelled"

        cancelled = client.get("/api/admin/maintenance", params={"filter": "cancelled"}, headers=admin).json()["logs"]
        assert "Rejected: Duplicate report" in cancelled[0]["notes"]

    def test_assigning_unknown_staff_is_404(
        self, client: TestClient, admin: dict[str, str], reported_log: dict[str, Any]
    ) -> None:
        response = client.post(
            f"/api/admin/maintenance/{reported_log['id']}/assign", json={"staff_id": 9999}, headers=admin
        )

        assert response.status_code == 404

    def test_staff_cannot_triage(self, client: TestClient, staff: dict[str, str], reported_log: dict[str, Any]) -> None:
        response = client.post(f"/api/admin/maintenance/{reported_log['id']}/approve", headers=staff)

        assert response.status_code == 403


@pytest.mark.integration
class TestAssigneeWork:
    def test_assignee_completes_and_room_is_released(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        staff: dict[str, str],
        started_log: dict[str, Any],
    ) -> None:
        response = client.post(
            f"/api/staff/maintenance/{started_log['id']}/complete",
            json={"resolution_notes": "Replaced drain pipe"},
            headers=staff,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "Completed"
        assert _room_status(client, staff, hotel["room_id"]) == "Available"

    def test_completion_requires_notes(
        self, client: TestClient, staff: dict[str, str], started_log: dict[str, Any]
    ) -> None:
        response = client.patch(
            f"/api/staff/maintenance/{started_log['id']}/status",
            json={"status": "Completed"},
            headers=staff,
        )

        assert response.status_code == 400
        assert "notes" in response.json()["error"]

    def test_non_assignee_is_denied(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        session_headers: Callable[..., dict[str, str]],
        started_log: dict[str, Any],
    ) -> None:
        """Test that a colleague in the same branch cannot touch someone else's task."""
        colleague = session_headers(Role.STAFF, hotel["staff_id"] + 1000, hotel["branch_id"])

        response = client.post(
            f"/api/staff/maintenance/{started_log['id']}/complete",
            json={"resolution_notes": "Done"},
            headers=colleague,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Only the assigned staff member can update this task"

    def test_room_cannot_be_made_available_during_work(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        staff: dict[str, str],
        started_log: dict[str, Any],
    ) -> None:
        response = client.put(
            f"/api/staff/rooms/{hotel['room_id']}/status", json={"status": "Available"}, headers=staff
        )

        assert response.status_code == 400

    def test_maintenance_room_is_not_bookable(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        stay: Callable[[int, int], dict[str, str]],
        started_log: dict[str, Any],
    ) -> None:
        response = client.post("/api/bookings", json={"room_id": hotel["room_id"], **stay()}, headers=guest)

        assert response.status_code == 400
        assert response.json()["error"] == "Room is currently under maintenance"

    def test_completed_log_is_terminal(
        self, client: TestClient, staff: dict[str, str], started_log: dict[str, Any]
    ) -> None:
        url = f"/api/staff/maintenance/{started_log['id']}/status"
        client.patch(url, json={"status": "Completed", "notes": "Fixed"}, headers=staff)

        response = client.patch(url, json={"status": "InProgress"}, headers=staff)

        assert response.status_code == 400
        assert response.json()["current_status"] == "Completed"


@pytest.mark.integration
class TestGuestAlerts:
    def test_alerts_follow_reported_request(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        admin: dict[str, str],
        staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        pay(booking["id"], "200.00")
        log = client.post(
            "/api/guest/maintenance",
            json={"booking_id": booking["id"], "issue_description": "Door lock jammed", "priority": "Urgent"},
            headers=guest,
        ).json()["log"]

        open_alerts = client.get("/api/guest/alerts", headers=guest).json()
        assert open_alerts["unread_count"] == 1
        alert = open_alerts["alerts"][0]
        assert alert["id"] == f"maintenance-{log['id']}"
        assert alert["priority"] == "Urgent"
        assert alert["assigned_to"] == "Unassigned"
        assert "R101" in alert["room_info"]
        assert alert["booking_reference"] == booking["booking_reference"]

        client.post(f"/api/admin/maintenance/{log['id']}/assign", json={"staff_id": hotel["staff_id"]}, headers=admin)
        client.post(f"/api/admin/maintenance/{log['id']}/approve", headers=admin)
        client.post(
            f"/api/staff/maintenance/{log['id']}/complete",
            json={"resolution_notes": "Replaced the lock"},
            headers=staff,
        )

        unread = client.get("/api/guest/alerts", params={"filter": "unread"}, headers=guest).json()
        assert unread["alerts"] == []
        assert unread["total_count"] == 1
        completed = client.get("/api/guest/alerts", params={"status": "Completed"}, headers=guest).json()
        assert [a["is_read"] for a in completed["alerts"]] == [True]

    def test_alerts_only_cover_own_reports(
        self, client: TestClient, other_guest: dict[str, str], reported_log: dict[str, Any]
    ) -> None:
        body = client.get("/api/guest/alerts", headers=other_guest).json()

        assert body["alerts"] == []
        assert body["unread_count"] == 0

    def test_alerts_are_for_guests_only(self, client: TestClient, staff: dict[str, str]) -> None:
        assert client.get("/api/guest/alerts", headers=staff).status_code == 403
