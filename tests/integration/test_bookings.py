"""
Integration tests for booking creation, payments and the booking lifecycle.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine

from skynest.db.writers.bookings import insert_payment
from skynest.models.enums import PaymentMethod, PaymentStatus


def _pending_payment(engine: Engine, booking_id: int, amount: str) -> int:
    """Insert an uncleared bank transfer against a booking."""
    with engine.begin() as conn:
        return insert_payment(
            conn,
            {
                "payment_reference": f"PAY-PENDING-{booking_id}-{amount}",
                "booking_id": booking_id,
                "amount": Decimal(amount),
                "payment_method": PaymentMethod.BANK_TRANSFER,
                "payment_status": PaymentStatus.PENDING,
            },
        )


def _room_status(client: TestClient, headers: dict[str, str], room_id: int) -> str:
    rooms = client.get("/api/staff/rooms", headers=headers).json()["rooms"]
    return next(r["status"] for r in rooms if r["id"] == room_id)


@pytest.mark.integration
class TestBookingCreation:
    def test_booking_is_pending_and_priced_per_night(self, book: Callable[..., dict[str, Any]]) -> None:
        booking = book(nights=2)

        assert booking["status"] == "Pending"
        assert booking["total_amount"] == 200
        assert booking["paid_amount"] == 0
        assert booking["outstanding_amount"] == 200
        assert booking["is_fully_paid"] is False
        assert booking["booking_reference"].startswith("BK")

    def test_overlapping_dates_conflict(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        other_guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        """Test that a second booking for an overlapping range is refused."""
        first = book(offset=10, nights=2)

        response = client.post(
            "/api/bookings",
            json={"room_id": hotel["room_id"], **stay(11, 3)},
            headers=other_guest,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Room is not available for the selected dates"
        assert [c["booking_reference"] for c in body["conflicting_bookings"]] == [first["booking_reference"]]

    def test_back_to_back_stays_do_not_overlap(
        self, book: Callable[..., dict[str, Any]], other_guest: dict[str, str]
    ) -> None:
        book(offset=10, nights=2)

        second = book(offset=12, nights=2, headers=other_guest)

        assert second["status"] == "Pending"

    def test_cancelled_booking_frees_the_room(
        self, client: TestClient, guest: dict[str, str], book: Callable[..., dict[str, Any]]
    ) -> None:
        first = book()
        client.post(f"/api/bookings/{first['id']}/cancel", json={"reason": "Plans changed"}, headers=guest)

        assert book()["status"] == "Pending"

    def test_check_in_in_the_past_is_rejected(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        response = client.post("/api/bookings", json={"room_id": hotel["room_id"], **stay(-1, 2)}, headers=guest)

        assert response.status_code == 400
        assert response.json()["error"] == "Check-in date cannot be in the past"

    def test_check_out_must_follow_check_in(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        response = client.post("/api/bookings", json={"room_id": hotel["room_id"], **stay(5, 0)}, headers=guest)

        assert response.status_code == 400

    def test_capacity_is_enforced(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        response = client.post(
            "/api/bookings",
            json={"room_id": hotel["room_id"], "number_of_guests": 3, **stay(5, 1)},
            headers=guest,
        )

        assert response.status_code == 400
        assert response.json()["capacity"] == 2

    def test_booking_by_room_type_picks_a_free_room(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        book(room_id=hotel["room_id"])

        response = client.post(
            "/api/bookings",
            json={"room_type_id": hotel["room_type_id"], "branch_id": hotel["branch_id"], **stay(10, 2)},
            headers=guest,
        )

        assert response.status_code == 201
        assert response.json()["booking"]["room_id"] == hotel["room2_id"]

    def test_only_guests_create_bookings(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        staff: dict[str, str],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        response = client.post("/api/bookings", json={"room_id": hotel["room_id"], **stay()}, headers=staff)

        assert response.status_code == 403

    def test_availability_reflects_existing_booking(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        free = client.post(
            "/api/guest/rooms/check-availability",
            json={"room_id": hotel["room_id"], **stay(10, 2)},
            headers=guest,
        ).json()
        assert free["available"] is True
        assert free["booking_details"]["nights"] == 2
        assert free["total_amount"] == 200

        book()

        taken = client.post(
            "/api/guest/rooms/check-availability",
            json={"room_id": hotel["room_id"], **stay(10, 2)},
            headers=guest,
        ).json()
        assert taken["available"] is False
        assert len(taken["conflicting_bookings"]) == 1


@pytest.mark.integration
class TestBookingAccess:
    def test_guest_lists_only_own_bookings(
        self,
        client: TestClient,
        guest: dict[str, str],
        other_guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
    ) -> None:
        mine = book()
        book(offset=20, headers=other_guest)

        listed = client.get("/api/bookings", headers=guest).json()["bookings"]

        assert [b["id"] for b in listed] == [mine["id"]]

    def test_other_guest_cannot_read_booking(
        self, client: TestClient, other_guest: dict[str, str], book: Callable[..., dict[str, Any]]
    ) -> None:
        booking = book()

        response = client.get(f"/api/bookings/{booking['id']}", headers=other_guest)

        assert response.status_code == 403

    def test_staff_of_another_branch_is_denied(
        self, client: TestClient, other_staff: dict[str, str], book: Callable[..., dict[str, Any]]
    ) -> None:
        booking = book()

        response = client.patch(
            f"/api/staff/bookings/{booking['id']}/status",
            json={"status": "Cancelled"},
            headers=other_staff,
        )

        assert response.status_code == 403
        assert response.json()["error"] == "This record belongs to another branch"

    def test_staff_listing_is_branch_scoped(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        staff: dict[str, str],
        other_staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
    ) -> None:
        book()
        book(room_id=hotel["other_room_id"])

        mine = client.get("/api/staff/bookings", headers=staff).json()["bookings"]
        theirs = client.get("/api/staff/bookings", headers=other_staff).json()["bookings"]

        assert [b["room_id"] for b in mine] == [hotel["room_id"]]
        assert [b["room_id"] for b in theirs] == [hotel["other_room_id"]]

    def test_unknown_booking_is_404(self, client: TestClient, guest: dict[str, str]) -> None:
        assert client.get("/api/bookings/9999", headers=guest).status_code == 404


@pytest.mark.integration
class TestPayments:
    def test_full_payment_confirms_booking(
        self, client: TestClient, guest: dict[str, str], book: Callable[..., dict[str, Any]], pay: Callable[..., Any]
    ) -> None:
        booking = book()

        response = pay(booking["id"], "200.00")

        assert response.status_code == 201
        payment = response.json()["payment"]
        assert payment["booking_status"] == "Confirmed"
        assert payment["outstanding_amount"] == 0
        assert payment["remaining_balance"] == 0
        assert payment["is_fully_paid"] is True
        assert payment["payment_reference"].startswith("PAY")

        details = client.get(f"/api/bookings/{booking['id']}", headers=guest).json()["booking"]
        assert details["status"] == "Confirmed"
        assert len(details["payments"]) == 1

    def test_partial_payment_keeps_booking_pending(
        self, book: Callable[..., dict[str, Any]], pay: Callable[..., Any]
    ) -> None:
        booking = book()

        first = pay(booking["id"], "50.00").json()["payment"]
        assert first["booking_status"] == "Pending"
        assert first["outstanding_amount"] == 150

        second = pay(booking["id"], "150.00").json()["payment"]
        assert second["booking_status"] == "Confirmed"
        assert second["paid_amount"] == 200

    def test_overpayment_is_rejected_with_outstanding_amount(
        self, book: Callable[..., dict[str, Any]], pay: Callable[..., Any]
    ) -> None:
        booking = book()
        pay(booking["id"], "150.00")

        response = pay(booking["id"], "60.00")

        assert response.status_code == 400
        assert response.json()["error"] == "Payment amount exceeds outstanding balance"
        assert response.json()["outstanding_amount"] == 50

    def test_non_positive_amount_is_rejected(
        self, book: Callable[..., dict[str, Any]], pay: Callable[..., Any]
    ) -> None:
        booking = book()

        assert pay(booking["id"], "0").status_code == 400

    def test_guest_cannot_pay_someone_elses_booking(
        self, book: Callable[..., dict[str, Any]], pay: Callable[..., Any], other_guest: dict[str, str]
    ) -> None:
        booking = book()

        assert pay(booking["id"], "10.00", headers=other_guest).status_code == 403

    def test_cancelled_booking_refuses_payment(
        self,
        client: TestClient,
        guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        client.post(f"/api/bookings/{booking['id']}/cancel", headers=guest)

        response = pay(booking["id"], "10.00")

        assert response.status_code == 400
        assert "Cancelled" in response.json()["error"]

    def test_front_desk_payment_records_processor(
        self,
        client: TestClient,
        guest: dict[str, str],
        staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
    ) -> None:
        booking = book()

        response = client.post(
            "/api/staff/payments/confirm",
            json={"booking_id": booking["id"], "amount": "200.00", "payment_method": "Cash"},
            headers=staff,
        )

        assert response.status_code == 201
        assert response.json()["payment"]["booking_status"] == "Confirmed"

        listing = client.get("/api/payments", params={"booking_id": booking["id"]}, headers=guest).json()
        assert listing["is_fully_paid"] is True
        assert listing["payments"][0]["payment_method"] == "Cash"

    def test_money_is_a_json_number_in_success_and_error_bodies(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
        stay: Callable[[int, int], dict[str, str]],
    ) -> None:
        quote = client.post(
            "/api/guest/rooms/check-availability",
            json={"room_id": hotel["room_id"], **stay(10, 2)},
            headers=guest,
        ).json()
        assert quote["available"] is True
        assert isinstance(quote["total_amount"], (int, float))
        assert quote["total_amount"] == 200

        booking = book()
        pay(booking["id"], "150.00")
        error = pay(booking["id"], "60.00").json()
        success = pay(booking["id"], "50.00").json()["payment"]

        assert isinstance(error["outstanding_amount"], (int, float))
        assert isinstance(success["outstanding_amount"], (int, float))
        assert isinstance(success["amount"], (int, float))
        assert success["outstanding_amount"] == 0

    def test_pending_payment_completion_confirms_booking(
        self,
        client: TestClient,
        engine: Engine,
        staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
    ) -> None:
        booking = book()
        payment_id = _pending_payment(engine, booking["id"], "200.00")

        response = client.post(f"/api/staff/payments/{payment_id}/complete", headers=staff)

        assert response.status_code == 200
        payment = response.json()["payment"]
        assert payment["booking_status"] == "Confirmed"
        assert payment["outstanding_amount"] == 0

    def test_pending_payment_on_cancelled_booking_cannot_be_completed(
        self,
        client: TestClient,
        engine: Engine,
        guest: dict[str, str],
        staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
    ) -> None:
        booking = book()
        payment_id = _pending_payment(engine, booking["id"], "50.00")
        client.post(f"/api/bookings/{booking['id']}/cancel", headers=guest)

        response = client.post(f"/api/staff/payments/{payment_id}/complete", headers=staff)

        assert response.status_code == 400
        assert response.json()["current_status"] == "Cancelled"
        listing = client.get("/api/payments", params={"booking_id": booking["id"]}, headers=guest).json()
        assert listing["paid_amount"] == 0
        assert listing["payments"][0]["payment_status"] == "Pending"

    def test_pending_payment_that_would_overpay_cannot_be_completed(
        self,
        client: TestClient,
        engine: Engine,
        staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        payment_id = _pending_payment(engine, booking["id"], "100.00")
        pay(booking["id"], "150.00")

        response = client.post(f"/api/staff/payments/{payment_id}/complete", headers=staff)

        assert response.status_code == 400
        assert response.json()["error"] == "Payment amount exceeds outstanding balance"
        assert response.json()["outstanding_amount"] == 50

    def test_generic_payment_endpoint(
        self, client: TestClient, guest: dict[str, str], book: Callable[..., dict[str, Any]]
    ) -> None:
        booking = book()

        response = client.post(
            "/api/payments",
            json={"booking_id": booking["id"], "amount": "80.00", "payment_method": "Online"},
            headers=guest,
        )

        assert response.status_code == 201
        assert response.json()["payment"]["outstanding_amount"] == 120


@pytest.mark.integration
class TestLifecycle:
    def test_cancellation_reports_refund(
        self,
        client: TestClient,
        guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        pay(booking["id"], "200.00")

        response = client.post(f"/api/bookings/{booking['id']}/cancel", json={"reason": "Flight cancelled"}, headers=guest)

        assert response.status_code == 200
        assert response.json()["status"] == "Cancelled"
        assert response.json()["refund_amount"] == 200

    def test_cancelled_booking_cannot_be_cancelled_again(
        self, client: TestClient, guest: dict[str, str], book: Callable[..., dict[str, Any]]
    ) -> None:
        booking = book()
        client.post(f"/api/bookings/{booking['id']}/cancel", headers=guest)

        response = client.post(f"/api/bookings/{booking['id']}/cancel", headers=guest)

        assert response.status_code == 400
        assert response.json()["current_status"] == "Cancelled"

    def test_staff_cannot_confirm_unpaid_booking(
        self, client: TestClient, staff: dict[str, str], book: Callable[..., dict[str, Any]]
    ) -> None:
        booking = book()

        response = client.patch(
            f"/api/staff/bookings/{booking['id']}/status", json={"status": "Confirmed"}, headers=staff
        )

        assert response.status_code == 400
        assert response.json()["current_status"] == "Pending"

    def test_check_in_and_out_move_room_status(
        self,
        client: TestClient,
        hotel: dict[str, Any],
        staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        """Test the front-desk path Confirmed -> CheckedIn -> CheckedOut."""
        booking = book()
        pay(booking["id"], "200.00")
        url = f"/api/staff/bookings/{booking['id']}/status"

        checked_in = client.patch(url, json={"status": "CheckedIn"}, headers=staff)
        assert checked_in.status_code == 200
        assert checked_in.json()["previous_status"] == "Confirmed"
        assert _room_status(client, staff, hotel["room_id"]) == "Occupied"

        checked_out = client.patch(url, json={"status": "CheckedOut"}, headers=staff)
        assert checked_out.status_code == 200
        assert _room_status(client, staff, hotel["room_id"]) == "Cleaning"

        cleaned = client.put(f"/api/staff/rooms/{hotel['room_id']}/status", json={"status": "Available"}, headers=staff)
        assert cleaned.status_code == 200
        assert _room_status(client, staff, hotel["room_id"]) == "Available"

    def test_guest_self_check_in_requires_confirmed_booking(
        self,
        client: TestClient,
        guest: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        url = f"/api/guest/bookings/{booking['id']}/checkin"

        assert client.post(url, headers=guest).status_code == 400

        pay(booking["id"], "200.00")
        response = client.post(url, headers=guest)

        assert response.status_code == 200
        assert response.json()["status"] == "CheckedIn"

    def test_guest_cannot_pay_after_checkout(
        self,
        client: TestClient,
        staff: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        pay(booking["id"], "100.00")
        client.post(
            "/api/staff/payments/confirm",
            json={"booking_id": booking["id"], "amount": "100.00", "payment_method": "Cash"},
            headers=staff,
        )
        url = f"/api/staff/bookings/{booking['id']}/status"
        client.patch(url, json={"status": "CheckedIn"}, headers=staff)
        client.patch(url, json={"status": "CheckedOut"}, headers=staff)

        response = pay(booking["id"], "1.00")

        assert response.status_code == 400
        assert "CheckedOut" in response.json()["error"]


@pytest.mark.integration
class TestAdminBookings:
    def test_admin_booking_detail(
        self,
        client: TestClient,
        admin: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        pay(booking["id"], "50.00")

        response = client.get(f"/api/admin/bookings/{booking['id']}", headers=admin)

        assert response.status_code == 200
        detail = response.json()["booking"]
        assert detail["booking_reference"] == booking["booking_reference"]
        assert detail["paid_amount"] == 50
        assert detail["outstanding_amount"] == 150
        assert len(detail["payments"]) == 1
        assert detail["service_requests"] == []

    def test_booking_detail_and_edit_are_admin_only(
        self, client: TestClient, staff: dict[str, str], book: Callable[..., dict[str, Any]]
    ) -> None:
        booking = book()

        assert client.get(f"/api/admin/bookings/{booking['id']}", headers=staff).status_code == 403
        response = client.patch(
            f"/api/admin/bookings/{booking['id']}/status", json={"status": "Cancelled"}, headers=staff
        )
        assert response.status_code == 403

    def test_admin_status_edit_follows_booking_transitions(
        self,
        client: TestClient,
        admin: dict[str, str],
        book: Callable[..., dict[str, Any]],
        pay: Callable[..., Any],
    ) -> None:
        booking = book()
        url = f"/api/admin/bookings/{booking['id']}/status"

        assert client.patch(url, json={"status": "Confirmed"}, headers=admin).status_code == 400

        pay(booking["id"], "200.00")
        response = client.patch(url, json={"status": "CheckedIn"}, headers=admin)

        assert response.status_code == 200
        assert response.json()["previous_status"] == "Confirmed"
        assert response.json()["status"] == "CheckedIn"

    def test_unknown_booking_is_404(self, client: TestClient, admin: dict[str, str]) -> None:
        assert client.get("/api/admin/bookings/9999", headers=admin).status_code == 404
