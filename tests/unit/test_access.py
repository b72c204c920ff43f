"""
Unit tests for the authorization policy.
"""

from __future__ import annotations

import pytest

from skynest.errors import PermissionDenied
from skynest.models.enums import Role
from skynest.services.access import POLICY, authorize, is_allowed
from skynest.services.sessions import Principal

GUEST = Principal(subject_id=1, role=Role.GUEST)
STAFF = Principal(subject_id=10, role=Role.STAFF, branch_id=1)
ADMIN = Principal(subject_id=100, role=Role.ADMIN)


@pytest.mark.unit
def test_every_admin_resource_is_admin_only() -> None:
    """Test that management actions are never granted to guests or staff."""
    for (resource, action), roles in POLICY.items():
        if action == "manage":
            assert roles == frozenset({Role.ADMIN}), (resource, action)


@pytest.mark.unit
@pytest.mark.parametrize(
    "role,resource,action,allowed",
    [
        (Role.GUEST, "booking", "create", True),
        (Role.STAFF, "booking", "create", False),
        (Role.ADMIN, "booking", "create", False),
        (Role.STAFF, "booking", "update_status", True),
        (Role.GUEST, "booking", "update_status", False),
        (Role.GUEST, "report", "read", False),
        (Role.ADMIN, "report", "read", True),
        (Role.STAFF, "maintenance", "work", True),
        (Role.ADMIN, "maintenance", "work", False),
        (Role.GUEST, "profile", "read", True),
        (Role.STAFF, "profile", "update", True),
        (Role.ADMIN, "booking", "manage", True),
        (Role.STAFF, "booking", "manage", False),
        (Role.STAFF, "guest", "bills", True),
        (Role.GUEST, "guest", "bills", False),
        (Role.GUEST, "unknown", "action", False),
    ],
)
def test_role_table(role: Role, resource: str, action: str, allowed: bool) -> None:
    assert is_allowed(role, resource, action) is allowed


@pytest.mark.unit
def test_guest_cannot_touch_another_guests_booking() -> None:
    authorize(GUEST, "booking", "read", owner_id=1)

    with pytest.raises(PermissionDenied):
        authorize(GUEST, "booking", "read", owner_id=2)


@pytest.mark.unit
def test_staff_is_confined_to_their_branch() -> None:
    authorize(STAFF, "booking", "update_status", branch_id=1)

    with pytest.raises(PermissionDenied) as exc:
        authorize(STAFF, "booking", "update_status", branch_id=2)
    assert exc.value.status_code == 403


@pytest.mark.unit
def test_only_the_assignee_may_work_a_task() -> None:
    """Test that unassigned and foreign tasks are refused to staff."""
    authorize(STAFF, "maintenance", "work", branch_id=1, assignee_id=10)

    with pytest.raises(PermissionDenied):
        authorize(STAFF, "maintenance", "work", branch_id=1, assignee_id=11)
    with pytest.raises(PermissionDenied):
        authorize(STAFF, "maintenance", "work", branch_id=1, assignee_id=None)


@pytest.mark.unit
def test_admin_ignores_row_scopes() -> None:
    authorize(ADMIN, "booking", "read", owner_id=55, branch_id=9)
