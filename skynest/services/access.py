"""
Authorization policy.

One table decides which roles may perform an action on a resource, and one
function, ``authorize``, applies it together with the row-level rules:

* a guest only touches rows they own,
* a staff member only touches rows in their own branch,
* assignee-guarded work can only be moved forward by the assigned staff member.

Routes declare the role check with ``Depends(require(resource, action))`` and
call ``authorize`` again with the row's owner/branch/assignee once the row is
loaded.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog

from skynest.errors import PermissionDenied
from skynest.metrics import auth_failures
from skynest.models.enums import Role
from skynest.services.sessions import Principal

logger = structlog.get_logger(__name__)

GUEST = frozenset({Role.GUEST})
STAFF = frozenset({Role.STAFF})
ADMIN = frozenset({Role.ADMIN})
FRONT_DESK = frozenset({Role.STAFF, Role.ADMIN})
ANYONE = frozenset({Role.GUEST, Role.STAFF, Role.ADMIN})

POLICY: dict[tuple[str, str], frozenset[Role]] = {
    ("profile", "read"): ANYONE,
    ("profile", "update"): ANYONE,
    ("availability", "read"): ANYONE,
    ("booking", "create"): GUEST,
    ("booking", "list_own"): GUEST,
    ("booking", "read"): ANYONE,
    ("booking", "cancel"): ANYONE,
    ("booking", "check_in_self"): GUEST,
    ("booking", "list_branch"): FRONT_DESK,
    ("booking", "update_status"): FRONT_DESK,
    ("booking", "list_all"): ADMIN,
    ("booking", "manage"): ADMIN,
    ("payment", "create"): ANYONE,
    ("payment", "read"): ANYONE,
    ("payment", "confirm"): FRONT_DESK,
    ("room", "list_branch"): FRONT_DESK,
    ("room", "update_status"): FRONT_DESK,
    ("room", "manage"): ADMIN,
    ("guest", "search"): FRONT_DESK,
    ("guest", "bills"): FRONT_DESK,
    ("guest", "dashboard"): GUEST,
    ("guest", "upload_picture"): GUEST,
    ("maintenance", "report"): frozenset({Role.GUEST, Role.STAFF}),
    ("maintenance", "list_own"): frozenset({Role.GUEST, Role.STAFF}),
    ("maintenance", "work"): STAFF,
    ("maintenance", "manage"): ADMIN,
    ("service_request", "create"): GUEST,
    ("service_request", "read"): GUEST,
    ("service_request", "cancel"): GUEST,
    ("service_request", "work"): STAFF,
    ("service_request", "manage"): ADMIN,
    ("review", "create"): GUEST,
    ("branch", "manage"): ADMIN,
    ("room_type", "manage"): ADMIN,
    ("amenity", "manage"): ADMIN,
    ("service", "manage"): ADMIN,
    ("user", "manage"): ADMIN,
    ("report", "read"): ADMIN,
    ("dashboard", "admin"): ADMIN,
}

_UNCHECKED: Any = object()


def is_allowed(role: Role, resource: str, action: str) -> bool:
    return role in POLICY.get((resource, action), frozenset())


def authorize(
    principal: Principal,
    resource: str,
    action: str,
    *,
    owner_id: Optional[int] = None,
    branch_id: Optional[int] = None,
    assignee_id: Any = _UNCHECKED,
) -> None:
    """
    Allow or deny an action for the principal.

    Args:
        principal: Authenticated caller
        resource: Resource family, e.g. "booking"
        action: Action on that resource, e.g. "cancel"
        owner_id: Guest id owning the row, enforced for guests
        branch_id: Branch the row belongs to, enforced for staff
        assignee_id: Staff id the row is assigned to (None when unassigned),
            enforced for staff when given

    Raises:
        PermissionDenied: 403 when any rule fails
    """
    if not is_allowed(principal.role, resource, action):
        _deny(principal, resource, action, "role")

    if principal.role is Role.GUEST and owner_id is not None:
        if owner_id != principal.subject_id:
            _deny(principal, resource, action, "owner")

    if principal.role is Role.STAFF:
        if branch_id is not None and principal.branch_id != branch_id:
            _deny(principal, resource, action, "branch")
        if assignee_id is not _UNCHECKED and assignee_id != principal.subject_id:
            _deny(principal, resource, action, "assignee")


def _deny(principal: Principal, resource: str, action: str, rule: str) -> None:
    auth_failures.labels(reason="forbidden").inc()
    logger.info(
        "access_denied",
        subject_id=principal.subject_id,
        role=principal.role.value,
        resource=resource,
        action=action,
        rule=rule,
    )
    messages = {
        "role": "You do not have permission to perform this action",
        "owner": "You can only access your own records",
        "branch": "This record belongs to another branch",
        "assignee": "Only the assigned staff member can update this task",
    }
    raise PermissionDenied(messages[rule])
