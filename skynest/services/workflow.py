"""Transition tables for bookings and for assignee-driven work items."""

from __future__ import annotations

from enum import Enum
from typing import Mapping, TypeVar

from skynest.errors import ValidationFailed
from skynest.models.enums import BookingStatus, WorkStatus

S = TypeVar("S", bound=Enum)

WORK_TRANSITIONS: Mapping[WorkStatus, frozenset[WorkStatus]] = {
    WorkStatus.PENDING: frozenset({WorkStatus.IN_PROGRESS, WorkStatus.CANCELLED}),
    WorkStatus.IN_PROGRESS: frozenset({WorkStatus.COMPLETED, WorkStatus.CANCELLED}),
    WorkStatus.COMPLETED: frozenset(),
    WorkStatus.CANCELLED: frozenset(),
}

# Manual booking transitions. Pending -> Confirmed is made only by
# billing.sync_booking_status.
BOOKING_TRANSITIONS: Mapping[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CANCELLED, BookingStatus.NO_SHOW}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CHECKED_IN: frozenset({BookingStatus.CHECKED_OUT}),
    BookingStatus.CHECKED_OUT: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}


def ensure_transition(table: Mapping[S, frozenset[S]], current: S, target: S) -> None:
    """
    Raise ValidationFailed unless ``current -> target`` is in the table.

    Example:
        >>> ensure_transition(WORK_TRANSITIONS, WorkStatus.PENDING, WorkStatus.COMPLETED)
        Traceback (most recent call last):
        ...
        skynest.errors.ValidationFailed: Cannot change status from Pending to Completed
    """
    if target not in table.get(current, frozenset()):
        raise ValidationFailed(
            f"Cannot change status from {current.value} to {target.value}",
            current_status=current.value,
        )


def is_open(status: WorkStatus) -> bool:
    return bool(WORK_TRANSITIONS[status])
