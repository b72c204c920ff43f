"""
Unit tests for status transition tables and date helpers.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from skynest.errors import ValidationFailed
from skynest.models.enums import BookingStatus, WorkStatus
from skynest.services.availability import validate_stay_dates
from skynest.services.billing import BookingBalance
from skynest.services.workflow import (
    BOOKING_TRANSITIONS,
    WORK_TRANSITIONS,
    ensure_transition,
    is_open,
)
from skynest.utils.datetime import overlap_nights
from skynest.utils.money import to_decimal


@pytest.mark.unit
def test_pending_booking_cannot_be_confirmed_by_hand() -> None:
    """Test that confirmation is left to the payment rule."""
    with pytest.raises(ValidationFailed) as exc:
        ensure_transition(BOOKING_TRANSITIONS, BookingStatus.PENDING, BookingStatus.CONFIRMED)
    assert exc.value.extra["current_status"] == "Pending"


@pytest.mark.unit
@pytest.mark.parametrize(
    "current,target",
    [
        (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN),
        (BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT),
        (BookingStatus.PENDING, BookingStatus.CANCELLED),
        (BookingStatus.CONFIRMED, BookingStatus.NO_SHOW),
    ],
)
def test_allowed_booking_transitions(current: BookingStatus, target: BookingStatus) -> None:
    ensure_transition(BOOKING_TRANSITIONS, current, target)


@pytest.mark.unit
def test_terminal_states_have_no_exits() -> None:
    for status in (BookingStatus.CHECKED_OUT, BookingStatus.CANCELLED, BookingStatus.NO_SHOW):
        assert BOOKING_TRANSITIONS[status] == frozenset()
    assert not is_open(WorkStatus.COMPLETED)
    assert not is_open(WorkStatus.CANCELLED)
    assert is_open(WorkStatus.PENDING)


@pytest.mark.unit
def test_work_cannot_skip_in_progress() -> None:
    with pytest.raises(ValidationFailed):
        ensure_transition(WORK_TRANSITIONS, WorkStatus.PENDING, WorkStatus.COMPLETED)


@pytest.mark.unit
def test_stay_must_be_at_least_one_night() -> None:
    assert validate_stay_dates(date(2030, 1, 1), date(2030, 1, 3)) == 2
    with pytest.raises(ValidationFailed):
        validate_stay_dates(date(2030, 1, 3), date(2030, 1, 3))


@pytest.mark.unit
def test_overlap_nights_clips_to_window() -> None:
    """Test half-open clipping of a stay to a report window."""
    assert overlap_nights(date(2030, 1, 30), date(2030, 2, 3), date(2030, 2, 1), date(2030, 3, 1)) == 2
    assert overlap_nights(date(2030, 1, 1), date(2030, 1, 5), date(2030, 2, 1), date(2030, 3, 1)) == 0


@pytest.mark.unit
def test_balance_never_goes_negative() -> None:
    balance = BookingBalance(total_amount=Decimal("200.00"), paid_amount=Decimal("250.00"))

    assert balance.outstanding_amount == Decimal("0.00")
    assert balance.is_fully_paid


@pytest.mark.unit
def test_to_decimal_rounds_to_cents() -> None:
    assert to_decimal(None) == Decimal("0.00")
    assert to_decimal(199.999) == Decimal("200.00")
    assert to_decimal("12.345") == Decimal("12.35")
