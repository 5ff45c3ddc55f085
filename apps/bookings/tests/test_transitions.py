"""Unit tests for the booking status whitelist."""

from __future__ import annotations

import pytest

from apps.bookings.domain.entities import (
    ALLOWED_TRANSITIONS,
    BookingStatus,
    can_transition,
    ensure_transition_allowed,
)
from shared.domain.exceptions import InvalidStatusTransition

ALLOWED = {
    ("PENDING", "CONFIRMED"),
    ("PENDING", "CANCELLED"),
    ("CONFIRMED", "COMPLETED"),
    ("CONFIRMED", "CANCELLED"),
    ("CONFIRMED", "NO_SHOW"),
    ("CANCELLED", "PENDING"),
    ("NO_SHOW", "CANCELLED"),
}


@pytest.mark.parametrize("current", list(BookingStatus))
@pytest.mark.parametrize("target", list(BookingStatus))
def test_whitelist(current: BookingStatus, target: BookingStatus) -> None:
    expected = (current.value, target.value) in ALLOWED
    assert can_transition(current, target) is expected

    if expected:
        ensure_transition_allowed(current, target)
    else:
        with pytest.raises(InvalidStatusTransition):
            ensure_transition_allowed(current, target)


def test_completed_is_terminal() -> None:
    assert ALLOWED_TRANSITIONS[BookingStatus.COMPLETED] == frozenset()


def test_error_names_both_statuses() -> None:
    with pytest.raises(InvalidStatusTransition) as excinfo:
        ensure_transition_allowed(BookingStatus.COMPLETED, BookingStatus.PENDING)

    assert excinfo.value.message == "Invalid status transition from COMPLETED to PENDING"
    assert excinfo.value.status_code == 400
    assert excinfo.value.details["from"] == "COMPLETED"
