"""Unit tests for shared value objects."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from shared.domain.value_objects import Money, TimeRange, intervals_overlap


def _range(start_hour: int, end_hour: int) -> TimeRange:
    return TimeRange(
        datetime(2024, 12, 24, start_hour, tzinfo=timezone.utc),
        datetime(2024, 12, 24, end_hour, tzinfo=timezone.utc),
    )


def test_overlapping_intervals_are_detected() -> None:
    assert intervals_overlap(_range(14, 16), _range(15, 17))
    assert _range(15, 17).overlaps_with(_range(14, 16))


def test_adjacent_intervals_do_not_overlap() -> None:
    assert not intervals_overlap(_range(14, 16), _range(16, 18))
    assert not intervals_overlap(_range(16, 18), _range(14, 16))


def test_contained_interval_overlaps() -> None:
    assert intervals_overlap(_range(9, 21), _range(12, 13))


def test_time_range_requires_start_before_end() -> None:
    with pytest.raises(ValueError):
        _range(16, 16)
    with pytest.raises(ValueError):
        _range(17, 16)


def test_time_range_is_half_open() -> None:
    slot = _range(14, 16)
    assert slot.contains(datetime(2024, 12, 24, 14, tzinfo=timezone.utc))
    assert not slot.contains(datetime(2024, 12, 24, 16, tzinfo=timezone.utc))
    assert slot.hours == 2


def test_money_multiplies_by_duration() -> None:
    price = Money(Decimal("750.00"), "INR")
    assert (price * 2) == Money(Decimal("1500.00"), "INR")


def test_money_rejects_mixed_currencies() -> None:
    with pytest.raises(ValueError):
        Money(Decimal("1"), "INR") + Money(Decimal("1"), "USD")


def test_money_rejects_negative_amounts() -> None:
    with pytest.raises(ValueError):
        Money(Decimal("-1"), "INR")
