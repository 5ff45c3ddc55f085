"""
Common Value Objects

Value objects used across the venue and booking domains:
- Money: Represents monetary amounts with currency
- TimeRange: Half-open time interval [start, end) on a venue
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Represents a monetary amount with currency.
    Immutable and supports arithmetic operations.
    """
    amount: Decimal
    currency: str = 'INR'

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if not self.currency or len(self.currency) != 3:
            raise ValueError(f"Currency must be a 3-letter ISO code, got {self.currency!r}")

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only subtract Money from Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot subtract different currencies: {self.currency} and {other.currency}")
        return Money(self.amount - other.amount, self.currency)

    def __mul__(self, factor) -> 'Money':
        """Multiply money by a factor (e.g. hourly price by duration)"""
        if not isinstance(factor, (int, float, Decimal)):
            raise TypeError("Can only multiply Money by number")
        return Money(self.amount * Decimal(str(factor)), self.currency)

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


def intervals_overlap(a: 'TimeRange', b: 'TimeRange') -> bool:
    """
    Half-open interval overlap test

    [a.start, a.end) and [b.start, b.end) overlap iff
    a.start < b.end AND b.start < a.end. Adjacent intervals do not overlap.
    """
    return a.start < b.end and b.start < a.end


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Time range value object

    Represents a range from start (inclusive) to end (exclusive).
    Used for bookings, conflicts and candidate slots.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start ({self.start}) must be before end ({self.end})")

    def overlaps_with(self, other: 'TimeRange') -> bool:
        """
        Check if this range overlaps with another

        Examples:
            - [14:00, 16:00) overlaps with [15:00, 17:00) -> True
            - [14:00, 16:00) overlaps with [16:00, 18:00) -> False (adjacent)
        """
        if not isinstance(other, TimeRange):
            raise TypeError("Can only check overlap with another TimeRange")
        return intervals_overlap(self, other)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment < self.end

    @property
    def hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600

    def __str__(self):
        return f"{self.start:%Y-%m-%d %H:%M} - {self.end:%H:%M}"

    def __repr__(self):
        return f"TimeRange({self.start.isoformat()}, {self.end.isoformat()})"
