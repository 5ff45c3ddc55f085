"""
Booking Domain Rules

- BookingStatus: lifecycle states of a booking
- ALLOWED_TRANSITIONS: whitelist of status changes
"""

from enum import Enum

from shared.domain.exceptions import InvalidStatusTransition


class BookingStatus(str, Enum):
    """
    Booking lifecycle

    State transitions:
    - PENDING -> CONFIRMED, CANCELLED
    - CONFIRMED -> COMPLETED, CANCELLED, NO_SHOW
    - CANCELLED -> PENDING (reopened)
    - NO_SHOW -> CANCELLED
    - COMPLETED is terminal

    Only CONFIRMED bookings occupy a slot.
    """
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    CANCELLED = 'CANCELLED'
    COMPLETED = 'COMPLETED'
    NO_SHOW = 'NO_SHOW'


ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({
        BookingStatus.COMPLETED,
        BookingStatus.CANCELLED,
        BookingStatus.NO_SHOW,
    }),
    BookingStatus.CANCELLED: frozenset({BookingStatus.PENDING}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.NO_SHOW: frozenset({BookingStatus.CANCELLED}),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition_allowed(current: BookingStatus, target: BookingStatus) -> None:
    """Raise InvalidStatusTransition unless ``current -> target`` is whitelisted."""
    if not can_transition(current, target):
        raise InvalidStatusTransition(
            f"Invalid status transition from {current.value} to {target.value}",
            details={
                'from': current.value,
                'to': target.value,
                'allowed': sorted(status.value for status in ALLOWED_TRANSITIONS.get(current, ())),
            },
        )
