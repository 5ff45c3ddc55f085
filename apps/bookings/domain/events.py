"""
Booking Domain Events

Events that represent things that have happened in the booking domain.
These are published after successful transaction commits.
"""

from dataclasses import dataclass
from datetime import datetime

from shared.domain.base import DomainEvent
from shared.domain.value_objects import Money


@dataclass
class BookingCreated(DomainEvent):
    """
    Event: A new booking was created

    Triggers:
    - Audit log entry
    """
    booking_id: int
    booking_code: str
    venue_id: int
    customer_id: int
    start_time: datetime
    end_time: datetime
    total_amount: Money


@dataclass
class BookingStatusChanged(DomainEvent):
    """Event: A booking moved between two whitelisted statuses"""
    booking_id: int
    booking_code: str
    old_status: str
    new_status: str
    actor_id: int | None = None


@dataclass
class BookingCancelled(DomainEvent):
    """
    Event: A booking was cancelled

    Published together with BookingStatusChanged. Carries the refund,
    if one was issued.
    """
    booking_id: int
    booking_code: str
    venue_id: int
    reason: str = ''
    refund_amount: Money | None = None
