"""Audit handlers for booking domain events.

Registered on the in-process message bus from ``BookingsConfig.ready()``;
they run after the surrounding transaction commits.
"""

from __future__ import annotations

import structlog

from shared.application.message_bus import message_bus

from .domain.events import BookingCancelled, BookingCreated, BookingStatusChanged

logger = structlog.get_logger(__name__)


def log_booking_created(event: BookingCreated) -> None:
    logger.info(
        "booking_created",
        event_id=str(event.event_id),
        booking_id=event.booking_id,
        booking_code=event.booking_code,
        venue_id=event.venue_id,
        customer_id=event.customer_id,
        start_time=event.start_time.isoformat(),
        end_time=event.end_time.isoformat(),
        total_amount=str(event.total_amount.amount),
        currency=event.total_amount.currency,
    )


def log_booking_status_changed(event: BookingStatusChanged) -> None:
    logger.info(
        "booking_status_changed",
        event_id=str(event.event_id),
        booking_id=event.booking_id,
        booking_code=event.booking_code,
        old_status=event.old_status,
        new_status=event.new_status,
        actor_id=event.actor_id,
    )


def log_booking_cancelled(event: BookingCancelled) -> None:
    logger.info(
        "booking_cancelled",
        event_id=str(event.event_id),
        booking_id=event.booking_id,
        booking_code=event.booking_code,
        venue_id=event.venue_id,
        reason=event.reason,
        refund_amount=str(event.refund_amount.amount) if event.refund_amount else None,
    )


def register_handlers() -> None:
    message_bus.register_event_handler(BookingCreated, log_booking_created)
    message_bus.register_event_handler(BookingStatusChanged, log_booking_status_changed)
    message_bus.register_event_handler(BookingCancelled, log_booking_cancelled)
