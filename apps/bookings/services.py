"""Domain services for booking workflows.

- Overlap checker: ``find_conflicts``, ``check_slot_availability`` and the
  batched ``SlotOccupancy`` used by the availability calculator.
- Booking writer: ``create_booking`` and ``change_booking_status``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal

from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from apps.venues.domain.schedule import Slot, local_instant
from apps.venues.models import Conflict, Venue, VenueAvailability
from apps.venues.services import (
    MSG_OUTSIDE_HOURS,
    MSG_SKIPPED_BY_DST,
    ensure_duration_allowed,
    get_active_venue,
    resolve_venue_window,
    venue_tz,
)
from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import SlotConflict, ValidationFailed
from shared.domain.value_objects import Money, TimeRange, intervals_overlap

from .domain.entities import BookingStatus, ensure_transition_allowed
from .domain.events import BookingCancelled, BookingCreated, BookingStatusChanged
from .models import Booking, Refund

logger = logging.getLogger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


# ===== Overlap checker =====

@dataclass
class OverlapResult:
    bookings: list[Booking] = field(default_factory=list)
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def has_overlap(self) -> bool:
        return bool(self.bookings or self.conflicts)


@dataclass
class SlotCheck:
    is_available: bool
    booking: Booking | None = None
    conflict: Conflict | None = None
    blocked_by_marker: bool = False

    def to_details(self) -> dict:
        details: dict = {}
        if self.booking is not None:
            details["booking"] = {
                "id": self.booking.pk,
                "booking_code": self.booking.booking_code,
                "start_time": self.booking.start_time.isoformat(),
                "end_time": self.booking.end_time.isoformat(),
            }
        if self.conflict is not None:
            details["conflict"] = {
                "id": self.conflict.pk,
                "reason": self.conflict.reason,
                "start_time": self.conflict.start_time.isoformat(),
                "end_time": self.conflict.end_time.isoformat(),
            }
        if self.blocked_by_marker:
            details["blocked_by_marker"] = True
        return details


def _overlap_filter(interval: TimeRange) -> Q:
    return Q(start_time__lt=interval.end) & Q(end_time__gt=interval.start)


def find_conflicts(
    venue: Venue,
    interval: TimeRange,
    *,
    exclude_booking_id=None,
    exclude_conflict_id=None,
) -> OverlapResult:
    """Confirmed bookings and active conflicts on ``venue`` overlapping ``interval``."""

    bookings_qs = Booking.objects.filter(
        venue=venue,
        status=Booking.Status.CONFIRMED,
    ).filter(_overlap_filter(interval)).order_by("start_time")
    if exclude_booking_id is not None:
        bookings_qs = bookings_qs.exclude(pk=exclude_booking_id)

    conflicts_qs = Conflict.objects.filter(
        venue=venue,
        status=Conflict.Status.ACTIVE,
    ).filter(_overlap_filter(interval)).order_by("start_time")
    if exclude_conflict_id is not None:
        conflicts_qs = conflicts_qs.exclude(pk=exclude_conflict_id)

    return OverlapResult(bookings=list(bookings_qs), conflicts=list(conflicts_qs))


def _marker_allows(markers: list[VenueAvailability], local_start: datetime) -> bool:
    """No markers means no restriction; otherwise the start hour must be marked open."""

    if not markers:
        return True
    return any(marker.is_available and marker.start_time.hour == local_start.hour for marker in markers)


def check_slot_availability(venue: Venue, interval: TimeRange, *, exclude_booking_id=None) -> SlotCheck:
    """Single-slot check used on the write path."""

    overlap = find_conflicts(venue, interval, exclude_booking_id=exclude_booking_id)
    local_start = interval.start.astimezone(venue_tz(venue))
    markers = list(VenueAvailability.objects.filter(venue=venue, date=local_start.date()))
    blocked = not _marker_allows(markers, local_start)
    return SlotCheck(
        is_available=not overlap.has_overlap and not blocked,
        booking=overlap.bookings[0] if overlap.bookings else None,
        conflict=overlap.conflicts[0] if overlap.conflicts else None,
        blocked_by_marker=blocked,
    )


class SlotOccupancy:
    """
    One day's occupancy of a venue, loaded once

    Answers per-slot checks in memory so the availability calculator issues
    a fixed number of queries however many candidate slots it produces.
    """

    def __init__(self, venue: Venue, day: date, bookings, conflicts, markers):
        self.venue = venue
        self.day = day
        self.tz = venue_tz(venue)
        self.bookings = list(bookings)
        self.conflicts = list(conflicts)
        self.markers = list(markers)

    @classmethod
    def for_day(cls, venue: Venue, day: date) -> SlotOccupancy:
        tz = venue_tz(venue)
        window = TimeRange(local_instant(day, 0, tz), local_instant(day, 24, tz))
        bookings = Booking.objects.filter(
            venue=venue,
            status=Booking.Status.CONFIRMED,
        ).filter(_overlap_filter(window)).order_by("start_time")
        conflicts = Conflict.objects.filter(
            venue=venue,
            status=Conflict.Status.ACTIVE,
        ).filter(_overlap_filter(window)).order_by("start_time")
        markers = VenueAvailability.objects.filter(venue=venue, date=day)
        return cls(venue, day, bookings, conflicts, markers)

    def check(self, interval: TimeRange) -> SlotCheck:
        booking = next((b for b in self.bookings if intervals_overlap(b.interval, interval)), None)
        conflict = next((c for c in self.conflicts if intervals_overlap(c.interval, interval)), None)
        blocked = not _marker_allows(self.markers, interval.start.astimezone(self.tz))
        return SlotCheck(
            is_available=booking is None and conflict is None and not blocked,
            booking=booking,
            conflict=conflict,
            blocked_by_marker=blocked,
        )


# ===== Booking writer =====

def _whole_hour(value: time, *, name: str) -> int:
    if value.minute or value.second or value.microsecond:
        raise ValidationFailed(f"{name} must be on the hour.", details={name: value.isoformat()})
    return value.hour


def _resolve_hours(start_time: time, duration: int | None, end_time: time | None) -> tuple[int, int]:
    start_hour = _whole_hour(start_time, name="start_time")
    if end_time is not None:
        # 00:00 as an end time means midnight at the end of the day.
        end_hour = 24 if end_time == time(0) else _whole_hour(end_time, name="end_time")
        if end_hour <= start_hour:
            raise ValidationFailed("end_time must be after start_time.")
        if duration is not None and duration != end_hour - start_hour:
            raise ValidationFailed(
                "duration does not match start_time and end_time.",
                details={"duration": duration, "computed": end_hour - start_hour},
            )
        return start_hour, end_hour
    if duration is None:
        raise ValidationFailed("Either duration or end_time is required.")
    if duration <= 0:
        raise ValidationFailed("Duration must be a positive whole number of hours.")
    if start_hour + duration > 24:
        raise ValidationFailed("A booking cannot run past midnight.")
    return start_hour, start_hour + duration


def create_booking(
    *,
    venue_id,
    day: date,
    start_time: time,
    customer,
    duration: int | None = None,
    end_time: time | None = None,
    total_amount: Decimal | None = None,
    booking_type: str = Booking.BookingType.REGULAR,
    notes: str = "",
) -> Booking:
    """
    Create a CONFIRMED booking for ``[start_time, end_time)`` on ``day``

    Raises:
        NotFound: the venue is missing or inactive
        ValidationFailed: malformed times, closed day, slot outside the
            operating periods or a broken booking rule
        SlotConflict: an overlapping confirmed booking, active conflict or
            closed availability marker
    """

    venue = get_active_venue(venue_id)
    start_hour, end_hour = _resolve_hours(start_time, duration, end_time)
    duration = end_hour - start_hour

    window, schedule = resolve_venue_window(venue, day)
    if not window.is_open:
        raise ValidationFailed(window.reason or "Venue is closed on this date.", code="venue_closed")
    ensure_duration_allowed(window, schedule, duration)
    if not window.fits(start_hour, end_hour):
        raise ValidationFailed(MSG_OUTSIDE_HOURS, details={"operating_hours": window.to_dict()})

    slot = Slot(start_hour, end_hour)
    tz = venue_tz(venue)
    if not slot.exists_on(day, tz):
        raise ValidationFailed(
            MSG_SKIPPED_BY_DST,
            code="nonexistent_local_time",
            details={"date": day.isoformat(), "timezone": str(tz)},
        )
    interval = slot.to_range(day, tz)

    if total_amount is None:
        amount = Money(venue.price_per_hour, venue.currency) * duration
    else:
        amount = Money(Decimal(total_amount), venue.currency)

    with DjangoUnitOfWork() as uow:
        # Serialises writers for the same venue where row locks are supported.
        _lock_queryset_if_possible(Venue.objects.filter(pk=venue.pk)).get()

        check = check_slot_availability(venue, interval)
        if not check.is_available:
            logger.warning(f"Slot conflict on venue {venue.pk} for {interval}")
            raise SlotConflict(details=check.to_details())

        booking = Booking.objects.create(
            venue=venue,
            customer=customer,
            booking_type=booking_type,
            start_time=interval.start,
            end_time=interval.end,
            duration_hours=duration,
            total_amount=amount.amount,
            currency=amount.currency,
            status=Booking.Status.CONFIRMED,
            notes=notes or "",
        )
        uow.record(BookingCreated(
            aggregate_id=booking.pk,
            booking_id=booking.pk,
            booking_code=booking.booking_code,
            venue_id=venue.pk,
            customer_id=customer.pk,
            start_time=booking.start_time,
            end_time=booking.end_time,
            total_amount=amount,
        ))

    logger.info(f"Booking {booking.booking_code} created on venue {venue.pk} for {interval}")
    return booking


def _parse_status(value) -> BookingStatus:
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(str(getattr(value, "value", value)).upper())
    except ValueError:
        raise ValidationFailed(
            f"Unknown booking status: {value}",
            details={"allowed": [status.value for status in BookingStatus]},
        ) from None


def change_booking_status(
    booking: Booking,
    new_status,
    *,
    actor=None,
    reason: str = "",
    refund_amount: Decimal | None = None,
    refund_reason: str = "",
) -> tuple[Booking, Refund | None]:
    """
    Move ``booking`` to ``new_status`` if the whitelist allows it

    Confirming re-runs the overlap check without the booking itself.
    Cancelling stamps ``cancelled_at`` and optionally records a refund.
    """

    target = _parse_status(new_status)
    if refund_amount is not None and target != BookingStatus.CANCELLED:
        raise ValidationFailed("A refund can only be issued when cancelling a booking.")
    if refund_amount is not None and refund_amount < 0:
        raise ValidationFailed("Refund amount cannot be negative.")

    with DjangoUnitOfWork() as uow:
        booking = _lock_queryset_if_possible(
            Booking.objects.select_related("venue").filter(pk=booking.pk)
        ).get()
        current = BookingStatus(booking.status)
        ensure_transition_allowed(current, target)

        if refund_amount is not None and refund_amount > booking.total_amount:
            raise ValidationFailed(
                "Refund amount cannot exceed the booking total.",
                details={"refund_amount": str(refund_amount), "total_amount": str(booking.total_amount)},
            )

        if target == BookingStatus.CONFIRMED:
            _lock_queryset_if_possible(Venue.objects.filter(pk=booking.venue_id)).get()
            check = check_slot_availability(booking.venue, booking.interval, exclude_booking_id=booking.pk)
            if not check.is_available:
                logger.warning(f"Cannot confirm booking {booking.booking_code}: slot is taken")
                raise SlotConflict(details=check.to_details())

        booking.status = target.value
        update_fields = ["status", "updated_at"]
        if target == BookingStatus.CANCELLED:
            booking.cancelled_at = timezone.now()
            booking.cancellation_reason = reason or ""
            update_fields += ["cancelled_at", "cancellation_reason"]
        elif current == BookingStatus.CANCELLED:
            booking.cancelled_at = None
            booking.cancellation_reason = ""
            update_fields += ["cancelled_at", "cancellation_reason"]
        booking.save(update_fields=update_fields)

        refund = None
        if target == BookingStatus.CANCELLED and refund_amount:
            refund = Refund.objects.create(
                booking=booking,
                amount=refund_amount,
                reason=refund_reason or reason or "",
                processed_by=actor if getattr(actor, "is_authenticated", False) else None,
            )

        actor_id = getattr(actor, "pk", None)
        uow.record(BookingStatusChanged(
            aggregate_id=booking.pk,
            booking_id=booking.pk,
            booking_code=booking.booking_code,
            old_status=current.value,
            new_status=target.value,
            actor_id=actor_id,
        ))
        if target == BookingStatus.CANCELLED:
            uow.record(BookingCancelled(
                aggregate_id=booking.pk,
                booking_id=booking.pk,
                booking_code=booking.booking_code,
                venue_id=booking.venue_id,
                reason=booking.cancellation_reason,
                refund_amount=Money(refund.amount, booking.currency) if refund else None,
            ))

    logger.info(f"Booking {booking.booking_code} moved from {current.value} to {target.value}")
    return booking, refund
