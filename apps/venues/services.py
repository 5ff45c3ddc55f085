"""Availability calculator for venues.

Turns a venue's operating hours into candidate slots for a date and runs
each candidate through the overlap checker in ``apps.bookings.services``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, time
from zoneinfo import ZoneInfo

from django.conf import settings  # type: ignore

from shared.domain.exceptions import NotFound, ValidationFailed

from .domain.schedule import (
    DEFAULT_OPERATING_PERIOD,
    OperatingHours,
    OperatingWindow,
    ScheduleError,
    Slot,
    enumerate_slots,
)
from .models import Venue

logger = logging.getLogger(__name__)

MSG_OUTSIDE_HOURS = "Requested time is outside operating hours."
MSG_SKIPPED_BY_DST = "Requested time is skipped or repeated by a daylight saving change."


def default_operating_period() -> tuple[str, str]:
    return tuple(getattr(settings, "VENUES_DEFAULT_OPERATING_HOURS", DEFAULT_OPERATING_PERIOD))


def venue_tz(venue: Venue) -> ZoneInfo:
    return ZoneInfo(venue.timezone or getattr(settings, "VENUES_DEFAULT_TIMEZONE", settings.TIME_ZONE))


def get_active_venue(venue_id) -> Venue:
    """Return a bookable venue or raise NotFound."""

    try:
        return Venue.objects.select_related("vendor").get(
            pk=venue_id,
            is_active=True,
            vendor__is_active=True,
        )
    except (Venue.DoesNotExist, ValueError, TypeError):
        raise NotFound(f"Venue {venue_id} not found.") from None


def venue_schedule(venue: Venue) -> OperatingHours:
    try:
        return OperatingHours.from_config(venue.operating_hours, default_operating_period())
    except ScheduleError as exc:
        logger.error(f"Venue {venue.pk} has invalid operating hours: {exc}")
        raise ValidationFailed(
            f"Venue operating hours are misconfigured: {exc}",
            code="invalid_operating_hours",
        ) from exc


def resolve_venue_window(venue: Venue, day: date) -> tuple[OperatingWindow, OperatingHours]:
    schedule = venue_schedule(venue)
    return schedule.resolve(day), schedule


def ensure_duration_allowed(window: OperatingWindow, schedule: OperatingHours, duration: int) -> None:
    """Raise ValidationFailed when ``duration`` breaks the venue's booking rules."""

    if schedule.booking_rules is not None:
        message = schedule.booking_rules.violation(duration)
        if message:
            raise ValidationFailed(message, code="duration_not_allowed")
    elif duration > window.longest_span:
        raise ValidationFailed(
            f"Duration of {duration} hour(s) exceeds the longest operating period "
            f"of {window.longest_span} hour(s).",
            code="duration_not_allowed",
        )


@dataclass
class SlotStatus:
    slot: Slot
    is_available: bool
    booking: object | None = None
    conflict: object | None = None
    blocked_by_marker: bool = False

    @property
    def has_booking(self) -> bool:
        return self.booking is not None

    @property
    def has_conflict(self) -> bool:
        return self.conflict is not None

    @property
    def start_time(self) -> str:
        return self.slot.start_label

    @property
    def end_time(self) -> str:
        return self.slot.end_label


@dataclass
class DayAvailability:
    venue: Venue
    day: date
    duration: int
    window: OperatingWindow
    slots: list[SlotStatus] = field(default_factory=list)
    reason: str | None = None

    @property
    def operating_hours(self) -> dict:
        return self.window.to_dict()

    @property
    def has_available_slot(self) -> bool:
        return any(slot.is_available for slot in self.slots)


def compute_day_slots(venue: Venue, day: date, duration: int, start_time: time | None = None) -> DayAvailability:
    """
    Availability of ``venue`` on ``day`` for slots of ``duration`` hours

    Returns every candidate slot inside the day's operating periods with its
    occupancy, or a single candidate when ``start_time`` is given. Closed
    days and non-positive durations give an empty list rather than an error.
    """

    from apps.bookings.services import SlotOccupancy  # Local import to prevent circular dependency

    window, schedule = resolve_venue_window(venue, day)
    result = DayAvailability(venue=venue, day=day, duration=duration, window=window)

    if duration <= 0:
        return result
    if not window.is_open:
        result.reason = window.reason
        return result

    ensure_duration_allowed(window, schedule, duration)

    tz = venue_tz(venue)
    candidates = enumerate_slots(window, duration)
    if start_time is not None:
        candidates = [
            slot
            for slot in candidates
            if start_time.minute == 0 and start_time.second == 0 and slot.start_hour == start_time.hour
        ]
        if not candidates:
            result.reason = MSG_OUTSIDE_HOURS
            return result

    existing = [slot for slot in candidates if slot.exists_on(day, tz)]
    if start_time is not None and not existing:
        result.reason = MSG_SKIPPED_BY_DST
        return result
    candidates = existing

    occupancy = SlotOccupancy.for_day(venue, day)
    for slot in candidates:
        check = occupancy.check(slot.to_range(day, tz))
        result.slots.append(
            SlotStatus(
                slot=slot,
                is_available=check.is_available,
                booking=check.booking,
                conflict=check.conflict,
                blocked_by_marker=check.blocked_by_marker,
            )
        )
    return result
