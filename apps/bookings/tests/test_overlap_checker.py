"""Tests for the overlap checker services."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.test import TestCase

from apps.bookings.models import Booking
from apps.bookings.services import SlotOccupancy, check_slot_availability, find_conflicts
from apps.venues.models import Conflict, Vendor, Venue, VenueAvailability
from apps.venues.services import compute_day_slots
from shared.domain.value_objects import TimeRange

User = get_user_model()
KOLKATA = ZoneInfo("Asia/Kolkata")
MONDAY = date(2024, 12, 23)


def local(hour: int, day: date = MONDAY) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=KOLKATA) + timedelta(hours=hour)


def span(start_hour: int, end_hour: int) -> TimeRange:
    return TimeRange(local(start_hour), local(end_hour))


class OverlapCheckerTests(TestCase):
    def setUp(self) -> None:
        self.customer = User.objects.create_user(username="player", password="PlayerPass123")
        vendor = Vendor.objects.create(name="Goal Arena")
        self.venue = Venue.objects.create(
            vendor=vendor,
            name="Court A",
            sport="football",
            price_per_hour=Decimal("1000.00"),
            timezone="Asia/Kolkata",
        )
        self.other_venue = Venue.objects.create(
            vendor=vendor,
            name="Court B",
            sport="football",
            price_per_hour=Decimal("1000.00"),
            timezone="Asia/Kolkata",
        )
        self.booking = Booking.objects.create(
            venue=self.venue,
            customer=self.customer,
            start_time=local(15),
            end_time=local(17),
            duration_hours=2,
            total_amount=Decimal("2000.00"),
            status=Booking.Status.CONFIRMED,
        )

    def test_overlapping_request_is_unavailable(self) -> None:
        check = check_slot_availability(self.venue, span(14, 16))

        self.assertFalse(check.is_available)
        self.assertEqual(check.booking, self.booking)
        self.assertIsNone(check.conflict)

    def test_adjacent_request_is_available(self) -> None:
        self.assertTrue(check_slot_availability(self.venue, span(17, 19)).is_available)
        self.assertTrue(check_slot_availability(self.venue, span(13, 15)).is_available)

    def test_other_venue_is_unaffected(self) -> None:
        self.assertTrue(check_slot_availability(self.other_venue, span(15, 17)).is_available)

    def test_booking_can_be_excluded(self) -> None:
        result = find_conflicts(self.venue, span(15, 17), exclude_booking_id=self.booking.id)

        self.assertFalse(result.has_overlap)

    def test_conflicts_are_reported_with_bookings(self) -> None:
        conflict = Conflict.objects.create(venue=self.venue, start_time=local(16), end_time=local(18))

        result = find_conflicts(self.venue, span(16, 18))

        self.assertEqual(result.bookings, [self.booking])
        self.assertEqual(result.conflicts, [conflict])
        self.assertTrue(find_conflicts(self.venue, span(17, 18)).has_overlap)
        self.assertFalse(
            find_conflicts(self.venue, span(17, 18), exclude_conflict_id=conflict.id).has_overlap
        )

    def test_markers_use_the_local_start_hour(self) -> None:
        VenueAvailability.objects.create(venue=self.venue, date=MONDAY, start_time=time(9), end_time=time(10))

        self.assertTrue(check_slot_availability(self.venue, span(9, 10)).is_available)
        blocked = check_slot_availability(self.venue, span(10, 11))
        self.assertFalse(blocked.is_available)
        self.assertTrue(blocked.blocked_by_marker)

    def test_batched_occupancy_matches_single_checks(self) -> None:
        Conflict.objects.create(venue=self.venue, start_time=local(19), end_time=local(20))
        VenueAvailability.objects.create(venue=self.venue, date=MONDAY, start_time=time(18), end_time=time(19))
        VenueAvailability.objects.create(venue=self.venue, date=MONDAY, start_time=time(19), end_time=time(20))
        VenueAvailability.objects.create(venue=self.venue, date=MONDAY, start_time=time(15), end_time=time(16))

        occupancy = SlotOccupancy.for_day(self.venue, MONDAY)
        for hour in range(6, 22):
            interval = span(hour, hour + 1)
            batched = occupancy.check(interval)
            single = check_slot_availability(self.venue, interval)
            self.assertEqual(batched.is_available, single.is_available, hour)
            self.assertEqual(batched.booking, single.booking, hour)
            self.assertEqual(batched.conflict, single.conflict, hour)

    def test_booking_across_midnight_is_seen_by_the_next_day(self) -> None:
        Booking.objects.create(
            venue=self.venue,
            customer=self.customer,
            start_time=local(23),
            end_time=local(25),
            duration_hours=2,
            total_amount=Decimal("2000.00"),
            status=Booking.Status.CONFIRMED,
        )

        result = compute_day_slots(self.venue, MONDAY + timedelta(days=1), 1)

        first = result.slots[0]
        self.assertEqual(first.start_time, "06:00")
        self.assertTrue(first.is_available)
        occupancy = SlotOccupancy.for_day(self.venue, MONDAY + timedelta(days=1))
        self.assertEqual(len(occupancy.bookings), 1)

    def test_calculator_query_count_does_not_grow_with_slots(self) -> None:
        # venue lookup is done by the caller; one query each for bookings, conflicts, markers
        with self.assertNumQueries(3):
            result = compute_day_slots(self.venue, MONDAY, 1)
        self.assertEqual(len(result.slots), 17)
