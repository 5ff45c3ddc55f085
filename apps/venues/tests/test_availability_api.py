"""Integration tests for the per-venue availability endpoint."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking
from apps.venues.models import Conflict, Vendor, Venue, VenueAvailability

User = get_user_model()
KOLKATA = ZoneInfo("Asia/Kolkata")

MONDAY = date(2024, 12, 23)
CHRISTMAS = date(2024, 12, 25)

NINE_TO_NINE = {
    "regular": {
        day: {"open": "09:00", "close": "21:00"}
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
    },
    "special_dates": {
        "2024-12-25": {"is_open": False, "reason": "Christmas Day"},
    },
}


def local(day: date, hour: int) -> datetime:
    return datetime(day.year, day.month, day.day, tzinfo=KOLKATA) + timedelta(hours=hour)


class AvailabilityAPITests(APITestCase):
    """Covers slot generation, occupancy and validation of the availability endpoint."""

    def setUp(self) -> None:
        self.owner = User.objects.create_user(username="owner", password="OwnerPass123")
        self.customer = User.objects.create_user(username="player", password="PlayerPass123")
        self.vendor = Vendor.objects.create(name="Goal Arena", owner=self.owner)
        self.venue = Venue.objects.create(
            vendor=self.vendor,
            name="Court A",
            court_number="1",
            sport="football",
            city="Bengaluru",
            area="Indiranagar",
            price_per_hour=Decimal("1000.00"),
            timezone="Asia/Kolkata",
            operating_hours=NINE_TO_NINE,
        )
        self.url = reverse("venue-availability")

    def _get(self, **params):
        query = {"venue": self.venue.id, "date": str(MONDAY)}
        query.update(params)
        return self.client.get(self.url, query)

    def _book(self, start_hour: int, end_hour: int, status_value: str = Booking.Status.CONFIRMED) -> Booking:
        return Booking.objects.create(
            venue=self.venue,
            customer=self.customer,
            start_time=local(MONDAY, start_hour),
            end_time=local(MONDAY, end_hour),
            duration_hours=end_hour - start_hour,
            total_amount=Decimal("1000.00") * (end_hour - start_hour),
            status=status_value,
        )

    @staticmethod
    def _slot(response, start: str) -> dict:
        return next(slot for slot in response.data["time_slots"] if slot["start_time"] == start)

    def test_nine_to_nine_two_hour_slots(self) -> None:
        response = self._get(duration=2)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        slots = response.data["time_slots"]
        self.assertEqual(len(slots), 11)
        self.assertEqual((slots[0]["start_time"], slots[0]["end_time"]), ("09:00", "11:00"))
        self.assertEqual((slots[-1]["start_time"], slots[-1]["end_time"]), ("19:00", "21:00"))
        self.assertTrue(all(slot["is_available"] for slot in slots))
        self.assertEqual(response.data["operating_hours"]["open"], "09:00")
        self.assertEqual(response.data["operating_hours"]["close"], "21:00")
        self.assertFalse(response.data["operating_hours"]["is_custom"])

    def test_duration_defaults_to_one_hour(self) -> None:
        response = self._get()

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["duration"], 1)
        self.assertEqual(len(response.data["time_slots"]), 12)

    def test_special_date_closure_returns_reason(self) -> None:
        response = self._get(date=str(CHRISTMAS), duration=2)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["time_slots"], [])
        self.assertEqual(response.data["reason"], "Christmas Day")
        self.assertTrue(response.data["operating_hours"]["is_special"])

    def test_closed_weekday_returns_empty_list(self) -> None:
        response = self._get(date="2024-12-22")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["time_slots"], [])
        self.assertEqual(response.data["reason"], "Closed on Sunday")

    def test_zero_duration_returns_empty_list(self) -> None:
        response = self._get(duration=0)

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["time_slots"], [])

    def test_repeated_calls_are_identical(self) -> None:
        self._book(14, 16)

        first = self._get(duration=2)
        second = self._get(duration=2)

        self.assertEqual(first.data, second.data)

    def test_confirmed_booking_occupies_overlapping_slots(self) -> None:
        booking = self._book(14, 16)

        response = self._get(duration=2)

        for start in ("13:00", "14:00", "15:00"):
            slot = self._slot(response, start)
            self.assertFalse(slot["is_available"], start)
            self.assertTrue(slot["has_booking"], start)
        self.assertEqual(self._slot(response, "14:00")["booking"]["booking_code"], booking.booking_code)
        for start in ("12:00", "16:00"):
            slot = self._slot(response, start)
            self.assertTrue(slot["is_available"], start)
            self.assertIsNone(slot["booking"])

    def test_cancelled_booking_does_not_occupy_a_slot(self) -> None:
        self._book(14, 16, status_value=Booking.Status.CANCELLED)

        response = self._get(duration=2)

        self.assertTrue(self._slot(response, "14:00")["is_available"])

    def test_active_conflict_blocks_and_inactive_does_not(self) -> None:
        conflict = Conflict.objects.create(
            venue=self.venue,
            start_time=local(MONDAY, 10),
            end_time=local(MONDAY, 11),
            reason="Pitch maintenance",
        )
        Conflict.objects.create(
            venue=self.venue,
            start_time=local(MONDAY, 18),
            end_time=local(MONDAY, 19),
            status=Conflict.Status.INACTIVE,
        )

        response = self._get(duration=1)

        blocked = self._slot(response, "10:00")
        self.assertFalse(blocked["is_available"])
        self.assertTrue(blocked["has_conflict"])
        self.assertFalse(blocked["has_booking"])
        self.assertEqual(blocked["conflict"]["id"], conflict.id)
        self.assertTrue(self._slot(response, "18:00")["is_available"])

    def test_explicit_markers_restrict_the_day(self) -> None:
        VenueAvailability.objects.create(
            venue=self.venue,
            date=MONDAY,
            start_time=time(10, 0),
            end_time=time(11, 0),
            is_available=True,
        )
        VenueAvailability.objects.create(
            venue=self.venue,
            date=MONDAY,
            start_time=time(11, 0),
            end_time=time(12, 0),
            is_available=False,
        )

        response = self._get(duration=1)

        available = [slot["start_time"] for slot in response.data["time_slots"] if slot["is_available"]]
        self.assertEqual(available, ["10:00"])

    def test_markers_on_another_date_do_not_apply(self) -> None:
        VenueAvailability.objects.create(
            venue=self.venue,
            date=MONDAY + timedelta(days=1),
            start_time=time(10, 0),
            end_time=time(11, 0),
        )

        response = self._get(duration=1)

        self.assertTrue(all(slot["is_available"] for slot in response.data["time_slots"]))

    def test_explicit_start_time_returns_one_slot(self) -> None:
        response = self._get(duration=2, start_time="14:00")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(len(response.data["time_slots"]), 1)
        self.assertEqual(response.data["time_slots"][0]["end_time"], "16:00")

    def test_start_time_outside_hours(self) -> None:
        response = self._get(duration=2, start_time="20:00")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["time_slots"], [])
        self.assertEqual(response.data["reason"], "Requested time is outside operating hours.")

    def test_duration_outside_booking_rules_is_rejected(self) -> None:
        self.venue.operating_hours = {**NINE_TO_NINE, "booking_rules": {"min_duration": 1, "max_duration": 4}}
        self.venue.save()

        response = self._get(duration=5)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "duration_not_allowed")
        self.assertIn("Maximum booking duration", response.data["error"])

    def test_duration_longer_than_operating_period_is_rejected(self) -> None:
        response = self._get(duration=13)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "duration_not_allowed")

    def test_unknown_venue_is_not_found(self) -> None:
        response = self.client.get(self.url, {"venue": 999999, "date": str(MONDAY)})

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)
        self.assertEqual(response.data["code"], "not_found")

    def test_inactive_vendor_hides_venue(self) -> None:
        self.vendor.is_active = False
        self.vendor.save()

        response = self._get()

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND, response.data)

    def test_malformed_query_is_rejected(self) -> None:
        bad_date = self._get(date="23-12-2024")
        bad_duration = self._get(duration="two")

        self.assertEqual(bad_date.status_code, status.HTTP_400_BAD_REQUEST, bad_date.data)
        self.assertEqual(bad_date.data["code"], "validation_error")
        self.assertIn("date", bad_date.data["details"])
        self.assertEqual(bad_duration.status_code, status.HTTP_400_BAD_REQUEST, bad_duration.data)
        self.assertIn("duration", bad_duration.data["details"])


class DaylightSavingTests(APITestCase):
    """Venues in zones with DST never offer wall-clock hours that do not exist."""

    def setUp(self) -> None:
        self.customer = User.objects.create_user(username="player", password="PlayerPass123")
        vendor = Vendor.objects.create(name="Hudson Courts")
        self.venue = Venue.objects.create(
            vendor=vendor,
            name="Court NY",
            sport="basketball",
            price_per_hour=Decimal("40.00"),
            currency="USD",
            timezone="America/New_York",
            operating_hours={
                "regular": {
                    day: {"open": "00:00", "close": "24:00"}
                    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
                },
            },
        )
        self.spring_forward = date(2024, 3, 10)

    def test_skipped_hour_is_not_offered(self) -> None:
        response = self.client.get(
            reverse("venue-availability"),
            {"venue": self.venue.id, "date": str(self.spring_forward), "duration": 1},
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        starts = [slot["start_time"] for slot in response.data["time_slots"]]
        self.assertEqual(len(starts), 23)
        self.assertNotIn("02:00", starts)

    def test_skipped_hour_cannot_be_booked(self) -> None:
        self.client.force_authenticate(self.customer)

        response = self.client.post(
            reverse("booking-list"),
            {"venue": self.venue.id, "date": str(self.spring_forward), "start_time": "02:00", "duration": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "nonexistent_local_time")
        self.assertEqual(Booking.objects.count(), 0)

    def test_hour_after_the_change_is_bookable(self) -> None:
        self.client.force_authenticate(self.customer)

        response = self.client.post(
            reverse("booking-list"),
            {"venue": self.venue.id, "date": str(self.spring_forward), "start_time": "03:00", "duration": 1},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        booking = Booking.objects.get()
        self.assertEqual(booking.end_time - booking.start_time, timedelta(hours=1))
        self.assertEqual(booking.start_time.astimezone(ZoneInfo("America/New_York")).hour, 3)
