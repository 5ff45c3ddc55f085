"""Tests for Booking model defaults and booking code generation."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.test import TestCase, override_settings

from apps.bookings.models import BOOKING_CODE_ATTEMPTS, Booking
from apps.venues.models import Vendor, Venue

User = get_user_model()


class BookingModelTests(TestCase):
    def setUp(self) -> None:
        self.customer = User.objects.create_user(username="player", password="PlayerPass123")
        self.venue = Venue.objects.create(
            vendor=Vendor.objects.create(name="Goal Arena"),
            name="Court A",
            sport="football",
            price_per_hour=Decimal("1000.00"),
            timezone="Asia/Kolkata",
        )

    def _create(self, hour: int) -> Booking:
        return Booking.objects.create(
            venue=self.venue,
            customer=self.customer,
            start_time=datetime(2024, 12, 23, hour, tzinfo=timezone.utc),
            end_time=datetime(2024, 12, 23, hour + 1, tzinfo=timezone.utc),
            total_amount=Decimal("1000.00"),
        )

    def test_taken_code_is_regenerated(self) -> None:
        codes = ["AAAA0001", "AAAA0001", "BBBB0002"]
        with mock.patch.object(Booking, "generate_booking_code", side_effect=codes):
            first = self._create(8)
            second = self._create(9)

        self.assertEqual(first.booking_code, "AAAA0001")
        self.assertEqual(second.booking_code, "BBBB0002")
        self.assertEqual(Booking.objects.count(), 2)

    def test_gives_up_after_repeated_collisions(self) -> None:
        with mock.patch.object(Booking, "generate_booking_code", return_value="AAAA0001") as generate:
            self._create(8)
            with self.assertRaises(IntegrityError):
                self._create(9)

        self.assertEqual(generate.call_count, 1 + BOOKING_CODE_ATTEMPTS)
        self.assertEqual(Booking.objects.count(), 1)

    @override_settings(BOOKINGS_DEFAULT_CURRENCY="USD")
    def test_currency_defaults_to_the_configured_setting(self) -> None:
        venue = Venue.objects.create(
            vendor=self.venue.vendor,
            name="Court B",
            sport="football",
            price_per_hour=Decimal("40.00"),
        )

        self.assertEqual(venue.currency, "USD")
        self.assertEqual(self._create(10).currency, "USD")
