"""Booking domain models."""

from __future__ import annotations

import logging
import secrets
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.db import IntegrityError, models, transaction  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.venues.models import default_currency
from shared.domain.value_objects import TimeRange

logger = logging.getLogger(__name__)

BOOKING_CODE_ATTEMPTS = 5


class Booking(models.Model):
    """Reservation of a venue for ``[start_time, end_time)``."""

    class Status(models.TextChoices):
        PENDING = "PENDING", _("Pending")
        CONFIRMED = "CONFIRMED", _("Confirmed")
        CANCELLED = "CANCELLED", _("Cancelled")
        COMPLETED = "COMPLETED", _("Completed")
        NO_SHOW = "NO_SHOW", _("No show")

    class BookingType(models.TextChoices):
        REGULAR = "REGULAR", _("Regular")
        MATCH = "MATCH", _("Match")
        TRAINING = "TRAINING", _("Training")
        EVENT = "EVENT", _("Event")

    booking_code = models.CharField(max_length=12, unique=True, editable=False)
    venue = models.ForeignKey(
        "venues.Venue",
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    booking_type = models.CharField(
        max_length=20,
        choices=BookingType.choices,
        default=BookingType.REGULAR,
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    duration_hours = models.PositiveSmallIntegerField(default=1)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=3, default=default_currency)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.CONFIRMED,
    )
    notes = models.TextField(blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-start_time"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(end_time__gt=models.F("start_time")),
                name="booking_valid_interval",
            ),
        ]
        indexes = [
            models.Index(fields=["venue", "status", "start_time", "end_time"]),
            models.Index(fields=["booking_code"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.booking_code} for {self.venue_id}"

    @property
    def interval(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    def clean(self) -> None:
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError(_("Booking end time must be after its start time."))

    def save(self, *args, **kwargs):  # type: ignore
        self.clean()
        if not self._state.adding or self.booking_code:
            super().save(*args, **kwargs)
            return
        for attempt in range(1, BOOKING_CODE_ATTEMPTS + 1):
            self.booking_code = self.generate_booking_code()
            try:
                with transaction.atomic():
                    super().save(*args, **kwargs)
                return
            except IntegrityError:
                taken = Booking.objects.filter(booking_code=self.booking_code).exists()
                if attempt == BOOKING_CODE_ATTEMPTS or not taken:
                    raise
                logger.warning(f"Booking code {self.booking_code} already taken, retrying")

    @staticmethod
    def generate_booking_code() -> str:
        return secrets.token_hex(4).upper()


class Refund(models.Model):
    """Money returned to the customer for a cancelled booking."""

    class Status(models.TextChoices):
        PROCESSING = "PROCESSING", _("Processing")
        COMPLETED = "COMPLETED", _("Completed")
        FAILED = "FAILED", _("Failed")

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="refunds")
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reason = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PROCESSING)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_refunds",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Refund")
        verbose_name_plural = _("Refunds")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Refund {self.amount} for {self.booking_id}"
