"""Venue domain models.

A vendor operates one or more venues (a court, pitch or turf). Each venue
carries its own price, timezone and operating-hours document. Conflicts
are administrative blocks on a venue's calendar; availability markers
explicitly open individual hours on a given date.
"""

from __future__ import annotations

from decimal import Decimal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.text import slugify  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import TimeRange

from .domain.schedule import DEFAULT_OPERATING_PERIOD, OperatingHours, ScheduleError


def _default_timezone() -> str:
    return getattr(settings, "VENUES_DEFAULT_TIMEZONE", settings.TIME_ZONE)


def default_currency() -> str:
    return getattr(settings, "BOOKINGS_DEFAULT_CURRENCY", "INR")


class Vendor(models.Model):
    """Business that lists venues for booking."""

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True, blank=True)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vendors",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Vendor")
        verbose_name_plural = _("Vendors")
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def save(self, *args, **kwargs):  # type: ignore
        if not self.slug:
            self.slug = slugify(self.name)[:200] or "vendor"
        super().save(*args, **kwargs)


class Venue(models.Model):
    """A single bookable court or pitch."""

    vendor = models.ForeignKey(Vendor, on_delete=models.CASCADE, related_name="venues")
    name = models.CharField(max_length=200)
    court_number = models.CharField(max_length=50, blank=True)
    sport = models.CharField(max_length=50, db_index=True)
    city = models.CharField(max_length=100, blank=True)
    area = models.CharField(max_length=100, blank=True)
    price_per_hour = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    currency = models.CharField(max_length=3, default=default_currency)
    timezone = models.CharField(
        max_length=64,
        default=_default_timezone,
        help_text=_("IANA timezone the operating hours are expressed in."),
    )
    operating_hours = models.JSONField(
        null=True,
        blank=True,
        help_text=_("Weekly, seasonal and special-date hours plus booking rules."),
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Venue")
        verbose_name_plural = _("Venues")
        ordering = ["name", "court_number"]
        indexes = [
            models.Index(fields=["sport", "city"]),
            models.Index(fields=["vendor", "is_active"]),
        ]

    def __str__(self) -> str:
        if self.court_number:
            return f"{self.name} ({self.court_number})"
        return self.name

    def clean(self) -> None:
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValidationError({"timezone": _("Unknown timezone: %(tz)s") % {"tz": self.timezone}})

        try:
            OperatingHours.from_config(self.operating_hours, DEFAULT_OPERATING_PERIOD)
        except ScheduleError as exc:
            raise ValidationError({"operating_hours": str(exc)})

        if self.currency:
            self.currency = self.currency.upper()

    def save(self, *args, **kwargs):  # type: ignore
        self.clean()
        super().save(*args, **kwargs)


class Conflict(models.Model):
    """Administrative block on a venue's calendar (maintenance, tournament, ...)."""

    class Status(models.TextChoices):
        ACTIVE = "active", _("Active")
        INACTIVE = "inactive", _("Inactive")

    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="conflicts")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.ACTIVE)
    reason = models.CharField(max_length=255, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_conflicts",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Conflict")
        verbose_name_plural = _("Conflicts")
        ordering = ["start_time"]
        constraints = [
            models.CheckConstraint(
                check=models.Q(end_time__gt=models.F("start_time")),
                name="conflict_valid_interval",
            ),
        ]
        indexes = [
            models.Index(fields=["venue", "status", "start_time", "end_time"]),
        ]

    def __str__(self) -> str:
        return f"Conflict on {self.venue_id}: {self.start_time:%Y-%m-%d %H:%M} - {self.end_time:%H:%M}"

    @property
    def interval(self) -> TimeRange:
        return TimeRange(self.start_time, self.end_time)

    def clean(self) -> None:
        if self.start_time and self.end_time and self.start_time >= self.end_time:
            raise ValidationError(_("Conflict end time must be after its start time."))


class VenueAvailability(models.Model):
    """Explicit availability marker for one hour of a venue's day.

    Once any marker exists for a venue and date, only hours with an
    ``is_available`` marker can be booked on that date.
    """

    venue = models.ForeignKey(Venue, on_delete=models.CASCADE, related_name="availability_markers")
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()
    is_available = models.BooleanField(default=True)

    class Meta:
        verbose_name = _("Availability marker")
        verbose_name_plural = _("Availability markers")
        ordering = ["date", "start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=["venue", "date", "start_time"],
                name="unique_venue_availability_slot",
            ),
        ]

    def __str__(self) -> str:
        state = "open" if self.is_available else "closed"
        return f"{self.venue_id} {self.date} {self.start_time:%H:%M} {state}"
