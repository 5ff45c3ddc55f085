"""Serializers for the venues domain."""

from __future__ import annotations

from django.utils import timezone  # type: ignore
from rest_framework import serializers  # type: ignore

from apps.bookings.serializers import BookingSummarySerializer
from shared.domain.exceptions import ValidationFailed

from .models import Conflict, Vendor, Venue
from .services import compute_day_slots


# ===== Query parameters =====

class AvailabilityQuerySerializer(serializers.Serializer):
    venue = serializers.IntegerField()
    date = serializers.DateField()
    # No lower bound: zero or negative durations give an empty slot list.
    duration = serializers.IntegerField(required=False, default=1)
    start_time = serializers.TimeField(required=False, allow_null=True, default=None)


class TimelineQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    duration = serializers.IntegerField(required=False, default=2)
    sport = serializers.CharField(required=False, allow_blank=True)
    vendor = serializers.IntegerField(required=False)
    city = serializers.CharField(required=False, allow_blank=True)
    area = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):  # type: ignore
        attrs.setdefault("date", timezone.localdate())
        return attrs


class VenueSearchQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    start_time = serializers.TimeField(required=False)
    duration = serializers.IntegerField(required=False, min_value=1)

    def validate(self, attrs):  # type: ignore
        if "start_time" in attrs and "date" not in attrs:
            raise serializers.ValidationError({"date": "date is required together with start_time."})
        return attrs


# ===== Availability output =====

class ConflictSerializer(serializers.ModelSerializer):
    venue_id = serializers.ReadOnlyField(source="venue.id")
    created_by = serializers.ReadOnlyField(source="created_by_id")

    class Meta:
        model = Conflict
        fields = [
            "id",
            "venue_id",
            "start_time",
            "end_time",
            "status",
            "reason",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ConflictWriteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Conflict
        fields = ["start_time", "end_time", "status", "reason"]

    def validate(self, attrs):  # type: ignore
        start = attrs.get("start_time", getattr(self.instance, "start_time", None))
        end = attrs.get("end_time", getattr(self.instance, "end_time", None))
        if start and end and start >= end:
            raise serializers.ValidationError("end_time must be after start_time.")
        return attrs


class TimeSlotSerializer(serializers.Serializer):
    start_time = serializers.CharField()
    end_time = serializers.CharField()
    is_available = serializers.BooleanField()
    has_booking = serializers.BooleanField()
    has_conflict = serializers.BooleanField()
    booking = BookingSummarySerializer(allow_null=True)
    conflict = ConflictSerializer(allow_null=True)


class OperatingHoursSerializer(serializers.Serializer):
    open = serializers.CharField(allow_null=True)
    close = serializers.CharField(allow_null=True)
    periods = serializers.ListField(child=serializers.DictField())
    is_open = serializers.BooleanField()
    is_custom = serializers.BooleanField()
    is_special = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)


class DayAvailabilitySerializer(serializers.Serializer):
    venue = serializers.IntegerField(source="venue.id")
    date = serializers.DateField(source="day")
    duration = serializers.IntegerField()
    time_slots = TimeSlotSerializer(source="slots", many=True)
    operating_hours = OperatingHoursSerializer()
    reason = serializers.CharField(allow_null=True)


# ===== Venues =====

class VendorSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vendor
        fields = ["id", "name", "slug"]


class VenueSerializer(serializers.ModelSerializer):
    """
    Venue card

    When the list view passes an ``availability_query`` in the context,
    ``is_available`` and ``total_amount`` are filled in for that date.
    """

    vendor = VendorSerializer(read_only=True)
    is_available = serializers.SerializerMethodField()
    total_amount = serializers.SerializerMethodField()

    class Meta:
        model = Venue
        fields = [
            "id",
            "vendor",
            "name",
            "court_number",
            "sport",
            "city",
            "area",
            "price_per_hour",
            "currency",
            "timezone",
            "operating_hours",
            "is_available",
            "total_amount",
        ]
        read_only_fields = fields

    def _availability(self, obj: Venue) -> bool | None:
        query = self.context.get("availability_query")
        if not query or "date" not in query:
            return None
        cache = self.context.setdefault("_availability_cache", {})
        if obj.pk not in cache:
            duration = query.get("duration") or 1
            try:
                result = compute_day_slots(obj, query["date"], duration, query.get("start_time"))
            except ValidationFailed:
                cache[obj.pk] = False
            else:
                cache[obj.pk] = result.has_available_slot
        return cache[obj.pk]

    def get_is_available(self, obj: Venue) -> bool | None:
        return self._availability(obj)

    def get_total_amount(self, obj: Venue) -> str | None:
        if not self._availability(obj):
            return None
        duration = self.context["availability_query"].get("duration") or 1
        return f"{obj.price_per_hour * duration:.2f}"
