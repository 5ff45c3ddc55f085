"""Serializers for the booking domain."""

from __future__ import annotations

from decimal import Decimal

from rest_framework import serializers  # type: ignore

from .models import Booking, Refund
from .services import create_booking


class BookingCreateSerializer(serializers.Serializer):
    """
    Booking request

    ``venue`` is a plain id so that a missing or inactive venue is reported
    by the booking writer as 404 rather than a field error.
    """

    venue = serializers.IntegerField()
    date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField(required=False, allow_null=True, default=None)
    duration = serializers.IntegerField(required=False, allow_null=True, default=None)
    total_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
        default=None,
    )
    booking_type = serializers.ChoiceField(
        choices=Booking.BookingType.choices,
        default=Booking.BookingType.REGULAR,
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):  # type: ignore
        if attrs.get("end_time") is None and attrs.get("duration") is None:
            raise serializers.ValidationError("Either duration or end_time is required.")
        return attrs

    def create(self, validated_data):  # type: ignore
        request = self.context["request"]
        return create_booking(
            venue_id=validated_data["venue"],
            day=validated_data["date"],
            start_time=validated_data["start_time"],
            end_time=validated_data.get("end_time"),
            duration=validated_data.get("duration"),
            total_amount=validated_data.get("total_amount"),
            booking_type=validated_data["booking_type"],
            notes=validated_data.get("notes", ""),
            customer=request.user,
        )


class BookingSummarySerializer(serializers.ModelSerializer):
    """Compact booking shown inside availability slots."""

    class Meta:
        model = Booking
        fields = ["id", "booking_code", "booking_type", "start_time", "end_time", "status"]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    class Meta:
        model = Refund
        fields = ["id", "amount", "reason", "status", "processed_by", "created_at"]
        read_only_fields = fields


class BookingSerializer(serializers.ModelSerializer):
    """Full booking representation."""

    customer_id = serializers.ReadOnlyField(source="customer.id")
    venue_id = serializers.ReadOnlyField(source="venue.id")
    venue_name = serializers.ReadOnlyField(source="venue.name")
    court_number = serializers.ReadOnlyField(source="venue.court_number")
    refunds = RefundSerializer(many=True, read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_code",
            "customer_id",
            "venue_id",
            "venue_name",
            "court_number",
            "booking_type",
            "start_time",
            "end_time",
            "duration_hours",
            "total_amount",
            "currency",
            "status",
            "notes",
            "cancellation_reason",
            "cancelled_at",
            "refunds",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BookingStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    refund_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
        default=None,
    )
    refund_reason = serializers.CharField(required=False, allow_blank=True, default="")


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")
    refund_amount = serializers.DecimalField(
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0.00"),
        required=False,
        allow_null=True,
        default=None,
    )
    refund_reason = serializers.CharField(required=False, allow_blank=True, default="")
