"""FilterSet definitions for booking listings."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Booking


class BookingFilterSet(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Booking.Status.choices)
    booking_type = django_filters.ChoiceFilter(choices=Booking.BookingType.choices)
    venue = django_filters.NumberFilter(field_name="venue_id", lookup_expr="exact")
    vendor = django_filters.NumberFilter(field_name="venue__vendor_id", lookup_expr="exact")
    date_from = django_filters.DateFilter(field_name="start_time", lookup_expr="date__gte")
    date_to = django_filters.DateFilter(field_name="start_time", lookup_expr="date__lte")

    class Meta:
        model = Booking
        fields = ["status", "booking_type", "venue", "vendor"]
