"""FilterSet definitions for venue search and listing."""

from __future__ import annotations

import django_filters  # type: ignore

from .models import Conflict, Venue


class VenueFilterSet(django_filters.FilterSet):
    """FilterSet for Venue with the filters used by search and the timeline."""

    sport = django_filters.CharFilter(field_name="sport", lookup_expr="iexact")
    city = django_filters.CharFilter(field_name="city", lookup_expr="icontains")
    area = django_filters.CharFilter(field_name="area", lookup_expr="icontains")
    vendor = django_filters.NumberFilter(field_name="vendor_id", lookup_expr="exact")
    price_min = django_filters.NumberFilter(field_name="price_per_hour", lookup_expr="gte")
    price_max = django_filters.NumberFilter(field_name="price_per_hour", lookup_expr="lte")

    class Meta:
        model = Venue
        fields = ["sport", "city", "area", "vendor"]


class ConflictFilterSet(django_filters.FilterSet):
    """Blocks overlapping ``[start, end)``, optionally by status."""

    start = django_filters.IsoDateTimeFilter(field_name="end_time", lookup_expr="gt")
    end = django_filters.IsoDateTimeFilter(field_name="start_time", lookup_expr="lt")
    status = django_filters.ChoiceFilter(choices=Conflict.Status.choices)

    class Meta:
        model = Conflict
        fields = ["start", "end", "status"]
