"""API views for venues: search, availability, timeline and conflicts."""

from __future__ import annotations

import logging

from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import generics, permissions, status, viewsets  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.domain.exceptions import ValidationFailed

from .filters import ConflictFilterSet, VenueFilterSet
from .models import Conflict, Venue
from .serializers import (
    AvailabilityQuerySerializer,
    ConflictSerializer,
    ConflictWriteSerializer,
    DayAvailabilitySerializer,
    TimelineQuerySerializer,
    VenueSearchQuerySerializer,
    VenueSerializer,
)
from .services import compute_day_slots, get_active_venue

logger = logging.getLogger(__name__)


def active_venues():
    return Venue.objects.select_related("vendor").filter(is_active=True, vendor__is_active=True)


class IsVenueManager(permissions.BasePermission):
    """Staff and the owner of the venue's vendor manage its calendar."""

    def has_object_permission(self, request, view, obj):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return True
        venue = obj if isinstance(obj, Venue) else obj.venue
        return venue.vendor.owner_id == user.id


class VenueViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Venue search and detail

    With ``date`` (and optionally ``start_time`` and ``duration``) each
    venue is annotated with ``is_available`` and ``total_amount``.
    """

    serializer_class = VenueSerializer
    permission_classes = [permissions.AllowAny]
    filterset_class = VenueFilterSet
    lookup_value_regex = r"\d+"

    def get_queryset(self):  # type: ignore
        return active_venues().order_by("name", "court_number")

    def get_serializer_context(self):  # type: ignore
        context = super().get_serializer_context()
        if self.action == "list":
            query = VenueSearchQuerySerializer(data=self.request.query_params)
            query.is_valid(raise_exception=True)
            context["availability_query"] = query.validated_data
        return context


class AvailabilityView(APIView):
    """Available slots of one venue on one date."""

    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        venue = get_active_venue(params["venue"])
        result = compute_day_slots(venue, params["date"], params["duration"], params.get("start_time"))
        return Response(DayAvailabilitySerializer(result).data)


class TimelineView(APIView):
    """
    Slots of every matching venue on one date

    Each slot is tagged ``available``, ``booked`` or ``unavailable`` and
    priced for the requested duration. Slots are ordered by start time,
    then venue name.
    """

    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):  # type: ignore
        query = TimelineQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        day = params["date"]
        duration = params["duration"]

        venues = active_venues()
        if params.get("sport"):
            venues = venues.filter(sport__iexact=params["sport"])
        if params.get("vendor"):
            venues = venues.filter(vendor_id=params["vendor"])
        if params.get("city"):
            venues = venues.filter(city__icontains=params["city"])
        if params.get("area"):
            venues = venues.filter(area__icontains=params["area"])

        slots = []
        for venue in venues:
            try:
                result = compute_day_slots(venue, day, duration)
            except ValidationFailed as exc:
                logger.info(f"Timeline skips venue {venue.pk}: {exc.message}")
                continue
            for slot in result.slots:
                if slot.has_booking:
                    slot_status = "booked"
                elif slot.is_available:
                    slot_status = "available"
                else:
                    slot_status = "unavailable"
                slots.append({
                    "venue_id": venue.pk,
                    "venue_name": venue.name,
                    "court_number": venue.court_number,
                    "sport": venue.sport,
                    "vendor_id": venue.vendor_id,
                    "vendor_name": venue.vendor.name,
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                    "status": slot_status,
                    "total_price": f"{venue.price_per_hour * duration:.2f}",
                    "currency": venue.currency,
                    "booking_id": slot.booking.pk if slot.booking else None,
                    "conflict_id": slot.conflict.pk if slot.conflict else None,
                })

        slots.sort(key=lambda item: (item["start_time"], item["venue_name"]))
        summary = {
            "total": len(slots),
            "available": sum(1 for item in slots if item["status"] == "available"),
            "booked": sum(1 for item in slots if item["status"] == "booked"),
            "unavailable": sum(1 for item in slots if item["status"] == "unavailable"),
        }
        filters = {
            "date": day.isoformat(),
            "duration": duration,
            "sport": params.get("sport"),
            "vendor": params.get("vendor"),
            "city": params.get("city"),
            "area": params.get("area"),
        }
        return Response({"slots": slots, "summary": summary, "filters": filters})


class VenueCalendarMixin:
    """Loads the venue from the URL and checks the caller may manage it."""

    venue_lookup_url_kwarg = "venue_id"
    permission_classes = [permissions.IsAuthenticated, IsVenueManager]

    def initial(self, request, *args, **kwargs):  # type: ignore
        super().initial(request, *args, **kwargs)
        venue_id = kwargs.get(self.venue_lookup_url_kwarg)
        self.venue_object = get_object_or_404(Venue.objects.select_related("vendor"), pk=venue_id)
        self.check_object_permissions(request, self.venue_object)

    def get_venue(self) -> Venue:
        return self.venue_object

    def get_serializer_context(self):  # type: ignore
        context = super().get_serializer_context()
        context["venue"] = getattr(self, "venue_object", None)
        return context


class ConflictViewSet(VenueCalendarMixin, viewsets.ModelViewSet):
    """Administrative blocks on a venue's calendar."""

    serializer_class = ConflictSerializer
    queryset = Conflict.objects.select_related("venue", "created_by").all()
    filterset_class = ConflictFilterSet

    def get_serializer_class(self):  # type: ignore
        if self.action in {"create", "update", "partial_update"}:
            return ConflictWriteSerializer
        return ConflictSerializer

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(venue=self.get_venue()).order_by("start_time")

    def perform_create(self, serializer):  # type: ignore
        conflict = serializer.save(venue=self.get_venue(), created_by=self.request.user)
        logger.info(f"Conflict {conflict.pk} created on venue {conflict.venue_id}: {conflict.interval}")

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.perform_create(serializer)
        read_serializer = ConflictSerializer(serializer.instance, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        self.perform_update(serializer)
        read_serializer = ConflictSerializer(serializer.instance, context=self.get_serializer_context())
        return Response(read_serializer.data, status=status.HTTP_200_OK)
