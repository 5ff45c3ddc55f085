"""API views for the booking domain."""

from __future__ import annotations

from django.db.models import Q  # type: ignore
from rest_framework import exceptions, mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .domain.entities import BookingStatus
from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    BookingCancelSerializer,
    BookingCreateSerializer,
    BookingSerializer,
    BookingStatusUpdateSerializer,
    RefundSerializer,
)
from .services import change_booking_status


def is_venue_manager(user, booking: Booking) -> bool:
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return booking.venue.vendor.owner_id == user.id


class IsBookingStakeholder(permissions.BasePermission):
    """Customers, the venue's vendor and staff can see a booking."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        return obj.customer_id == user.id or is_venue_manager(user, obj)


class BookingViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Viewset for creating bookings and moving them through their lifecycle."""

    queryset = Booking.objects.select_related("venue", "venue__vendor", "customer").prefetch_related("refunds")
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    filterset_class = BookingFilterSet
    lookup_value_regex = r"\d+"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "change_status":
            return BookingStatusUpdateSerializer
        if self.action == "cancel":
            return BookingCancelSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if not user.is_authenticated:
            return qs.none()
        if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
            return qs
        return qs.filter(Q(customer=user) | Q(venue__vendor__owner=user))

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = serializer.save()
        read_serializer = BookingSerializer(booking, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def _transition_response(self, booking: Booking, refund) -> Response:
        booking = self.get_queryset().get(pk=booking.pk)
        data = BookingSerializer(booking, context=self.get_serializer_context()).data
        data["refund"] = RefundSerializer(refund).data if refund else None
        return Response(data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="status", url_name="status")
    def change_status(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        if not is_venue_manager(request.user, booking):
            raise exceptions.PermissionDenied("Only the venue's vendor or staff can change a booking status.")
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking, refund = change_booking_status(
            booking,
            serializer.validated_data["status"],
            actor=request.user,
            reason=serializer.validated_data["reason"],
            refund_amount=serializer.validated_data["refund_amount"],
            refund_reason=serializer.validated_data["refund_reason"],
        )
        return self._transition_response(booking, refund)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        refund_amount = serializer.validated_data["refund_amount"]
        if refund_amount is not None and not is_venue_manager(request.user, booking):
            raise exceptions.PermissionDenied("Only the venue's vendor or staff can issue a refund.")
        booking, refund = change_booking_status(
            booking,
            BookingStatus.CANCELLED,
            actor=request.user,
            reason=serializer.validated_data["reason"],
            refund_amount=refund_amount,
            refund_reason=serializer.validated_data["refund_reason"],
        )
        return self._transition_response(booking, refund)
