"""URL routing for the venues domain."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AvailabilityView, ConflictViewSet, TimelineView, VenueViewSet

router = DefaultRouter()
router.register(r"", VenueViewSet, basename="venue")

conflict_list = ConflictViewSet.as_view({"get": "list", "post": "create"})
conflict_detail = ConflictViewSet.as_view(
    {"patch": "partial_update", "put": "update", "delete": "destroy", "get": "retrieve"}
)

urlpatterns = [
    path("availability/", AvailabilityView.as_view(), name="venue-availability"),
    path("timeline/", TimelineView.as_view(), name="venue-timeline"),
    # Administrative blocks
    path("<int:venue_id>/conflicts/", conflict_list, name="venue-conflict-list"),
    path("<int:venue_id>/conflicts/<int:pk>/", conflict_detail, name="venue-conflict-detail"),
    path("", include(router.urls)),
]
