"""Admin registration for vendors and venues.

Venues are managed here rather than over the API.
"""

from __future__ import annotations

from django.contrib import admin

from .models import Conflict, Vendor, Venue, VenueAvailability


class VenueInline(admin.TabularInline):
    model = Venue
    extra = 0
    fields = ("name", "court_number", "sport", "price_per_hour", "is_active")


@admin.register(Vendor)
class VendorAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "owner", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = [VenueInline]


@admin.register(Venue)
class VenueAdmin(admin.ModelAdmin):
    list_display = ("name", "court_number", "vendor", "sport", "city", "area", "price_per_hour", "is_active")
    list_filter = ("is_active", "sport", "city")
    search_fields = ("name", "vendor__name", "city", "area")


@admin.register(Conflict)
class ConflictAdmin(admin.ModelAdmin):
    list_display = ("venue", "start_time", "end_time", "status", "reason", "created_by")
    list_filter = ("status",)
    search_fields = ("venue__name", "reason")


@admin.register(VenueAvailability)
class VenueAvailabilityAdmin(admin.ModelAdmin):
    list_display = ("venue", "date", "start_time", "end_time", "is_available")
    list_filter = ("is_available", "date")
