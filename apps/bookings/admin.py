"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, Refund


class RefundInline(admin.TabularInline):
    model = Refund
    extra = 0
    readonly_fields = ("created_at",)


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "booking_code",
        "venue",
        "customer",
        "booking_type",
        "status",
        "start_time",
        "end_time",
        "total_amount",
        "created_at",
    )
    list_filter = ("status", "booking_type", "start_time", "venue__sport")
    search_fields = ("booking_code", "venue__name", "customer__email", "customer__username")
    readonly_fields = (
        "booking_code",
        "created_at",
        "updated_at",
        "cancelled_at",
    )
    inlines = [RefundInline]


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = ("booking", "amount", "status", "processed_by", "created_at")
    list_filter = ("status",)
    search_fields = ("booking__booking_code",)
