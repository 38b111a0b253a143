"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, VehicleUnlockLog


class VehicleUnlockLogInline(admin.TabularInline):
    model = VehicleUnlockLog
    extra = 0
    readonly_fields = ("user", "action", "created_at")
    can_delete = False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "vehicle_name",
        "user",
        "status",
        "start_time",
        "end_time",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "vehicle_category", "start_time")
    search_fields = ("id", "vehicle_name", "user__email", "pickup_address")
    # Status changes go through the booking API so the overlap guard applies.
    readonly_fields = (
        "id",
        "vehicle",
        "user",
        "start_time",
        "end_time",
        "status",
        "price_per_minute",
        "total_price",
        "vehicle_name",
        "vehicle_category",
        "pickup_address",
        "vehicle_unlocked",
        "cancelled_at",
        "created_at",
        "updated_at",
    )
    inlines = [VehicleUnlockLogInline]


@admin.register(VehicleUnlockLog)
class VehicleUnlockLogAdmin(admin.ModelAdmin):
    list_display = ("booking", "user", "action", "created_at")
    list_filter = ("action",)
