"""Admin registration for the fleet."""

from __future__ import annotations

from django.contrib import admin

from .models import Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("name", "category", "price_per_minute", "battery", "available", "address")
    list_filter = ("available", "category")
    list_editable = ("available",)
    search_fields = ("name", "address", "telematics_id")
    readonly_fields = ("schedule_version", "created_at", "updated_at")
