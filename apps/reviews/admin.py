"""Admin registration for vehicle reviews."""

from __future__ import annotations

from django.contrib import admin

from .models import VehicleReview


@admin.register(VehicleReview)
class VehicleReviewAdmin(admin.ModelAdmin):
    list_display = ("vehicle", "user", "rating", "created_at")
    list_filter = ("rating", "created_at")
    search_fields = ("vehicle__name", "user__email", "comment")
    readonly_fields = ("booking", "vehicle", "user", "rating", "comment", "created_at")
