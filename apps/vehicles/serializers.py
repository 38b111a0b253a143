"""Serializers for the vehicle fleet."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Vehicle


class VehicleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vehicle
        fields = [
            "id",
            "name",
            "category",
            "price_per_minute",
            "seats",
            "range_km",
            "battery",
            "available",
            "latitude",
            "longitude",
            "address",
            "image_url",
            "telematics_id",
            "schedule_version",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "schedule_version", "created_at", "updated_at"]
