"""Serializers for vehicle reviews."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import VehicleReview


class ReviewCreateSerializer(serializers.Serializer):
    booking = serializers.UUIDField()
    rating = serializers.IntegerField(
        min_value=1,
        max_value=5,
        error_messages={
            'min_value': 'Die Bewertung muss zwischen 1 und 5 liegen.',
            'max_value': 'Die Bewertung muss zwischen 1 und 5 liegen.',
        },
    )
    comment = serializers.CharField(required=False, allow_blank=True, default='')


class ReviewSerializer(serializers.ModelSerializer):
    """Read serializer for reviews including related ids."""

    booking_id = serializers.UUIDField(read_only=True)
    vehicle_id = serializers.IntegerField(read_only=True, allow_null=True)
    user_name = serializers.CharField(source='user.display_name', read_only=True)

    class Meta:
        model = VehicleReview
        fields = ['id', 'booking_id', 'vehicle_id', 'user_name', 'rating', 'comment', 'created_at']
        read_only_fields = fields
