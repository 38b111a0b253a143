"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Booking
from apps.vehicles.models import Vehicle


class BookingCreateSerializer(serializers.Serializer):
    """Eingabe für eine Reservierung.

    Nur die Form wird hier geprüft; Zeitraum, Verfügbarkeit und
    Überschneidungen entscheidet der Reservierungs-Handler.
    """

    vehicle = serializers.PrimaryKeyRelatedField(queryset=Vehicle.objects.all())
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()


class BookingSerializer(serializers.ModelSerializer):
    """Detailansicht einer Buchung."""

    user_id = serializers.IntegerField(read_only=True)
    vehicle_id = serializers.IntegerField(read_only=True, allow_null=True)
    status_label = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "user_id",
            "vehicle_id",
            "vehicle_name",
            "vehicle_category",
            "pickup_address",
            "start_time",
            "end_time",
            "price_per_minute",
            "total_price",
            "status",
            "status_label",
            "vehicle_unlocked",
            "cancelled_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_status_label(self, obj: Booking) -> str:
        return obj.status_enum.label


class VehicleBookingSerializer(serializers.Serializer):
    """Belegter Zeitraum im Kalender eines Fahrzeugs."""

    id = serializers.UUIDField()
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    status = serializers.CharField()


class VehicleLockSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=["unlock", "lock"])


class AvailabilityQuerySerializer(serializers.Serializer):
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    exclude_booking = serializers.UUIDField(required=False)
