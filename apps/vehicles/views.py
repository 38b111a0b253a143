"""API views for the vehicle fleet and its calendar."""

from __future__ import annotations

from rest_framework import serializers, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import Vehicle
from .serializers import VehicleSerializer
from apps.bookings.serializers import AvailabilityQuerySerializer, VehicleBookingSerializer
from apps.bookings.services import check_availability, list_vehicle_bookings
from apps.bookings.views import BookingErrorMixin
from apps.users.permissions import IsAdministratorOrReadOnly


class VehicleViewSet(BookingErrorMixin, viewsets.ModelViewSet):
    """Fahrzeuge ansehen; anlegen, ändern und stilllegen nur für Administratoren."""

    queryset = Vehicle.objects.all()
    serializer_class = VehicleSerializer
    permission_classes = [IsAdministratorOrReadOnly]
    filterset_fields = ["category", "available"]
    lookup_value_regex = r"\d+"

    @action(detail=True, methods=["get"])
    def availability(self, request, pk=None):  # type: ignore
        """Ist das Fahrzeug im Zeitraum [start, end) frei? Nur ein Hinweis, keine Reservierung."""
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data

        available = check_availability(
            int(pk),
            params["start"],
            params["end"],
            exclude_booking_id=params.get("exclude_booking"),
        )
        return Response({"available": available})

    @action(detail=True, methods=["get"])
    def bookings(self, request, pk=None):  # type: ignore
        """Belegte Zeiträume ab ``from`` (Standard: jetzt)."""
        vehicle = self.get_object()
        from_date = None
        if request.query_params.get("from"):
            try:
                from_date = serializers.DateTimeField().to_internal_value(request.query_params["from"])
            except serializers.ValidationError as exc:
                raise serializers.ValidationError({"from": exc.detail})

        rows = list_vehicle_bookings(vehicle.pk, from_date)
        return Response(VehicleBookingSerializer(rows, many=True).data)
