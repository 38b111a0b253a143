"""API views for the booking domain."""

from __future__ import annotations

from uuid import UUID

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    CompleteRentalCommand,
    CompleteRentalHandler,
    ReserveBookingCommand,
    ReserveBookingHandler,
    StartRentalCommand,
    StartRentalHandler,
    ToggleVehicleLockCommand,
    ToggleVehicleLockHandler,
)
from .exceptions import BookingError, BookingNotFoundError
from .models import Booking
from .serializers import BookingCreateSerializer, BookingSerializer, VehicleLockSerializer
from apps.users.permissions import is_administrator


class BookingErrorMixin:
    """Renders typed booking failures as ``{"code", "detail"}``."""

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, BookingError):
            return Response(exc.as_dict(), status=exc.http_status)
        return super().handle_exception(exc)


class BookingViewSet(
    BookingErrorMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Buchungen anlegen, einsehen, stornieren sowie Miete starten und beenden."""

    queryset = Booking.objects.select_related("user").all()
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["status", "vehicle"]
    lookup_value_regex = "[0-9a-fA-F-]{36}"

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action == "vehicle_lock":
            return VehicleLockSerializer
        return BookingSerializer

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_administrator(user):
            return qs
        return qs.filter(user=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        booking = ReserveBookingHandler().handle(ReserveBookingCommand(
            user_id=request.user.id,
            vehicle_id=data["vehicle"].pk,
            start_time=data["start_time"],
            end_time=data["end_time"],
        ))

        read_serializer = BookingSerializer(booking, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def _booking_id(self) -> UUID:
        try:
            return UUID(str(self.kwargs[self.lookup_field]))
        except ValueError:
            raise BookingNotFoundError()

    def get_object(self):  # type: ignore
        self._booking_id()
        return super().get_object()

    def _respond(self, booking: Booking) -> Response:
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking = CancelBookingHandler().handle(
            CancelBookingCommand(booking_id=self._booking_id(), requested_by=request.user.id)
        )
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):  # type: ignore
        booking = StartRentalHandler().handle(
            StartRentalCommand(booking_id=self._booking_id(), requested_by=request.user.id)
        )
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        booking = CompleteRentalHandler().handle(
            CompleteRentalCommand(booking_id=self._booking_id(), requested_by=request.user.id)
        )
        return self._respond(booking)

    @action(detail=True, methods=["post"], url_path="vehicle-lock")
    def vehicle_lock(self, request, pk=None):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = ToggleVehicleLockHandler().handle(ToggleVehicleLockCommand(
            booking_id=self._booking_id(),
            requested_by=request.user.id,
            action=serializer.validated_data["action"],
        ))
        return self._respond(booking)
