"""
Booking Repositories

Load and save the booking aggregates through the Django ORM.

``DjangoVehicleScheduleRepository.lock_vehicle()`` is the per-vehicle
serialization point. It bumps ``Vehicle.schedule_version`` with a
single UPDATE before reading anything:
- PostgreSQL takes a row lock on the vehicle that is held until commit
- SQLite takes the database write lock

Every writer touching the calendar of a vehicle goes through that
UPDATE, so the overlap check and the insert that follows cannot
interleave with another writer of the same vehicle.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from django.conf import settings  # type: ignore
from django.db import DEFAULT_DB_ALIAS, connections  # type: ignore
from django.db.models import F  # type: ignore

from apps.bookings.domain.entities import BookingStatus
from apps.bookings.domain.schedule import Slot, VehicleSchedule
from apps.bookings.exceptions import VehicleNotFoundError
from apps.bookings.models import Booking
from apps.vehicles.models import Vehicle
from shared.domain.value_objects import TimeRange

logger = logging.getLogger(__name__)


class DjangoVehicleScheduleRepository:
    """Builds ``VehicleSchedule`` aggregates from the booking table"""

    def __init__(self, using: str = DEFAULT_DB_ALIAS):
        self.using = using

    def lock_vehicle(self, vehicle_id: int) -> Vehicle:
        """
        Serialize writers of one vehicle and return its current row

        Must run inside ``transaction.atomic``.

        Raises:
            VehicleNotFoundError: if the vehicle does not exist
        """
        connection = connections[self.using]
        if connection.vendor == "postgresql":
            timeout_ms = int(getattr(settings, "BOOKING_LOCK_TIMEOUT_MS", 5000))
            with connection.cursor() as cursor:
                cursor.execute(f"SET LOCAL lock_timeout = {timeout_ms}")

        updated = (
            Vehicle.objects.using(self.using)
            .filter(pk=vehicle_id)
            .update(schedule_version=F("schedule_version") + 1)
        )
        if not updated:
            raise VehicleNotFoundError()

        vehicle = Vehicle.objects.using(self.using).get(pk=vehicle_id)
        logger.debug(f"Locked vehicle {vehicle_id} at schedule version {vehicle.schedule_version}")
        return vehicle

    def get_by_vehicle_id(
        self,
        vehicle_id: int,
        window: Optional[TimeRange] = None,
    ) -> VehicleSchedule:
        """
        Load the blocking slots of a vehicle

        With ``window`` only slots that overlap it are loaded, which is
        all a reservation needs to decide. Writers call ``lock_vehicle()``
        first in the same transaction so the slots read are current.
        """
        version = (
            Vehicle.objects.using(self.using)
            .filter(pk=vehicle_id)
            .values_list("schedule_version", flat=True)
            .first()
        )
        if version is None:
            raise VehicleNotFoundError()

        bookings = Booking.objects.using(self.using).filter(vehicle_id=vehicle_id).blocking()
        if window is not None:
            bookings = bookings.overlapping(window.start, window.end)

        slots = [
            Slot(
                booking_id=booking_id,
                window=TimeRange(start_time, end_time),
                status=BookingStatus(status),
            )
            for booking_id, start_time, end_time, status in bookings.values_list(
                "id", "start_time", "end_time", "status"
            )
        ]
        return VehicleSchedule(vehicle_id=vehicle_id, slots=slots, version=version)

    def blocking_bookings_from(self, vehicle_id: int, from_date: datetime):
        """Blocking bookings still running at or after ``from_date``, earliest first"""
        return (
            Booking.objects.using(self.using)
            .filter(vehicle_id=vehicle_id, end_time__gt=from_date)
            .blocking()
            .order_by("start_time")
        )
