"""Read-side booking services and store error translation."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional
from uuid import UUID

from django.db import IntegrityError, InterfaceError, OperationalError  # type: ignore
from django.utils import timezone  # type: ignore

from .exceptions import SlotTakenError, StoreUnavailableError, VehicleNotFoundError
from .repositories import DjangoVehicleScheduleRepository
from shared.domain.value_objects import TimeRange

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "booking_no_overlap"


def as_aware(value: datetime) -> datetime:
    """Interpret naive datetimes in the project time zone."""

    if timezone.is_naive(value):
        return timezone.make_aware(value)
    return value


@contextmanager
def store_errors() -> Iterator[None]:
    """Translate database failures into booking errors.

    Wrap it around the whole ``transaction.atomic`` block so the
    transaction is already rolled back when the typed error surfaces.
    """

    try:
        yield
    except IntegrityError as exc:
        if OVERLAP_CONSTRAINT in str(exc):
            logger.warning(f"Overlap rejected by database constraint: {exc}")
            raise SlotTakenError() from exc
        raise
    except (OperationalError, InterfaceError) as exc:
        logger.error(f"Booking store unavailable: {exc}")
        raise StoreUnavailableError() from exc


def check_availability(
    vehicle_id: int,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[UUID] = None,
) -> bool:
    """Return ``True`` when no blocking booking overlaps ``[start, end)``.

    Advisory only: the answer may be stale by the time the renter books.
    Unknown vehicles and empty or inverted windows are simply unavailable.
    """

    start, end = as_aware(start), as_aware(end)
    if end <= start:
        return False

    window = TimeRange(start, end)
    repository = DjangoVehicleScheduleRepository()
    with store_errors():
        try:
            schedule = repository.get_by_vehicle_id(vehicle_id, window=window)
        except VehicleNotFoundError:
            return False
    return schedule.is_free(window, exclude_booking_id=exclude_booking_id)


def list_vehicle_bookings(vehicle_id: int, from_date: Optional[datetime] = None) -> List[Dict[str, Any]]:
    """Blocking bookings of a vehicle that end after ``from_date`` (default: now)."""

    from_date = as_aware(from_date) if from_date else timezone.now()
    repository = DjangoVehicleScheduleRepository()
    with store_errors():
        rows = repository.blocking_bookings_from(vehicle_id, from_date).values(
            "id", "start_time", "end_time", "status"
        )
        return list(rows)
