"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within transactions.

Commands:
- ReserveBookingCommand: Atomically reserve a vehicle for a time window
- CancelBookingCommand: Cancel a booking and free its slot
- StartRentalCommand: Renter picked the car up (CONFIRMED -> ACTIVE)
- CompleteRentalCommand: Renter returned the car (ACTIVE -> COMPLETED)
- ToggleVehicleLockCommand: Lock or unlock the car during an active rental
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID, uuid4
import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.value_objects import Money, TimeRange
from apps.bookings.domain.entities import BookingStatus, ensure_transition
from apps.bookings.domain.events import BookingCancelled, BookingStatusChanged, VehicleLockChanged
from apps.bookings.exceptions import (
    BookingNotFoundError,
    InvalidIntervalError,
    InvalidTransitionError,
    NotOwnerError,
    VehicleCommandError,
    VehicleNotFoundError,
    VehicleUnavailableError,
)
from apps.bookings.models import Booking, VehicleUnlockLog
from apps.bookings.repositories import DjangoVehicleScheduleRepository
from apps.bookings.services import as_aware, store_errors
from apps.users.permissions import is_administrator

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass
class ReserveBookingCommand:
    """
    Command to reserve a vehicle

    Price inputs are optional; by default the vehicle's current rate is
    snapshotted and the total is whole minutes x rate.
    """
    user_id: int
    vehicle_id: int
    start_time: datetime
    end_time: datetime
    price_per_minute: Optional[Decimal] = None
    total_price: Optional[Decimal] = None


@dataclass
class CancelBookingCommand:
    """Command to cancel a booking"""
    booking_id: UUID
    requested_by: int  # renter or administrator


@dataclass
class StartRentalCommand:
    booking_id: UUID
    requested_by: int


@dataclass
class CompleteRentalCommand:
    booking_id: UUID
    requested_by: int


@dataclass
class ToggleVehicleLockCommand:
    booking_id: UUID
    requested_by: int
    action: str  # "unlock" | "lock"


# ===== Helpers =====

def ensure_requester_may_manage(booking: Booking, user_id: int) -> None:
    """
    Only the renter and administrators may act on a booking

    Raises:
        NotOwnerError
    """
    if booking.user_id == user_id:
        return

    requester = get_user_model().objects.filter(pk=user_id).first()
    if requester is None or not is_administrator(requester):
        raise NotOwnerError()


class BookingHandler:
    """Shared plumbing: schedule repository, clock and booking loading"""

    def __init__(self, schedule_repo=None, clock: Callable[[], datetime] = timezone.now):
        self.schedule_repo = schedule_repo or DjangoVehicleScheduleRepository()
        self.clock = clock

    def _load(self, booking_id: UUID, lock_vehicle: bool = False):
        """
        Load a booking inside the current transaction

        With ``lock_vehicle`` the vehicle row is locked first and the
        booking re-read afterwards, so the status seen is current.
        Returns (booking, schedule_version).
        """
        booking = Booking.objects.filter(pk=booking_id).first()
        if booking is None:
            raise BookingNotFoundError()

        if lock_vehicle and booking.vehicle_id is not None:
            vehicle = self.schedule_repo.lock_vehicle(booking.vehicle_id)
            booking.refresh_from_db()
            return booking, vehicle.schedule_version

        booking = Booking.objects.select_for_update().get(pk=booking_id)
        version = booking.vehicle.schedule_version if booking.vehicle_id else 0
        return booking, version


# ===== Command Handlers =====

class ReserveBookingHandler(BookingHandler):
    """
    Handler for ReserveBooking command

    This is the single authoritative gate that creates bookings.

    Strategy (Defense in Depth):
    1. Validate the window before touching the database
    2. Start database transaction (atomic)
    3. Lock the vehicle row (serializes all writers of this vehicle)
    4. Reject vehicles taken out of service
    5. Load the overlapping blocking slots and reserve in the domain
    6. Insert the booking with status CONFIRMED
    7. Commit; BookingReserved is published after commit
    8. PostgreSQL EXCLUDE constraint as final safety net
    """

    def handle(self, command: ReserveBookingCommand) -> Booking:
        """
        Handle reservation

        Returns: Created Booking

        Raises:
            InvalidIntervalError: end <= start, or start too far in the past
            VehicleNotFoundError: unknown vehicle
            VehicleUnavailableError: vehicle taken out of service
            SlotTakenError: another booking overlaps the window
            StoreUnavailableError: database unreachable or lock timeout
        """
        window = self._validate_window(command.start_time, command.end_time)

        logger.info(
            f"Reserving vehicle {command.vehicle_id} for user {command.user_id}, "
            f"window {window}"
        )

        with store_errors():
            with DjangoUnitOfWork() as uow:
                vehicle = self.schedule_repo.lock_vehicle(command.vehicle_id)

                if not vehicle.available:
                    raise VehicleUnavailableError()

                schedule = self.schedule_repo.get_by_vehicle_id(vehicle.pk, window=window)

                booking_id = uuid4()
                schedule.reserve(booking_id, window, user_id=command.user_id)

                rate = command.price_per_minute
                if rate is None:
                    rate = vehicle.price_per_minute
                total = command.total_price
                if total is None:
                    total = (Money(rate) * window.minutes).rounded().amount

                booking = Booking.objects.create(
                    id=booking_id,
                    vehicle=vehicle,
                    user_id=command.user_id,
                    start_time=window.start,
                    end_time=window.end,
                    price_per_minute=rate,
                    total_price=total,
                    status=BookingStatus.CONFIRMED.value,
                    vehicle_name=vehicle.name,
                    vehicle_category=vehicle.category,
                    pickup_address=vehicle.address,
                )

                uow.collect_events(schedule)
                # Transaction commits here, events are published after commit

        logger.info(f"Booking {booking.id} reserved on vehicle {vehicle.pk}, total {booking.total_price}")
        return booking

    def _validate_window(self, start: datetime, end: datetime) -> TimeRange:
        start, end = as_aware(start), as_aware(end)
        if end <= start:
            raise InvalidIntervalError("Das Ende muss nach dem Beginn liegen.")

        grace = timedelta(minutes=getattr(settings, "BOOKING_PAST_GRACE_MINUTES", 5))
        if start < self.clock() - grace:
            raise InvalidIntervalError("Der Beginn darf nicht in der Vergangenheit liegen.")

        return TimeRange(start, end)


class CancelBookingHandler(BookingHandler):
    """
    Handler for cancelling a booking

    Runs under the vehicle lock, so a reservation waiting for the same
    vehicle sees the slot free as soon as this commits.
    """

    def handle(self, command: CancelBookingCommand) -> Booking:
        logger.info(f"Cancelling booking {command.booking_id} on behalf of user {command.requested_by}")

        with store_errors():
            with DjangoUnitOfWork() as uow:
                booking, version = self._load(command.booking_id, lock_vehicle=True)
                ensure_requester_may_manage(booking, command.requested_by)

                old_status = booking.status
                ensure_transition(old_status, BookingStatus.CANCELLED)

                booking.status = BookingStatus.CANCELLED.value
                booking.cancelled_at = self.clock()
                booking.save(update_fields=["status", "cancelled_at", "updated_at"])

                uow.add_event(BookingCancelled(
                    booking_id=booking.id,
                    vehicle_id=booking.vehicle_id,
                    schedule_version=version,
                    cancelled_by=command.requested_by,
                    old_status=old_status,
                ))

        logger.info(f"Booking {booking.id} cancelled (was {old_status})")
        return booking


class StartRentalHandler(BookingHandler):
    """Handler for the pickup: CONFIRMED -> ACTIVE inside the booked window"""

    def handle(self, command: StartRentalCommand) -> Booking:
        logger.info(f"Starting rental for booking {command.booking_id}")

        with store_errors():
            with DjangoUnitOfWork() as uow:
                booking, version = self._load(command.booking_id)
                ensure_requester_may_manage(booking, command.requested_by)

                old_status = booking.status
                ensure_transition(old_status, BookingStatus.ACTIVE)

                if not booking.is_ready_for_pickup(self.clock()):
                    raise InvalidTransitionError(
                        "Die Miete kann nur innerhalb des gebuchten Zeitraums gestartet werden."
                    )

                booking.status = BookingStatus.ACTIVE.value
                booking.save(update_fields=["status", "updated_at"])

                uow.add_event(BookingStatusChanged(
                    booking_id=booking.id,
                    vehicle_id=booking.vehicle_id,
                    status=booking.status,
                    schedule_version=version,
                    old_status=old_status,
                ))

        logger.info(f"Rental {booking.id} started")
        return booking


class CompleteRentalHandler(BookingHandler):
    """Handler for the return: ACTIVE -> COMPLETED, the car must be locked"""

    def handle(self, command: CompleteRentalCommand) -> Booking:
        logger.info(f"Completing rental for booking {command.booking_id}")

        with store_errors():
            with DjangoUnitOfWork() as uow:
                booking, version = self._load(command.booking_id, lock_vehicle=True)
                ensure_requester_may_manage(booking, command.requested_by)

                old_status = booking.status
                ensure_transition(old_status, BookingStatus.COMPLETED)

                if booking.vehicle_unlocked:
                    raise InvalidTransitionError("Bitte verriegeln Sie das Fahrzeug vor der Rückgabe.")

                booking.status = BookingStatus.COMPLETED.value
                booking.save(update_fields=["status", "updated_at"])

                uow.add_event(BookingStatusChanged(
                    booking_id=booking.id,
                    vehicle_id=booking.vehicle_id,
                    status=booking.status,
                    schedule_version=version,
                    old_status=old_status,
                ))

        logger.info(f"Rental {booking.id} completed")
        return booking


class ToggleVehicleLockHandler(BookingHandler):
    """
    Handler for remote lock/unlock during an active rental

    The provider is called outside the transaction. The result is then
    recorded under the vehicle lock, after re-checking that the rental
    is still active; a rental completed or cancelled in the meantime
    gets its car locked again and nothing is recorded.
    """

    ACTIONS = ("unlock", "lock")

    def __init__(self, gateway=None, **kwargs):
        super().__init__(**kwargs)
        self.gateway = gateway

    def handle(self, command: ToggleVehicleLockCommand) -> Booking:
        if command.action not in self.ACTIONS:
            raise ValueError(f"Unsupported lock action: {command.action}")

        booking = Booking.objects.select_related("vehicle").filter(pk=command.booking_id).first()
        if booking is None:
            raise BookingNotFoundError()
        ensure_requester_may_manage(booking, command.requested_by)

        self._ensure_active(booking)
        if booking.vehicle is None:
            raise VehicleNotFoundError()

        gateway = self.gateway
        if gateway is None:
            from apps.vehicles.telematics import get_gateway
            gateway = get_gateway()

        device_id = booking.vehicle.device_id
        result = gateway.send(device_id, command.action)
        if not result.success:
            raise VehicleCommandError(result.message)

        try:
            with store_errors():
                with DjangoUnitOfWork() as uow:
                    booking, version = self._load(command.booking_id, lock_vehicle=True)
                    self._ensure_active(booking)

                    booking.vehicle_unlocked = command.action == "unlock"
                    booking.save(update_fields=["vehicle_unlocked", "updated_at"])
                    VehicleUnlockLog.objects.create(
                        booking=booking,
                        user_id=command.requested_by,
                        action=command.action,
                    )

                    uow.add_event(VehicleLockChanged(
                        booking_id=booking.id,
                        vehicle_id=booking.vehicle_id,
                        status=booking.status,
                        schedule_version=version,
                        action=command.action,
                        user_id=command.requested_by,
                    ))
        except InvalidTransitionError:
            if command.action == "unlock":
                self._relock(gateway, device_id, command.booking_id)
            raise

        logger.info(f"Vehicle of booking {booking.id}: {command.action} recorded")
        return booking

    @staticmethod
    def _ensure_active(booking: Booking) -> None:
        if booking.status != BookingStatus.ACTIVE.value:
            raise InvalidTransitionError("Fahrzeugsteuerung ist nur während einer aktiven Miete möglich.")

    def _relock(self, gateway, device_id: str, booking_id: UUID) -> None:
        logger.warning(f"Rental {booking_id} ended while unlocking, locking vehicle {device_id} again")
        result = gateway.send(device_id, "lock")
        if not result.success:
            logger.error(f"Could not lock vehicle {device_id} again after rental {booking_id} ended: {result.message}")
