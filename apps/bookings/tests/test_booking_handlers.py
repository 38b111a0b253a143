"""Tests for the booking use cases: reserve, cancel and the rental lifecycle."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest import mock
from uuid import uuid4

import pytest
from django.db import IntegrityError, OperationalError

from apps.bookings.application.command_handlers import (
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
from apps.bookings.exceptions import (
    BookingNotFoundError,
    InvalidIntervalError,
    InvalidTransitionError,
    NotOwnerError,
    SlotTakenError,
    StoreUnavailableError,
    VehicleCommandError,
    VehicleNotFoundError,
    VehicleUnavailableError,
)
from apps.bookings.models import Booking, VehicleUnlockLog
from apps.bookings.services import check_availability, list_vehicle_bookings, store_errors
from apps.vehicles.telematics import TelematicsResult

pytestmark = pytest.mark.django_db


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2025, 1, 10, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def reserve(frozen_clock, renter, vehicle):
    handler = ReserveBookingHandler(clock=frozen_clock)

    def _reserve(start, end, user=None, target=None, **extra):
        return handler.handle(ReserveBookingCommand(
            user_id=(user or renter).id,
            vehicle_id=(target or vehicle).id,
            start_time=start,
            end_time=end,
            **extra,
        ))

    return _reserve


@pytest.fixture
def cancel(frozen_clock):
    handler = CancelBookingHandler(clock=frozen_clock)

    def _cancel(booking, user):
        return handler.handle(CancelBookingCommand(booking_id=booking.id, requested_by=user.id))

    return _cancel


# ===== reserve =====

def test_end_to_end_reserve_conflict_cancel_rebook(reserve, cancel, renter, other_renter):
    first = reserve(at(10), at(10, 30))
    assert first.status == "confirmed"
    assert first.total_price == Decimal("9.00")
    assert first.price_per_minute == Decimal("0.30")

    with pytest.raises(SlotTakenError) as exc_info:
        reserve(at(10, 15), at(10, 45), user=other_renter)
    assert exc_info.value.code == "SLOT_TAKEN"

    cancel(first, renter)

    second = reserve(at(10, 15), at(10, 45), user=other_renter)
    assert second.status == "confirmed"
    assert Booking.objects.blocking().count() == 1


def test_back_to_back_bookings_both_succeed(reserve):
    reserve(at(10), at(11))
    reserve(at(11), at(12))

    assert Booking.objects.filter(status="confirmed").count() == 2


def test_overlap_is_rejected(reserve, other_renter):
    reserve(at(10), at(12))

    with pytest.raises(SlotTakenError):
        reserve(at(11), at(13), user=other_renter)

    assert Booking.objects.count() == 1


def test_cancellation_frees_the_slot(reserve, cancel, renter):
    booking = reserve(at(10), at(12))
    cancel(booking, renter)

    again = reserve(at(10), at(12))

    assert again.id != booking.id


def test_cancelled_and_completed_bookings_do_not_block(reserve, renter, vehicle):
    Booking.objects.create(
        vehicle=vehicle, user=renter, start_time=at(9), end_time=at(10),
        price_per_minute=Decimal("0.30"), status="cancelled",
        vehicle_name=vehicle.name, vehicle_category=vehicle.category, pickup_address=vehicle.address,
    )
    Booking.objects.create(
        vehicle=vehicle, user=renter, start_time=at(10), end_time=at(11),
        price_per_minute=Decimal("0.30"), status="completed",
        vehicle_name=vehicle.name, vehicle_category=vehicle.category, pickup_address=vehicle.address,
    )

    assert check_availability(vehicle.id, at(9), at(11))
    reserve(at(9), at(11))


@pytest.mark.parametrize("start,end", [(at(11), at(11)), (at(12), at(11))])
def test_invalid_interval_never_touches_the_store(reserve, start, end, django_assert_num_queries):
    with django_assert_num_queries(0):
        with pytest.raises(InvalidIntervalError) as exc_info:
            reserve(start, end)
    assert exc_info.value.code == "INVALID_INTERVAL"


def test_start_in_the_past_beyond_grace_is_invalid(reserve, settings):
    settings.BOOKING_PAST_GRACE_MINUTES = 5

    with pytest.raises(InvalidIntervalError):
        reserve(at(8, 54), at(10))

    # 09:00 is "now"; four minutes ago is still within the grace period
    booking = reserve(at(8, 56), at(10))
    assert booking.start_time == at(8, 56)


def test_unavailable_vehicle_is_rejected_before_overlap_check(reserve, vehicle):
    vehicle.available = False
    vehicle.save()

    with pytest.raises(VehicleUnavailableError) as exc_info:
        reserve(at(10), at(11))

    assert exc_info.value.code == "VEHICLE_UNAVAILABLE"
    assert not Booking.objects.exists()


def test_unknown_vehicle(frozen_clock, renter):
    handler = ReserveBookingHandler(clock=frozen_clock)

    with pytest.raises(VehicleNotFoundError):
        handler.handle(ReserveBookingCommand(
            user_id=renter.id, vehicle_id=999_999, start_time=at(10), end_time=at(11),
        ))


def test_reservation_snapshots_the_vehicle(reserve, vehicle):
    booking = reserve(at(10), at(11))

    vehicle.name = "VW ID.4"
    vehicle.address = "Potsdamer Platz 1, Berlin"
    vehicle.price_per_minute = Decimal("0.45")
    vehicle.save()
    booking.refresh_from_db()

    assert booking.vehicle_name == "VW ID.3"
    assert booking.vehicle_category == "Kompakt"
    assert booking.pickup_address == "Alexanderplatz 1, Berlin"
    assert booking.price_per_minute == Decimal("0.30")


def test_booking_history_survives_vehicle_deletion(reserve, vehicle):
    booking = reserve(at(10), at(11))

    vehicle.delete()
    booking.refresh_from_db()

    assert booking.vehicle_id is None
    assert booking.vehicle_name == "VW ID.3"


def test_caller_supplied_price_snapshot_is_kept(reserve):
    booking = reserve(
        at(10), at(11),
        price_per_minute=Decimal("0.25"),
        total_price=Decimal("12.50"),
    )

    assert booking.price_per_minute == Decimal("0.25")
    assert booking.total_price == Decimal("12.50")


def test_reservation_bumps_schedule_version(reserve, vehicle):
    before = vehicle.schedule_version

    reserve(at(10), at(11))
    vehicle.refresh_from_db()

    assert vehicle.schedule_version == before + 1


def test_rejected_reservation_leaves_schedule_version(reserve, vehicle, other_renter):
    reserve(at(10), at(11))
    vehicle.refresh_from_db()
    before = vehicle.schedule_version

    with pytest.raises(SlotTakenError):
        reserve(at(10, 30), at(11, 30), user=other_renter)
    vehicle.refresh_from_db()

    assert vehicle.schedule_version == before


def test_database_outage_surfaces_as_store_unavailable(frozen_clock, renter, vehicle):
    repo = mock.Mock()
    repo.lock_vehicle.side_effect = OperationalError("could not connect to server")
    handler = ReserveBookingHandler(schedule_repo=repo, clock=frozen_clock)

    with pytest.raises(StoreUnavailableError) as exc_info:
        handler.handle(ReserveBookingCommand(
            user_id=renter.id, vehicle_id=vehicle.id, start_time=at(10), end_time=at(11),
        ))

    assert exc_info.value.code == "STORE_UNAVAILABLE"
    assert not Booking.objects.exists()


def test_store_errors_maps_exclusion_violation_to_slot_taken():
    with pytest.raises(SlotTakenError):
        with store_errors():
            raise IntegrityError('conflicting key value violates exclusion constraint "booking_no_overlap"')


def test_store_errors_keeps_other_integrity_errors():
    with pytest.raises(IntegrityError):
        with store_errors():
            raise IntegrityError("NOT NULL constraint failed: bookings_booking.user_id")


# ===== cancel =====

def test_only_owner_or_administrator_may_cancel(reserve, cancel, other_renter, administrator):
    booking = reserve(at(10), at(11))

    with pytest.raises(NotOwnerError) as exc_info:
        cancel(booking, other_renter)
    assert exc_info.value.code == "NOT_OWNER"
    booking.refresh_from_db()
    assert booking.status == "confirmed"

    cancel(booking, administrator)
    booking.refresh_from_db()
    assert booking.status == "cancelled"


def test_cancel_sets_cancelled_at(reserve, cancel, renter):
    booking = reserve(at(10), at(11))

    cancelled = cancel(booking, renter)

    assert cancelled.cancelled_at is not None


@pytest.mark.parametrize("terminal", ["cancelled", "completed"])
def test_cancelling_a_terminal_booking_is_an_invalid_transition(reserve, cancel, renter, vehicle, terminal):
    booking = reserve(at(10), at(11))
    Booking.objects.filter(pk=booking.pk).update(status=terminal)
    vehicle.refresh_from_db()
    version = vehicle.schedule_version

    with pytest.raises(InvalidTransitionError) as exc_info:
        cancel(booking, renter)

    assert exc_info.value.code == "INVALID_TRANSITION"
    booking.refresh_from_db()
    vehicle.refresh_from_db()
    assert booking.status == terminal
    assert vehicle.schedule_version == version


def test_cancel_unknown_booking(frozen_clock, renter):
    handler = CancelBookingHandler(clock=frozen_clock)

    with pytest.raises(BookingNotFoundError):
        handler.handle(CancelBookingCommand(booking_id=uuid4(), requested_by=renter.id))


def test_active_booking_can_be_cancelled(reserve, cancel, renter):
    booking = reserve(at(10), at(11))
    Booking.objects.filter(pk=booking.pk).update(status="active")

    cancel(booking, renter)

    booking.refresh_from_db()
    assert booking.status == "cancelled"


# ===== rental lifecycle =====

def _start(booking, user, now):
    return StartRentalHandler(clock=lambda: now).handle(
        StartRentalCommand(booking_id=booking.id, requested_by=user.id)
    )


def test_rental_starts_inside_the_booked_window(reserve, renter):
    booking = reserve(at(10), at(11))

    with pytest.raises(InvalidTransitionError):
        _start(booking, renter, at(9, 59))

    started = _start(booking, renter, at(10, 5))
    assert started.status == "active"


def test_rental_cannot_start_after_the_window(reserve, renter):
    booking = reserve(at(10), at(11))

    with pytest.raises(InvalidTransitionError):
        _start(booking, renter, at(11))


def test_stranger_cannot_start_rental(reserve, other_renter):
    booking = reserve(at(10), at(11))

    with pytest.raises(NotOwnerError):
        _start(booking, other_renter, at(10, 5))


def test_complete_requires_locked_vehicle(reserve, renter):
    booking = reserve(at(10), at(11))
    _start(booking, renter, at(10, 1))
    Booking.objects.filter(pk=booking.pk).update(vehicle_unlocked=True)
    handler = CompleteRentalHandler(clock=lambda: at(10, 50))
    command = CompleteRentalCommand(booking_id=booking.id, requested_by=renter.id)

    with pytest.raises(InvalidTransitionError):
        handler.handle(command)

    Booking.objects.filter(pk=booking.pk).update(vehicle_unlocked=False)
    completed = handler.handle(command)
    assert completed.status == "completed"


def test_complete_requires_active_rental(reserve, renter):
    booking = reserve(at(10), at(11))

    with pytest.raises(InvalidTransitionError):
        CompleteRentalHandler().handle(CompleteRentalCommand(booking_id=booking.id, requested_by=renter.id))


def test_completed_rental_frees_the_rest_of_the_window(reserve, renter, other_renter):
    booking = reserve(at(10), at(12))
    _start(booking, renter, at(10))
    CompleteRentalHandler().handle(CompleteRentalCommand(booking_id=booking.id, requested_by=renter.id))

    follow_up = reserve(at(11), at(12), user=other_renter)

    assert follow_up.status == "confirmed"


# ===== remote lock =====

class FakeGateway:
    def __init__(self, success=True):
        self.success = success
        self.calls = []

    def send(self, device_id, command):
        self.calls.append((device_id, command))
        return TelematicsResult(success=self.success, message="ok" if self.success else "Fahrzeug offline")


def test_unlock_and_lock_during_active_rental(reserve, renter, vehicle):
    booking = reserve(at(10), at(11))
    _start(booking, renter, at(10))
    gateway = FakeGateway()
    handler = ToggleVehicleLockHandler(gateway=gateway)

    unlocked = handler.handle(ToggleVehicleLockCommand(booking.id, renter.id, "unlock"))
    assert unlocked.vehicle_unlocked is True

    locked = handler.handle(ToggleVehicleLockCommand(booking.id, renter.id, "lock"))
    assert locked.vehicle_unlocked is False

    assert gateway.calls == [(str(vehicle.id), "unlock"), (str(vehicle.id), "lock")]
    assert list(VehicleUnlockLog.objects.order_by("created_at", "id").values_list("action", flat=True)) == [
        "unlock",
        "lock",
    ]


def test_lock_commands_need_an_active_rental(reserve, renter):
    booking = reserve(at(10), at(11))
    gateway = FakeGateway()

    with pytest.raises(InvalidTransitionError):
        ToggleVehicleLockHandler(gateway=gateway).handle(ToggleVehicleLockCommand(booking.id, renter.id, "unlock"))

    assert gateway.calls == []


def test_failed_vehicle_command_is_not_recorded(reserve, renter):
    booking = reserve(at(10), at(11))
    _start(booking, renter, at(10))

    with pytest.raises(VehicleCommandError) as exc_info:
        ToggleVehicleLockHandler(gateway=FakeGateway(success=False)).handle(
            ToggleVehicleLockCommand(booking.id, renter.id, "unlock")
        )

    assert exc_info.value.message == "Fahrzeug offline"
    booking.refresh_from_db()
    assert booking.vehicle_unlocked is False
    assert not VehicleUnlockLog.objects.exists()


class RentalEndsDuringCommandGateway(FakeGateway):
    """Finishes the rental while the first command is still on its way to the car."""

    def __init__(self, end_rental):
        super().__init__()
        self.end_rental = end_rental

    def send(self, device_id, command):
        if not self.calls:
            self.end_rental()
        return super().send(device_id, command)


@pytest.mark.parametrize("ending", ["complete", "cancel"])
def test_unlock_is_not_recorded_on_a_rental_that_ended_meanwhile(reserve, renter, vehicle, ending):
    booking = reserve(at(10), at(11))
    _start(booking, renter, at(10))

    def end_rental():
        if ending == "complete":
            CompleteRentalHandler().handle(CompleteRentalCommand(booking_id=booking.id, requested_by=renter.id))
        else:
            CancelBookingHandler().handle(CancelBookingCommand(booking_id=booking.id, requested_by=renter.id))

    gateway = RentalEndsDuringCommandGateway(end_rental)

    with pytest.raises(InvalidTransitionError):
        ToggleVehicleLockHandler(gateway=gateway).handle(ToggleVehicleLockCommand(booking.id, renter.id, "unlock"))

    booking.refresh_from_db()
    assert booking.status in ("completed", "cancelled")
    assert booking.vehicle_unlocked is False
    assert not VehicleUnlockLog.objects.exists()
    # the car was opened for a rental that is over, so it is locked again
    assert gateway.calls == [(str(vehicle.id), "unlock"), (str(vehicle.id), "lock")]


def test_lock_on_a_rental_that_ended_meanwhile_sends_nothing_more(reserve, renter, vehicle):
    booking = reserve(at(10), at(11))
    _start(booking, renter, at(10))
    gateway = RentalEndsDuringCommandGateway(
        lambda: CompleteRentalHandler().handle(CompleteRentalCommand(booking_id=booking.id, requested_by=renter.id))
    )

    with pytest.raises(InvalidTransitionError):
        ToggleVehicleLockHandler(gateway=gateway).handle(ToggleVehicleLockCommand(booking.id, renter.id, "lock"))

    assert gateway.calls == [(str(vehicle.id), "lock")]
    assert not VehicleUnlockLog.objects.exists()


# ===== read side =====

def test_check_availability(reserve, vehicle):
    booking = reserve(at(10), at(12))

    assert not check_availability(vehicle.id, at(11), at(13))
    assert check_availability(vehicle.id, at(12), at(13))
    assert check_availability(vehicle.id, at(8), at(10))
    assert check_availability(vehicle.id, at(11), at(13), exclude_booking_id=booking.id)


def test_check_availability_answers_false_instead_of_raising(vehicle, django_assert_num_queries):
    with django_assert_num_queries(0):
        assert not check_availability(vehicle.id, at(12), at(12))
        assert not check_availability(vehicle.id, at(13), at(12))
    assert not check_availability(999_999, at(10), at(11))


def test_list_vehicle_bookings(reserve, cancel, renter, vehicle):
    early = reserve(at(10), at(11))
    late = reserve(at(12), at(13))
    dropped = reserve(at(14), at(15))
    cancel(dropped, renter)

    rows = list_vehicle_bookings(vehicle.id, from_date=at(9))
    assert [row["id"] for row in rows] == [early.id, late.id]
    assert set(rows[0]) == {"id", "start_time", "end_time", "status"}

    assert [row["id"] for row in list_vehicle_bookings(vehicle.id, from_date=at(11))] == [late.id]


def test_list_vehicle_bookings_defaults_to_now(renter, vehicle):
    now = datetime.now(timezone.utc)
    Booking.objects.create(
        vehicle=vehicle, user=renter, start_time=now - timedelta(hours=3), end_time=now - timedelta(hours=2),
        price_per_minute=Decimal("0.30"), vehicle_name=vehicle.name,
        vehicle_category=vehicle.category, pickup_address=vehicle.address,
    )
    upcoming = Booking.objects.create(
        vehicle=vehicle, user=renter, start_time=now + timedelta(hours=1), end_time=now + timedelta(hours=2),
        price_per_minute=Decimal("0.30"), vehicle_name=vehicle.name,
        vehicle_category=vehicle.category, pickup_address=vehicle.address,
    )

    assert [row["id"] for row in list_vehicle_bookings(vehicle.id)] == [upcoming.id]
