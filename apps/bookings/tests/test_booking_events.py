"""After-commit side effects: notifications, reminders and live updates."""

from __future__ import annotations

from datetime import timedelta
from unittest import mock

import pytest
from django.core import mail
from django.utils import timezone

from apps.bookings import tasks
from apps.bookings.application.command_handlers import (
    CancelBookingCommand,
    CancelBookingHandler,
    ReserveBookingCommand,
    ReserveBookingHandler,
)
from apps.bookings.domain.events import BookingReserved
from apps.bookings.exceptions import SlotTakenError
from apps.bookings.handlers import register_handlers
from apps.bookings.models import Booking
from apps.bookings.signals import booking_changed, subscribe_to_vehicle
from apps.notifications.models import Notification
from shared.application.message_bus import MessageBus

pytestmark = pytest.mark.django_db


def reserve(user, vehicle, starts_in: timedelta, minutes: int = 30):
    start = timezone.now() + starts_in
    return ReserveBookingHandler().handle(ReserveBookingCommand(
        user_id=user.id,
        vehicle_id=vehicle.id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
    ))


def test_confirmation_is_sent_after_commit(renter, vehicle, django_capture_on_commit_callbacks):
    with django_capture_on_commit_callbacks(execute=False) as callbacks:
        booking = reserve(renter, vehicle, timedelta(hours=3))

    assert len(mail.outbox) == 0
    assert len(callbacks) == 1

    callbacks[0]()

    assert len(mail.outbox) == 1
    assert "VW ID.3" in mail.outbox[0].body
    assert Notification.objects.filter(user=renter, title="Buchung bestätigt").count() == 1
    assert str(booking.id)[:8].upper() in mail.outbox[0].subject


def test_rejected_reservation_publishes_nothing(renter, other_renter, vehicle, django_capture_on_commit_callbacks):
    reserve(renter, vehicle, timedelta(hours=3))

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(SlotTakenError):
            reserve(other_renter, vehicle, timedelta(hours=3, minutes=10))

    assert callbacks == []
    assert len(mail.outbox) == 0


def test_broker_failure_does_not_undo_the_booking(renter, vehicle, django_capture_on_commit_callbacks):
    with mock.patch.object(tasks.notify_booking_confirmed, "delay", side_effect=ConnectionError("broker down")):
        with django_capture_on_commit_callbacks(execute=True):
            booking = reserve(renter, vehicle, timedelta(hours=3))

    assert Booking.objects.filter(pk=booking.pk, status="confirmed").exists()
    assert len(mail.outbox) == 0


def test_mail_failure_does_not_undo_the_booking(renter, vehicle, django_capture_on_commit_callbacks):
    with mock.patch("apps.notifications.services.send_mail", side_effect=OSError("smtp down")):
        with django_capture_on_commit_callbacks(execute=True):
            booking = reserve(renter, vehicle, timedelta(hours=3))

    assert Booking.objects.filter(pk=booking.pk, status="confirmed").exists()
    # the in-app notification is independent of the mail transport
    assert Notification.objects.filter(user=renter).count() == 1


def test_cancellation_notice(renter, vehicle, django_capture_on_commit_callbacks):
    booking = reserve(renter, vehicle, timedelta(hours=3))

    with django_capture_on_commit_callbacks(execute=True):
        CancelBookingHandler().handle(CancelBookingCommand(booking_id=booking.id, requested_by=renter.id))

    assert [message.subject for message in mail.outbox] == [
        f"Ihre Buchung {str(booking.id)[:8].upper()} wurde storniert"
    ]
    assert Notification.objects.filter(user=renter, title="Buchung storniert").exists()


def test_vehicle_observers_receive_changes(renter, vehicle, django_capture_on_commit_callbacks):
    received = []
    receiver = subscribe_to_vehicle(vehicle.id, lambda **payload: received.append(payload))
    try:
        with django_capture_on_commit_callbacks(execute=True):
            booking = reserve(renter, vehicle, timedelta(hours=3))
        with django_capture_on_commit_callbacks(execute=True):
            CancelBookingHandler().handle(CancelBookingCommand(booking_id=booking.id, requested_by=renter.id))
    finally:
        booking_changed.disconnect(receiver)

    assert [(item["booking_id"], item["status"]) for item in received] == [
        (booking.id, "confirmed"),
        (booking.id, "cancelled"),
    ]
    assert received[1]["schedule_version"] > received[0]["schedule_version"]


def test_observers_of_other_vehicles_are_not_called(renter, vehicle, django_capture_on_commit_callbacks):
    received = []
    receiver = subscribe_to_vehicle(vehicle.id + 1, lambda **payload: received.append(payload))
    try:
        with django_capture_on_commit_callbacks(execute=True):
            reserve(renter, vehicle, timedelta(hours=3))
    finally:
        booking_changed.disconnect(receiver)

    assert received == []


def test_failing_handler_does_not_stop_the_others():
    bus = MessageBus()
    calls = []

    def broken(event):
        raise RuntimeError("boom")

    def working(event):
        calls.append(event)

    bus.register_event_handler(BookingReserved, broken)
    bus.register_event_handler(BookingReserved, working)
    event = BookingReserved(vehicle_id=1)

    bus.publish_events([event])

    assert calls == [event]


def test_handler_registration_is_idempotent():
    bus = MessageBus()

    register_handlers(bus)
    register_handlers(bus)

    assert len(bus.handlers_for(BookingReserved)) == 2


# ===== reminders =====

def test_reminder_is_sent_once_for_bookings_starting_soon(renter, vehicle):
    soon = reserve(renter, vehicle, timedelta(minutes=30))
    later = reserve(renter, vehicle, timedelta(hours=3))

    assert tasks.send_booking_reminders() == {"sent": 1}
    assert tasks.send_booking_reminders() == {"sent": 0}

    soon.refresh_from_db()
    later.refresh_from_db()
    assert soon.reminder_sent is True
    assert later.reminder_sent is False
    assert len(mail.outbox) == 1
    assert mail.outbox[0].subject.startswith("Erinnerung")


def test_undelivered_reminder_is_retried(renter, vehicle):
    booking = reserve(renter, vehicle, timedelta(minutes=30))

    with mock.patch("apps.notifications.services.send_mail", side_effect=OSError("smtp down")):
        assert tasks.send_booking_reminders() == {"sent": 0}

    booking.refresh_from_db()
    assert booking.reminder_sent is False
    assert not Notification.objects.filter(user=renter, title="Ihre Miete beginnt bald").exists()

    assert tasks.send_booking_reminders() == {"sent": 1}
    booking.refresh_from_db()
    assert booking.reminder_sent is True
    assert len(mail.outbox) == 1


def test_cancelled_bookings_get_no_reminder(renter, vehicle):
    booking = reserve(renter, vehicle, timedelta(minutes=30))
    CancelBookingHandler().handle(CancelBookingCommand(booking_id=booking.id, requested_by=renter.id))

    assert tasks.send_booking_reminders() == {"sent": 0}


def test_reminder_lead_time_is_configurable(renter, vehicle, settings):
    settings.BOOKING_REMINDER_LEAD_MINUTES = 240
    reserve(renter, vehicle, timedelta(hours=3))

    assert tasks.send_booking_reminders() == {"sent": 1}


def test_notification_task_for_missing_booking():
    assert tasks.notify_booking_confirmed("00000000-0000-0000-0000-000000000000") is False
