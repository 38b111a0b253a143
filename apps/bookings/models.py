"""Booking persistence models for MOOVY."""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .domain.entities import BLOCKING_STATUSES, BookingStatus

STATUS_CHOICES = [(status.value, status.label) for status in BookingStatus]


class BookingQuerySet(models.QuerySet):
    def blocking(self):
        return self.filter(status__in=[s.value for s in BLOCKING_STATUSES])

    def overlapping(self, start, end):
        """Half-open overlap: start1 < end2 AND start2 < end1."""
        return self.filter(start_time__lt=end, end_time__gt=start)


class Booking(models.Model):
    """Buchung eines Fahrzeugs für ein Zeitfenster [start_time, end_time)."""

    Status = BookingStatus

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    vehicle = models.ForeignKey(
        "vehicles.Vehicle",
        on_delete=models.SET_NULL,
        null=True,
        related_name="bookings",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    price_per_minute = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        help_text=_("Minutenpreis zum Zeitpunkt der Buchung."),
    )
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=BookingStatus.CONFIRMED.value,
    )
    # Snapshots of the vehicle at booking time; history must not change
    # when the vehicle is edited or removed.
    vehicle_name = models.CharField(max_length=120)
    vehicle_category = models.CharField(max_length=60)
    pickup_address = models.CharField(max_length=255)
    vehicle_unlocked = models.BooleanField(default=False)
    reminder_sent = models.BooleanField(default=False)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        verbose_name = _("Buchung")
        verbose_name_plural = _("Buchungen")
        ordering = ["-start_time"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["vehicle", "start_time", "end_time"], name="booking_vehicle_window_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
            models.Index(fields=["user", "status"], name="booking_user_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking {self.id} for vehicle {self.vehicle_id} ({self.status})"

    @property
    def status_enum(self) -> BookingStatus:
        return BookingStatus(self.status)

    def is_ready_for_pickup(self, now=None) -> bool:
        now = now or timezone.now()
        return self.status == BookingStatus.CONFIRMED.value and self.start_time <= now < self.end_time


class VehicleUnlockLog(models.Model):
    """Protokoll der Fern-Ver- und Entriegelungen."""

    class Action(models.TextChoices):
        UNLOCK = "unlock", _("Entsperrt")
        LOCK = "lock", _("Gesperrt")

    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name="unlock_logs")
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="vehicle_unlock_logs",
    )
    action = models.CharField(max_length=10, choices=Action.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Fahrzeugsteuerung")
        verbose_name_plural = _("Fahrzeugsteuerung")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.action} booking {self.booking_id} by {self.user_id}"
