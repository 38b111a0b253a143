"""Vehicle fleet models for MOOVY."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Vehicle(models.Model):
    """Fahrzeug der Flotte, minutengenau buchbar."""

    name = models.CharField(_("Name"), max_length=120)
    category = models.CharField(_("Kategorie"), max_length=60)
    price_per_minute = models.DecimalField(
        _("Preis pro Minute"),
        max_digits=6,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    seats = models.PositiveSmallIntegerField(_("Sitze"), default=5)
    range_km = models.PositiveIntegerField(_("Reichweite (km)"), default=0)
    battery = models.PositiveSmallIntegerField(
        _("Akku (%)"),
        default=100,
        validators=[MaxValueValidator(100)],
    )
    available = models.BooleanField(
        _("Verfügbar"),
        default=True,
        help_text=_("Manuelle Außerbetriebnahme; blockiert neue Buchungen unabhängig vom Zeitraum."),
    )
    latitude = models.DecimalField(max_digits=9, decimal_places=6)
    longitude = models.DecimalField(max_digits=9, decimal_places=6)
    address = models.CharField(_("Abholadresse"), max_length=255)
    image_url = models.URLField(blank=True, null=True)
    telematics_id = models.CharField(
        max_length=64,
        blank=True,
        help_text=_("Geräte-ID beim Telematik-Anbieter, leer = Fahrzeug-ID."),
    )
    schedule_version = models.PositiveIntegerField(
        default=0,
        editable=False,
        help_text=_("Wird bei jeder Buchung und Stornierung erhöht."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Fahrzeug")
        verbose_name_plural = _("Fahrzeuge")
        ordering = ["name"]
        indexes = [
            models.Index(fields=["available"], name="vehicle_available_idx"),
            models.Index(fields=["category"], name="vehicle_category_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.category})"

    @property
    def device_id(self) -> str:
        return self.telematics_id or str(self.pk)
