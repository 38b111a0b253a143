from decimal import Decimal

import django.core.validators
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Vehicle",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=120, verbose_name="Name")),
                ("category", models.CharField(max_length=60, verbose_name="Kategorie")),
                (
                    "price_per_minute",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=6,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                        verbose_name="Preis pro Minute",
                    ),
                ),
                ("seats", models.PositiveSmallIntegerField(default=5, verbose_name="Sitze")),
                ("range_km", models.PositiveIntegerField(default=0, verbose_name="Reichweite (km)")),
                (
                    "battery",
                    models.PositiveSmallIntegerField(
                        default=100,
                        validators=[django.core.validators.MaxValueValidator(100)],
                        verbose_name="Akku (%)",
                    ),
                ),
                (
                    "available",
                    models.BooleanField(
                        default=True,
                        help_text="Manuelle Außerbetriebnahme; blockiert neue Buchungen unabhängig vom Zeitraum.",
                        verbose_name="Verfügbar",
                    ),
                ),
                ("latitude", models.DecimalField(decimal_places=6, max_digits=9)),
                ("longitude", models.DecimalField(decimal_places=6, max_digits=9)),
                ("address", models.CharField(max_length=255, verbose_name="Abholadresse")),
                ("image_url", models.URLField(blank=True, null=True)),
                (
                    "telematics_id",
                    models.CharField(
                        blank=True,
                        help_text="Geräte-ID beim Telematik-Anbieter, leer = Fahrzeug-ID.",
                        max_length=64,
                    ),
                ),
                (
                    "schedule_version",
                    models.PositiveIntegerField(
                        default=0,
                        editable=False,
                        help_text="Wird bei jeder Buchung und Stornierung erhöht.",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Fahrzeug",
                "verbose_name_plural": "Fahrzeuge",
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["available"], name="vehicle_available_idx"),
                    models.Index(fields=["category"], name="vehicle_category_idx"),
                ],
            },
        ),
    ]
