import uuid
from decimal import Decimal

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("vehicles", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                (
                    "price_per_minute",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Minutenpreis zum Zeitpunkt der Buchung.",
                        max_digits=6,
                    ),
                ),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("confirmed", "Bestätigt"),
                            ("active", "Aktiv"),
                            ("completed", "Abgeschlossen"),
                            ("cancelled", "Storniert"),
                        ],
                        default="confirmed",
                        max_length=20,
                    ),
                ),
                ("vehicle_name", models.CharField(max_length=120)),
                ("vehicle_category", models.CharField(max_length=60)),
                ("pickup_address", models.CharField(max_length=255)),
                ("vehicle_unlocked", models.BooleanField(default=False)),
                ("reminder_sent", models.BooleanField(default=False)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "vehicle",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="bookings",
                        to="vehicles.vehicle",
                    ),
                ),
            ],
            options={
                "verbose_name": "Buchung",
                "verbose_name_plural": "Buchungen",
                "ordering": ["-start_time"],
                "indexes": [
                    models.Index(fields=["vehicle", "start_time", "end_time"], name="booking_vehicle_window_idx"),
                    models.Index(fields=["status"], name="booking_status_idx"),
                    models.Index(fields=["user", "status"], name="booking_user_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(end_time__gt=models.F("start_time")),
                        name="booking_end_after_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="VehicleUnlockLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(choices=[("unlock", "Entsperrt"), ("lock", "Gesperrt")], max_length=10),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="unlock_logs",
                        to="bookings.booking",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="vehicle_unlock_logs",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Fahrzeugsteuerung",
                "verbose_name_plural": "Fahrzeugsteuerung",
                "ordering": ["-created_at"],
            },
        ),
    ]
