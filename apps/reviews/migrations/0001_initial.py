import uuid

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("bookings", "0002_booking_no_overlap"),
        ("vehicles", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="VehicleReview",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "rating",
                    models.PositiveSmallIntegerField(
                        help_text="1 (schlecht) bis 5 (ausgezeichnet)",
                        validators=[
                            django.core.validators.MinValueValidator(1),
                            django.core.validators.MaxValueValidator(5),
                        ],
                        verbose_name="Bewertung",
                    ),
                ),
                ("comment", models.TextField(blank=True, verbose_name="Kommentar")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "booking",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="review",
                        to="bookings.booking",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="vehicle_reviews",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "vehicle",
                    models.ForeignKey(
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reviews",
                        to="vehicles.vehicle",
                    ),
                ),
            ],
            options={
                "verbose_name": "Fahrzeugbewertung",
                "verbose_name_plural": "Fahrzeugbewertungen",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["vehicle", "-created_at"], name="review_vehicle_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(rating__gte=1, rating__lte=5),
                        name="review_rating_range",
                    ),
                ],
            },
        ),
    ]
