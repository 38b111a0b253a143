import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("moovy")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Erinnerung vor Mietbeginn - alle 15 Minuten
    "send-booking-reminders": {
        "task": "bookings.send_booking_reminders",
        "schedule": crontab(minute="*/15"),
        "options": {"expires": 600},
    },
}
