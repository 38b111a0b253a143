from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"
    verbose_name = "Buchungen"

    def ready(self) -> None:
        from .handlers import register_handlers

        register_handlers()
