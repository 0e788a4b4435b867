"""Django app configuration for the realtime app."""

from django.apps import AppConfig


class DjangoAgendaRealtimeConfig(AppConfig):
    """Configuration for the realtime synchronization app."""

    name = "django_agenda.realtime"
    label = "agenda_realtime"
    verbose_name = "Realtime Sync"

    def ready(self) -> None:
        """Import signal handlers on app startup."""
        import django_agenda.realtime.signals  # noqa: F401, PLC0415
