"""Django app configuration for the conference app."""

from django.apps import AppConfig


class DjangoAgendaConferenceConfig(AppConfig):
    """Configuration for the conference app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "django_agenda.conference"
    label = "agenda_conference"
    verbose_name = "Conference"
