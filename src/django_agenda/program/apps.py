"""Django app configuration for the program app."""

from django.apps import AppConfig


class DjangoAgendaProgramConfig(AppConfig):
    """Configuration for the program app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "django_agenda.program"
    label = "agenda_program"
    verbose_name = "Program"
