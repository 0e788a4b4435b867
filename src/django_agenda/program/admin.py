"""Django admin configuration for the program app."""

from django.contrib import admin

from django_agenda.program.models import DayTimeSlot, Person, Session, SessionParticipant


class SessionParticipantInline(admin.TabularInline):
    """Inline editor for the people taking part in a session."""

    model = SessionParticipant
    extra = 0
    fields = ("person", "role")
    autocomplete_fields = ("person",)


@admin.register(Person)
class PersonAdmin(admin.ModelAdmin):
    """Admin interface for speakers, moderators and other participants."""

    list_display = ("name", "title", "organization", "conference")
    list_filter = ("conference",)
    search_fields = ("name", "organization")


@admin.register(DayTimeSlot)
class DayTimeSlotAdmin(admin.ModelAdmin):
    """Admin interface for time slots, ordered as they appear in the grid."""

    list_display = ("__str__", "day", "slot_order", "is_break", "break_title")
    list_filter = ("day__conference", "day", "is_break")
    ordering = ("day", "slot_order")


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    """Admin interface for sessions with their participants inline."""

    list_display = ("title", "session_type", "day", "hall", "time_slot")
    list_filter = ("conference", "session_type", "day", "hall")
    search_fields = ("title", "topic")
    raw_id_fields = ("time_slot",)
    inlines = (SessionParticipantInline,)
