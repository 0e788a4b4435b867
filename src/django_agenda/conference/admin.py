"""Django admin configuration for the conference app."""

from django.contrib import admin

from django_agenda.conference.models import Conference, ConferenceDay, DayHall, Hall
from django_agenda.program.models import DayTimeSlot


class ConferenceDayInline(admin.TabularInline):
    """Inline editor for days within the conference admin."""

    model = ConferenceDay
    extra = 0
    fields = ("name", "date")


class DayHallInline(admin.TabularInline):
    """Inline editor for the halls used on a day and their column order."""

    model = DayHall
    extra = 0
    fields = ("hall", "order")


class DayTimeSlotInline(admin.TabularInline):
    """Inline editor for a day's time slots."""

    model = DayTimeSlot
    extra = 0
    fields = ("slot_order", "start_time", "end_time", "is_break", "break_title")
    ordering = ("slot_order",)


@admin.register(Conference)
class ConferenceAdmin(admin.ModelAdmin):
    """Admin interface for managing conferences."""

    list_display = ("name", "slug", "start_date", "end_date", "venue")
    search_fields = ("name", "slug")
    prepopulated_fields = {"slug": ("name",)}
    inlines = (ConferenceDayInline,)


@admin.register(ConferenceDay)
class ConferenceDayAdmin(admin.ModelAdmin):
    """Admin interface for conference days, with hall and slot inlines."""

    list_display = ("name", "date", "conference")
    list_filter = ("conference",)
    inlines = (DayHallInline, DayTimeSlotInline)


@admin.register(Hall)
class HallAdmin(admin.ModelAdmin):
    """Admin interface for halls."""

    list_display = ("name", "capacity", "conference")
    list_filter = ("conference",)
    search_fields = ("name",)
