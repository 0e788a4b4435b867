"""URL configuration for the program app.

Mount under a conference-scoped prefix in the host project::

    urlpatterns = [
        path("<slug:conference_slug>/program/", include("django_agenda.program.urls")),
    ]
"""

from django.urls import path

from django_agenda.program.views import (
    HallDeleteView,
    ProgramGridJSONView,
    ProgramGridView,
    ProgramStatsView,
    SessionCreateView,
    SessionDeleteView,
    SessionUpdateView,
    TimeSlotUpdateView,
)

app_name = "program"

urlpatterns = [
    path("", ProgramGridView.as_view(), name="grid"),
    path("grid.json", ProgramGridJSONView.as_view(), name="grid-json"),
    path("stats.json", ProgramStatsView.as_view(), name="stats"),
    path("sessions/new/", SessionCreateView.as_view(), name="session-create"),
    path("sessions/<int:pk>/edit/", SessionUpdateView.as_view(), name="session-edit"),
    path("sessions/<int:pk>/delete/", SessionDeleteView.as_view(), name="session-delete"),
    path("halls/<int:pk>/delete/", HallDeleteView.as_view(), name="hall-delete"),
    path("slots/<int:pk>/edit/", TimeSlotUpdateView.as_view(), name="slot-edit"),
]
