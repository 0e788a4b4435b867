"""URL configuration for the realtime app.

Mount next to the program URLs, under the same conference prefix::

    urlpatterns = [
        path("<slug:conference_slug>/program/", include("django_agenda.program.urls")),
        path("<slug:conference_slug>/program/live/", include("django_agenda.realtime.urls")),
    ]

The grid page links to the stream only when these URLs are mounted.
"""

from django.urls import path

from django_agenda.realtime.views import LiveGridStreamView

app_name = "realtime"

urlpatterns = [
    path("", LiveGridStreamView.as_view(), name="grid-stream"),
]
