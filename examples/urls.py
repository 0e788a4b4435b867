"""URL configuration for the example development server.

``/`` jumps to the grid of the most recent conference; run
``bootstrap_program`` first or it falls back to the admin.
"""

from django.contrib import admin
from django.contrib.auth import views as auth_views
from django.http import HttpRequest, HttpResponseRedirect
from django.urls import include, path, reverse

from django_agenda.conference.models import Conference


def latest_program(request: HttpRequest) -> HttpResponseRedirect:
    conference = Conference.objects.order_by("-start_date").first()
    if conference is None:
        return HttpResponseRedirect(reverse("admin:index"))
    return HttpResponseRedirect(reverse("program:grid", kwargs={"conference_slug": conference.slug}))


urlpatterns = [
    path("", latest_program, name="root"),
    path("admin/", admin.site.urls),
    path("accounts/login/", auth_views.LoginView.as_view(template_name="admin/login.html"), name="login"),
    path("accounts/logout/", auth_views.LogoutView.as_view(), name="logout"),
    path("<slug:conference_slug>/program/", include("django_agenda.program.urls")),
    path("<slug:conference_slug>/program/live/", include("django_agenda.realtime.urls")),
]
