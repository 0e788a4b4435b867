"""Views for the program app.

Public views render a day's time-slot x hall grid (as HTML or JSON) and
program statistics; editor views create, edit and delete sessions and
delete halls.  Every view is scoped to a conference via the
``conference_slug`` URL kwarg.
"""

import logging

from django.contrib import messages
from django.contrib.auth.mixins import LoginRequiredMixin
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import Http404, HttpRequest, HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import NoReverseMatch, reverse
from django.views import View
from django.views.generic import TemplateView

from django_agenda.conference.models import Conference, ConferenceDay, DayHall, Hall
from django_agenda.features import FeatureRequiredMixin
from django_agenda.program.forms import HallDeleteForm, SessionForm, TimeSlotForm
from django_agenda.program.grid import ProgramGrid, build_grid
from django_agenda.program.models import DayTimeSlot, Session
from django_agenda.program.roles import resolve_roles
from django_agenda.program.services import delete_hall, delete_session, save_session
from django_agenda.program.slots import ensure_slots, update_time_slot
from django_agenda.program.utils import calculate_duration, format_time, format_time_range, get_program_stats

logger = logging.getLogger(__name__)


class ConferenceMixin:
    """Mixin that resolves the conference from the ``conference_slug`` URL kwarg.

    Stores the conference on ``self.conference`` and adds it to the template
    context.  Returns a 404 if no conference matches the slug.
    """

    conference: Conference
    kwargs: dict[str, str]

    def get_conference(self) -> Conference:
        """Look up the conference by slug from the URL.

        Raises:
            Http404: If no conference matches the slug.
        """
        return get_object_or_404(Conference, slug=self.kwargs["conference_slug"])

    def get_context_data(self, **kwargs: object) -> dict[str, object]:
        """Add the conference to the template context."""
        context: dict[str, object] = super().get_context_data(**kwargs)  # type: ignore[misc]
        context["conference"] = self.conference
        return context

    def dispatch(self, request: HttpRequest, *args: str, **kwargs: str) -> HttpResponse:
        """Resolve the conference before dispatching."""
        self.conference = self.get_conference()
        return super().dispatch(request, *args, **kwargs)  # type: ignore[misc]


class ProgramEditorMixin(LoginRequiredMixin):
    """Permission mixin for views that change the program.

    Resolves the conference from the ``conference_slug`` URL kwarg and
    checks that the authenticated user is a superuser or holds
    ``permission_required``.

    Raises:
        PermissionDenied: If the user lacks the required permission.
    """

    permission_required = ""
    conference: Conference
    kwargs: dict[str, str]

    def dispatch(self, request: HttpRequest, *args: str, **kwargs: str) -> HttpResponse:
        """Resolve the conference and enforce permissions before dispatch."""
        if not request.user.is_authenticated:
            return self.handle_no_permission()  # type: ignore[return-value]

        self.conference = get_object_or_404(Conference, slug=kwargs.get("conference_slug", ""))

        if not (request.user.is_superuser or request.user.has_perm(self.permission_required)):
            raise PermissionDenied

        return super().dispatch(request, *args, **kwargs)  # type: ignore[misc]


def select_day(conference: Conference, day_param: str | None) -> ConferenceDay | None:
    """Return the day named by a ``?day=`` value, or the first day when it is empty.

    Raises:
        Http404: If *day_param* does not name a day of *conference*.
    """
    days = conference.days.all()
    if not day_param:
        return days.first()
    try:
        return days.get(pk=int(day_param))
    except (ValueError, ConferenceDay.DoesNotExist):
        raise Http404("No such day for this conference") from None


def load_day_grid(day: ConferenceDay) -> ProgramGrid:
    """Read everything the grid of *day* needs and assemble it.

    Slots are provisioned first if the day has none yet.
    """
    slots = ensure_slots(day)
    day_halls = DayHall.objects.filter(day=day).select_related("hall")
    sessions = (
        Session.objects.filter(day=day)
        .select_related("hall", "time_slot")
        .prefetch_related("participants__person")
        .order_by("updated_at", "pk")
    )
    return build_grid(day, day_halls, slots, sessions)


def _session_payload(session: Session) -> dict[str, object]:
    return {
        "id": session.pk,
        "title": session.title,
        "session_type": session.session_type,
        "type_label": session.type_label,
        "topic": session.topic,
        "hall_id": session.hall_id,
        "time_slot_id": session.time_slot_id,
        "is_parallel_meal": session.is_parallel_meal,
        "parallel_meal_type": session.parallel_meal_type,
        "roles": resolve_roles(session).as_dict(),
    }


def grid_rows(grid: ProgramGrid) -> list[dict[str, object]]:
    """Flatten *grid* into template- and JSON-friendly rows.

    Break rows carry ``break`` and ``span``; other rows carry one entry per
    hall column, ``None`` for an empty cell.
    """
    rows = []
    for row in grid.rows:
        slot = row.slot
        entry: dict[str, object] = {
            "slot_id": slot.pk,
            "start": slot.start_time.strftime("%H:%M"),
            "end": slot.end_time.strftime("%H:%M"),
            "label": format_time(slot.start_time),
            "range": format_time_range(slot.start_time, slot.end_time),
            "duration": calculate_duration(slot.start_time, slot.end_time),
        }
        if row.is_break:
            entry["break"] = row.break_block.title
            entry["span"] = row.break_block.span
        else:
            entry["cells"] = [None if cell is None else _session_payload(cell) for cell in row.cells]
        rows.append(entry)
    return rows


class ProgramGridView(ConferenceMixin, FeatureRequiredMixin, TemplateView):
    """Day tabs plus the time-slot x hall grid of the selected day.

    The day is chosen with the ``?day=<id>`` query parameter and defaults to
    the conference's first day.
    """

    required_feature = "public_program"
    template_name = "django_agenda/program/grid.html"

    def get_live_url(self, day: ConferenceDay) -> str | None:
        """Return the live stream URL for *day*, or ``None`` when the realtime URLs are not mounted."""
        try:
            url = reverse("realtime:grid-stream", kwargs={"conference_slug": self.conference.slug})
        except NoReverseMatch:
            return None
        return f"{url}?day={day.pk}"

    def get_context_data(self, **kwargs: object) -> dict[str, object]:
        """Add ``days``, ``day``, ``halls``, ``rows`` and ``live_url`` to the context."""
        context = super().get_context_data(**kwargs)
        day = select_day(self.conference, self.request.GET.get("day"))
        context["days"] = list(self.conference.days.all())
        context["day"] = day
        context["halls"] = []
        context["rows"] = []
        if day is not None:
            grid = load_day_grid(day)
            context["halls"] = list(grid.halls)
            context["rows"] = grid_rows(grid)
            context["live_url"] = self.get_live_url(day)
        return context


class ProgramGridJSONView(ConferenceMixin, FeatureRequiredMixin, View):
    """JSON rendering of a day's grid."""

    required_feature = "public_program"

    def get(self, request: HttpRequest, **kwargs: str) -> JsonResponse:  # noqa: ARG002
        """Return ``{"day", "halls", "rows"}`` for the selected day."""
        day = select_day(self.conference, request.GET.get("day"))
        if day is None:
            return JsonResponse({"conference": self.conference.slug, "day": None, "halls": [], "rows": []})

        grid = load_day_grid(day)
        return JsonResponse(
            {
                "conference": self.conference.slug,
                "day": {"id": day.pk, "name": day.name, "date": day.date.isoformat()},
                "halls": [{"id": hall.pk, "name": hall.name} for hall in grid.halls],
                "rows": grid_rows(grid),
            }
        )


class ProgramStatsView(ConferenceMixin, FeatureRequiredMixin, View):
    """JSON totals for the conference program."""

    required_feature = "public_program"

    def get(self, request: HttpRequest, **kwargs: str) -> JsonResponse:  # noqa: ARG002
        return JsonResponse(get_program_stats(self.conference))


class SessionFormMixin(ProgramEditorMixin, FeatureRequiredMixin):
    """Shared rendering and saving for the session create and edit views."""

    required_feature = "manage_ui"
    template_name = "django_agenda/program/session_form.html"
    session: Session | None = None

    def render_form(self, form: SessionForm) -> HttpResponse:
        return render(
            self.request,
            self.template_name,
            {"conference": self.conference, "form": form, "session": self.session},
        )

    def save_form(self, form: SessionForm) -> HttpResponse:
        """Save a valid form, mapping service errors back onto the form."""
        try:
            session = save_session(self.conference, form.submission(), session=self.session)
        except ValidationError as exc:
            form.add_error(None, exc)
            return self.render_form(form)

        verb = "updated" if self.session is not None else "created"
        messages.success(self.request, f"Session '{session.title}' {verb}.")
        url = reverse("program:grid", args=[self.conference.slug])
        return redirect(f"{url}?day={session.day_id}")


class SessionCreateView(SessionFormMixin, View):
    """Create a session."""

    permission_required = "agenda_program.add_session"

    def get(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        """Render an empty form, pre-filling placement from the query string."""
        initial = {key: request.GET[key] for key in ("day_id", "hall_id", "time_slot_id") if key in request.GET}
        return self.render_form(SessionForm(initial=initial, conference=self.conference))

    def post(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        """Validate and save the new session."""
        form = SessionForm(request.POST, conference=self.conference)
        if not form.is_valid():
            return self.render_form(form)
        return self.save_form(form)


class SessionUpdateView(SessionFormMixin, View):
    """Edit an existing session."""

    permission_required = "agenda_program.change_session"

    def get_session(self) -> Session:
        return get_object_or_404(
            Session.objects.prefetch_related("participants"),
            pk=self.kwargs["pk"],
            conference=self.conference,
        )

    def get(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        """Render the form filled in from the session."""
        self.session = self.get_session()
        initial = SessionForm.initial_for(self.session)
        return self.render_form(SessionForm(initial=initial, conference=self.conference))

    def post(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        """Validate and save the changes."""
        self.session = self.get_session()
        form = SessionForm(request.POST, conference=self.conference)
        if not form.is_valid():
            return self.render_form(form)
        return self.save_form(form)


class SessionDeleteView(ProgramEditorMixin, FeatureRequiredMixin, View):
    """Confirm and delete a session."""

    permission_required = "agenda_program.delete_session"
    required_feature = "manage_ui"
    template_name = "django_agenda/program/session_confirm_delete.html"

    def get_session(self) -> Session:
        return get_object_or_404(Session, pk=self.kwargs["pk"], conference=self.conference)

    def get(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        return render(request, self.template_name, {"conference": self.conference, "session": self.get_session()})

    def post(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        """Delete the session and return to its day."""
        session = self.get_session()
        day_id, title = session.day_id, session.title
        delete_session(session)
        messages.success(request, f"Session '{title}' deleted.")
        url = reverse("program:grid", args=[self.conference.slug])
        return redirect(f"{url}?day={day_id}")


class HallDeleteView(ProgramEditorMixin, FeatureRequiredMixin, View):
    """Delete a hall once the user types its name.

    Sessions in the hall are moved to another hall rather than deleted.
    """

    permission_required = "agenda_conference.delete_hall"
    required_feature = "manage_ui"
    template_name = "django_agenda/program/hall_confirm_delete.html"

    def get_hall(self) -> Hall:
        return get_object_or_404(Hall, pk=self.kwargs["pk"], conference=self.conference)

    def render_form(self, hall: Hall, form: HallDeleteForm) -> HttpResponse:
        return render(
            self.request,
            self.template_name,
            {
                "conference": self.conference,
                "hall": hall,
                "form": form,
                "session_count": Session.objects.filter(hall=hall).count(),
            },
        )

    def get(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        hall = self.get_hall()
        return self.render_form(hall, HallDeleteForm(hall=hall))

    def post(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        """Move the hall's sessions and delete it.

        Returns:
            A redirect to the grid on success, or the confirmation page with
            errors when the name does not match or the move would collide.
        """
        hall = self.get_hall()
        form = HallDeleteForm(request.POST, hall=hall)
        if not form.is_valid():
            return self.render_form(hall, form)

        try:
            moved = delete_hall(hall, target=form.cleaned_data.get("target"))
        except ValidationError as exc:
            form.add_error(None, exc.messages)
            return self.render_form(hall, form)

        messages.success(request, f"Hall '{form.cleaned_data['confirm_name']}' deleted; {moved} sessions moved.")
        return redirect(reverse("program:grid", args=[self.conference.slug]))


class TimeSlotUpdateView(ProgramEditorMixin, FeatureRequiredMixin, View):
    """Change a slot's times or turn it into a break that spans every hall."""

    permission_required = "agenda_program.change_daytimeslot"
    required_feature = "manage_ui"
    template_name = "django_agenda/program/timeslot_form.html"

    def get_slot(self) -> DayTimeSlot:
        return get_object_or_404(
            DayTimeSlot.objects.select_related("day"), pk=self.kwargs["pk"], day__conference=self.conference
        )

    def render_form(self, slot: DayTimeSlot, form: TimeSlotForm) -> HttpResponse:
        return render(self.request, self.template_name, {"conference": self.conference, "slot": slot, "form": form})

    def get(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        slot = self.get_slot()
        initial = {
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            "is_break": slot.is_break,
            "break_title": slot.break_title,
        }
        return self.render_form(slot, TimeSlotForm(initial=initial))

    def post(self, request: HttpRequest, **kwargs: str) -> HttpResponse:  # noqa: ARG002
        slot = self.get_slot()
        form = TimeSlotForm(request.POST)
        if not form.is_valid():
            return self.render_form(slot, form)

        try:
            update_time_slot(slot, **form.cleaned_data)
        except ValidationError as exc:
            form.add_error(None, exc.messages)
            return self.render_form(slot, form)

        logger.info("Updated time slot %s of day %s", slot.pk, slot.day_id)
        messages.success(request, f"Time slot {slot} updated.")
        url = reverse("program:grid", args=[self.conference.slug])
        return redirect(f"{url}?day={slot.day_id}")
