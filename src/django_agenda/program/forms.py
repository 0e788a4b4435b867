"""Forms for the program app."""

from django import forms
from django.core.exceptions import ValidationError

from django_agenda.conference.models import Conference, Hall
from django_agenda.program.models import DayTimeSlot, Person, Session
from django_agenda.program.session_types import (
    ROLE_FIELDS,
    SESSION_TYPE_CHOICES,
    SESSION_TYPES,
    lookup,
    validate_submission,
)

_SINGLE_PERSON_FIELDS = ("speaker_id", "chairperson_id", "moderator_id", "introducer_id", "discussion_leader_id")
_MULTI_PERSON_FIELDS = ("panelist_ids", "workshop_lead_ids", "assistant_ids", "presenter_ids")


def _optional_int(value: object) -> int | None:
    return None if value in (None, "") else int(value)


class SessionForm(forms.Form):
    """Editor form covering every field any session type can use.

    Which fields are required depends on the selected ``session_type`` and
    is checked against the session-type catalog in :meth:`clean`, so the
    individual fields are all declared optional.  Choices for placement and
    people are limited to the given conference.
    """

    session_type = forms.ChoiceField(choices=SESSION_TYPE_CHOICES)
    title = forms.CharField(max_length=300, required=False)
    topic = forms.CharField(max_length=300, required=False)
    description = forms.CharField(widget=forms.Textarea, required=False)

    day_id = forms.TypedChoiceField(coerce=int, empty_value=None, required=False, label="Day")
    hall_id = forms.TypedChoiceField(coerce=int, empty_value=None, required=False, label="Hall")
    time_slot_id = forms.TypedChoiceField(coerce=int, empty_value=None, required=False, label="Time slot")

    speaker_id = forms.TypedChoiceField(coerce=int, empty_value=None, required=False, label="Speaker")
    chairperson_id = forms.TypedChoiceField(coerce=int, empty_value=None, required=False, label="Chairperson")
    moderator_id = forms.TypedChoiceField(coerce=int, empty_value=None, required=False, label="Moderator")
    introducer_id = forms.TypedChoiceField(coerce=int, empty_value=None, required=False, label="Introducer")
    discussion_leader_id = forms.TypedChoiceField(
        coerce=int, empty_value=None, required=False, label="Discussion leader"
    )
    panelist_ids = forms.TypedMultipleChoiceField(coerce=int, required=False, label="Panelists")
    workshop_lead_ids = forms.TypedMultipleChoiceField(coerce=int, required=False, label="Workshop leads")
    assistant_ids = forms.TypedMultipleChoiceField(coerce=int, required=False, label="Assistants")
    presenter_ids = forms.TypedMultipleChoiceField(coerce=int, required=False, label="Presenters")

    symposium_subtalks = forms.JSONField(
        required=False,
        help_text='A list of sub-talks, e.g. [{"title": "...", "speaker_id": 3}].',
    )
    meal_type = forms.ChoiceField(choices=[("", "---"), *Session.MealType.choices], required=False)
    is_parallel_meal = forms.BooleanField(required=False, label="Runs in parallel with a meal")
    parallel_meal_type = forms.ChoiceField(choices=[("", "---"), *Session.MealType.choices], required=False)
    capacity = forms.IntegerField(min_value=1, required=False)
    custom_data = forms.CharField(widget=forms.Textarea, required=False)

    def __init__(self, *args: object, conference: Conference, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)
        self.conference = conference

        day_choices = [("", "---")] + [(day.pk, str(day)) for day in conference.days.all()]
        hall_choices = [("", "---")] + [(hall.pk, hall.name) for hall in Hall.objects.filter(conference=conference)]
        slot_choices = [("", "---")] + [
            (slot.pk, f"{slot.day.name} {slot}")
            for slot in DayTimeSlot.objects.filter(day__conference=conference).select_related("day")
        ]
        people = [(person.pk, person.name) for person in Person.objects.filter(conference=conference)]

        self.fields["day_id"].choices = day_choices
        self.fields["hall_id"].choices = hall_choices
        self.fields["time_slot_id"].choices = slot_choices
        for name in _SINGLE_PERSON_FIELDS:
            self.fields[name].choices = [("", "---"), *people]
        for name in _MULTI_PERSON_FIELDS:
            self.fields[name].choices = people

    def clean_symposium_subtalks(self) -> list[dict[str, object]]:
        """Require a list of objects, each with a title or a speaker."""
        value = self.cleaned_data.get("symposium_subtalks")
        if value in (None, ""):
            return []
        if not isinstance(value, list) or not all(isinstance(item, dict) for item in value):
            raise ValidationError("Enter a list of sub-talk objects.")
        for item in value:
            if "speaker_id" in item:
                try:
                    item["speaker_id"] = _optional_int(item["speaker_id"])
                except (TypeError, ValueError):
                    raise ValidationError("Sub-talk speaker ids must be numbers.") from None
        return value

    def clean(self) -> dict[str, object]:
        """Apply the selected session type's required fields."""
        cleaned_data = super().clean()
        session_type = cleaned_data.get("session_type")
        if session_type not in SESSION_TYPES:
            return cleaned_data
        try:
            validate_submission(session_type, cleaned_data)
        except ValidationError as exc:
            for field, errors in exc.error_dict.items():
                self.add_error(field if field in self.fields else None, errors)
        return cleaned_data

    def submission(self) -> dict[str, object]:
        """Return the cleaned values that belong to the selected session type.

        Values entered for fields the type does not use are dropped, so
        switching type in the editor never leaves stale participants or
        extra data behind.
        """
        session_type = self.cleaned_data["session_type"]
        config = lookup(session_type)
        data: dict[str, object] = {"session_type": session_type}
        for name in config.fields:
            data[name] = self.cleaned_data.get(name)
        if "is_parallel_meal" in config.fields and data.get("is_parallel_meal"):
            data["parallel_meal_type"] = self.cleaned_data.get("parallel_meal_type") or ""
        return data

    @classmethod
    def initial_for(cls, session: Session) -> dict[str, object]:
        """Build initial form values from a saved session."""
        initial: dict[str, object] = {
            "session_type": session.session_type,
            "title": session.title,
            "topic": session.topic,
            "description": session.description,
            "day_id": session.day_id,
            "hall_id": session.hall_id,
            "time_slot_id": session.time_slot_id,
            "is_parallel_meal": session.is_parallel_meal,
            "parallel_meal_type": session.parallel_meal_type,
        }
        initial.update(session.extra_data or {})

        field_for_role = {role: name for name, role in ROLE_FIELDS.items()}
        for participant in session.participants.all():
            name = field_for_role.get(participant.role)
            if name is None or participant.person_id is None:
                continue
            if name.endswith("_ids"):
                initial.setdefault(name, []).append(participant.person_id)
            else:
                initial.setdefault(name, participant.person_id)
        return initial


class HallDeleteForm(forms.Form):
    """Confirmation form for deleting a hall.

    The user must type the hall's name; sessions in the hall are moved to
    ``target`` (or the first other hall when left blank).
    """

    confirm_name = forms.CharField(label="Type the hall name to confirm")
    target = forms.ModelChoiceField(queryset=Hall.objects.none(), required=False, label="Move sessions to")

    def __init__(self, *args: object, hall: Hall, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)
        self.hall = hall
        self.fields["target"].queryset = Hall.objects.filter(conference_id=hall.conference_id).exclude(pk=hall.pk)

    def clean_confirm_name(self) -> str:
        """Require the exact hall name."""
        value = self.cleaned_data["confirm_name"].strip()
        if value != self.hall.name:
            raise ValidationError("The name does not match this hall.")
        return value


class TimeSlotForm(forms.Form):
    """Edit a slot's times and whether it is a break across all halls."""

    start_time = forms.TimeField(widget=forms.TimeInput(attrs={"type": "time"}, format="%H:%M"))
    end_time = forms.TimeField(widget=forms.TimeInput(attrs={"type": "time"}, format="%H:%M"))
    is_break = forms.BooleanField(required=False, label="Break for every hall")
    break_title = forms.CharField(max_length=200, required=False)

    def clean(self) -> dict[str, object]:
        cleaned = super().clean()
        start, end = cleaned.get("start_time"), cleaned.get("end_time")
        if start is not None and end is not None and end <= start:
            self.add_error("end_time", "End time must be after start time.")
        return cleaned
