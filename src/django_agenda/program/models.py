"""Person, time slot, session, and participant models for the program grid."""

from django.core.exceptions import ValidationError
from django.db import models
from encrypted_fields import EncryptedCharField

from django_agenda.program.session_types import SESSION_TYPE_CHOICES, SESSION_TYPES


class Person(models.Model):
    """Someone who appears in the program (speaker, moderator, chair, ...).

    People are independent of sessions and are linked to them through
    :class:`SessionParticipant`.  The e-mail address is stored encrypted.
    """

    conference = models.ForeignKey(
        "agenda_conference.Conference",
        on_delete=models.CASCADE,
        related_name="people",
    )
    name = models.CharField(max_length=300)
    email = EncryptedCharField(max_length=254, blank=True, null=True, default=None)
    title = models.CharField(max_length=200, blank=True, default="")
    organization = models.CharField(max_length=300, blank=True, default="")
    bio = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "people"

    def __str__(self) -> str:
        return self.name


class DayTimeSlot(models.Model):
    """A fixed, ordered time interval within a conference day.

    Break slots (``is_break``) are not per-hall: the grid renders them as a
    single block spanning every hall column.
    """

    day = models.ForeignKey(
        "agenda_conference.ConferenceDay",
        on_delete=models.CASCADE,
        related_name="time_slots",
    )
    start_time = models.TimeField()
    end_time = models.TimeField()
    slot_order = models.PositiveIntegerField()
    is_break = models.BooleanField(default=False)
    break_title = models.CharField(max_length=200, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["day", "slot_order"]
        constraints = [
            models.UniqueConstraint(
                fields=["day", "slot_order"],
                name="uniq_day_time_slot_order",
            ),
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="day_time_slot_end_after_start",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"


class Session(models.Model):
    """A program item placed into one ``(day, hall, time slot)`` cell.

    At most one session may occupy a cell; the write service rejects
    collisions and the unique constraint backs that up.  A session whose
    hall or slot has been deleted keeps existing but no longer renders.
    """

    class MealType(models.TextChoices):
        """Meal served in parallel with, or as, a session."""

        BREAKFAST = "breakfast", "Breakfast"
        LUNCH = "lunch", "Lunch"
        DINNER = "dinner", "Dinner"
        COFFEE_BREAK = "coffee_break", "Coffee Break"

    conference = models.ForeignKey(
        "agenda_conference.Conference",
        on_delete=models.CASCADE,
        related_name="sessions",
    )
    title = models.CharField(max_length=500)
    session_type = models.CharField(max_length=50, choices=SESSION_TYPE_CHOICES)
    day = models.ForeignKey(
        "agenda_conference.ConferenceDay",
        on_delete=models.CASCADE,
        related_name="sessions",
    )
    hall = models.ForeignKey(
        "agenda_conference.Hall",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sessions",
    )
    time_slot = models.ForeignKey(
        DayTimeSlot,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sessions",
    )
    topic = models.CharField(max_length=500, blank=True, default="")
    description = models.TextField(blank=True, default="")
    is_parallel_meal = models.BooleanField(default=False)
    parallel_meal_type = models.CharField(max_length=20, choices=MealType.choices, blank=True, default="")
    extra_data = models.JSONField(blank=True, default=dict)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["day", "time_slot__slot_order", "hall__name"]
        constraints = [
            models.UniqueConstraint(
                fields=["day", "hall", "time_slot"],
                name="uniq_session_day_hall_time_slot",
            ),
        ]

    def __str__(self) -> str:
        return self.title

    @property
    def type_label(self) -> str:
        """Return the display name of the session type."""
        config = SESSION_TYPES.get(self.session_type)
        return config.display_name if config else self.session_type


class SessionParticipant(models.Model):
    """A person taking part in a session in a given role.

    ``person`` is nulled when the person is deleted so the participant
    still counts (and renders as a placeholder) in the role buckets.
    """

    class Role(models.TextChoices):
        """Every participant role used by the session-type catalog."""

        SPEAKER = "speaker", "Speaker"
        MODERATOR = "moderator", "Moderator"
        PANELIST = "panelist", "Panelist"
        CHAIRPERSON = "chairperson", "Chairperson"
        WORKSHOP_LEAD = "workshop_lead", "Workshop Lead"
        ASSISTANT = "assistant", "Assistant"
        PRESENTER = "presenter", "Presenter"
        INTRODUCER = "introducer", "Introducer"
        ORATOR = "orator", "Orator"
        DISCUSSION_LEADER = "discussion_leader", "Discussion Leader"

    session = models.ForeignKey(
        Session,
        on_delete=models.CASCADE,
        related_name="participants",
    )
    person = models.ForeignKey(
        Person,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="participations",
    )
    role = models.CharField(max_length=30, choices=Role.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["session", "role", "id"]

    def __str__(self) -> str:
        name = self.person.name if self.person else "(removed)"
        return f"{name} as {self.get_role_display()}"

    def clean(self) -> None:
        """Reject roles the session's type does not permit."""
        super().clean()
        config = SESSION_TYPES.get(self.session.session_type) if self.session_id else None
        if config is not None and self.role not in config.allowed_roles:
            raise ValidationError(
                {"role": f"Role {self.role!r} is not allowed for {config.display_name} sessions."},
            )
