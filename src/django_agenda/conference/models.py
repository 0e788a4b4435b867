"""Conference, day, hall, and day-hall models for django-agenda."""

from django.db import models


class Conference(models.Model):
    """A conference event with dates and venue.

    The central model that all other apps reference.  Days and halls are
    scoped to a single conference so several events can share one
    installation.
    """

    name = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    start_date = models.DateField()
    end_date = models.DateField()
    timezone = models.CharField(max_length=100, default="UTC")
    venue = models.CharField(max_length=300, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-start_date"]

    def __str__(self) -> str:
        return self.name


class ConferenceDay(models.Model):
    """One calendar day of a conference.

    Days are created by organizers and keep their identity once sessions
    reference them; the grid is always built for exactly one day.
    """

    conference = models.ForeignKey(
        Conference,
        on_delete=models.CASCADE,
        related_name="days",
    )
    name = models.CharField(max_length=100)
    date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "name"]
        unique_together = [("conference", "date")]

    def __str__(self) -> str:
        return self.name


class Hall(models.Model):
    """A physical or virtual venue track that sessions are scheduled into.

    Halls form a per-conference registry.  Which halls are used on a given
    day, and in what left-to-right order, is recorded by :class:`DayHall`.
    """

    conference = models.ForeignKey(
        Conference,
        on_delete=models.CASCADE,
        related_name="halls",
    )
    name = models.CharField(max_length=200)
    capacity = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        unique_together = [("conference", "name")]

    def __str__(self) -> str:
        return self.name


class DayHall(models.Model):
    """Membership of a hall in a day's grid, with its column position."""

    day = models.ForeignKey(
        ConferenceDay,
        on_delete=models.CASCADE,
        related_name="day_halls",
    )
    hall = models.ForeignKey(
        Hall,
        on_delete=models.CASCADE,
        related_name="day_halls",
    )
    order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["day", "order"]
        unique_together = [("day", "hall")]

    def __str__(self) -> str:
        return f"{self.hall} on {self.day} (#{self.order})"
