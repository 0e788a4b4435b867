"""Utility functions for the program app."""

import datetime

from django.db.models import Count

from django_agenda.conference.models import Conference, ConferenceDay, Hall
from django_agenda.program.models import Person, Session
from django_agenda.program.session_types import SESSION_TYPES


def _as_time(value: datetime.time | str) -> datetime.time:
    if isinstance(value, datetime.time):
        return value
    hours, minutes = (int(part) for part in str(value).split(":")[:2])
    return datetime.time(hours, minutes)


def format_time(value: datetime.time | str) -> str:
    """Format a time as ``1:05pm``.

    Args:
        value: A :class:`datetime.time` or an ``"HH:MM[:SS]"`` string.

    Returns:
        The 12-hour clock rendering with a lowercase ``am``/``pm`` suffix.
    """
    time = _as_time(value)
    period = "pm" if time.hour >= 12 else "am"  # noqa: PLR2004
    hours = time.hour % 12 or 12
    return f"{hours}:{time.minute:02d}{period}"


def format_time_range(start: datetime.time | str, end: datetime.time | str) -> str:
    """Format a start and end time as ``9:00am–10:30am``."""
    return f"{format_time(start)}–{format_time(end)}"


def calculate_duration(start: datetime.time | str, end: datetime.time | str) -> str:
    """Return a compact duration such as ``1h 30m``, ``45m`` or ``2h``.

    An end time earlier than the start is taken to be on the next day.
    """
    start_time, end_time = _as_time(start), _as_time(end)
    start_minutes = start_time.hour * 60 + start_time.minute
    end_minutes = end_time.hour * 60 + end_time.minute
    if end_minutes < start_minutes:
        end_minutes += 24 * 60

    hours, minutes = divmod(end_minutes - start_minutes, 60)
    if hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{hours}h"
    return f"{hours}h {minutes}m"


def get_program_stats(conference: Conference) -> dict[str, object]:
    """Count the program's sessions, people, days and halls.

    Args:
        conference: The conference to summarize.

    Returns:
        A dict with ``total_sessions``, ``total_people``, ``total_days``,
        ``total_halls`` and ``sessions_by_type``.  Every catalog tag appears
        in ``sessions_by_type``, with zero when unused.
    """
    by_type = dict.fromkeys(SESSION_TYPES, 0)
    rows = Session.objects.filter(conference=conference).values("session_type").annotate(count=Count("pk"))
    for row in rows:
        by_type[row["session_type"]] = row["count"]

    return {
        "total_sessions": sum(by_type.values()),
        "total_people": Person.objects.filter(conference=conference).count(),
        "total_days": ConferenceDay.objects.filter(conference=conference).count(),
        "total_halls": Hall.objects.filter(conference=conference).count(),
        "sessions_by_type": by_type,
    }
