"""Write operations for sessions and halls.

Every mutation of the grid goes through this module so the placement
invariant (one session per ``(day, hall, time slot)``) is checked before
anything is written.
"""

import logging
from collections.abc import Mapping
from typing import Any

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Max

from django_agenda.conference.models import Conference, ConferenceDay, DayHall, Hall
from django_agenda.program.models import DayTimeSlot, Person, Session, SessionParticipant
from django_agenda.program.session_types import ROLE_FIELDS, is_empty, iter_participants, lookup, validate_submission

logger = logging.getLogger(__name__)

# Submission keys copied onto Session columns; everything else not consumed
# by placement or participants lands in ``extra_data``.
_SESSION_COLUMNS = ("title", "topic", "description", "is_parallel_meal", "parallel_meal_type")
_CONSUMED_KEYS = frozenset({*_SESSION_COLUMNS, *ROLE_FIELDS, "day_id", "hall_id", "time_slot_id", "session_type"})


class PlacementConflictError(ValidationError):
    """Two sessions would occupy the same ``(day, hall, time slot)`` cell."""

    def __init__(self, message: str, *, conflicting: list[Session] | None = None) -> None:
        super().__init__(message, code="placement_conflict")
        self.conflicting = conflicting or []


def _get_in_conference(model: type, pk: object, scope: Conference, field: str, **lookups: Any) -> Any:
    try:
        return model.objects.get(pk=pk, **lookups)
    except (model.DoesNotExist, ValueError, TypeError):
        raise ValidationError({field: f"Unknown {model._meta.verbose_name} for {scope}."}) from None


def _resolve_placement(conference: Conference, data: Mapping[str, object]) -> tuple[ConferenceDay, Hall, DayTimeSlot]:
    day = _get_in_conference(ConferenceDay, data["day_id"], conference, "day_id", conference=conference)
    hall = _get_in_conference(Hall, data["hall_id"], conference, "hall_id", conference=conference)
    time_slot = _get_in_conference(DayTimeSlot, data["time_slot_id"], conference, "time_slot_id", day=day)
    return day, hall, time_slot


def check_placement(day: ConferenceDay, hall: Hall, time_slot: DayTimeSlot, *, exclude: Session | None = None) -> None:
    """Raise if the cell is already taken by another session.

    Must be called inside ``transaction.atomic``; the occupying row is
    locked with ``select_for_update`` where the backend supports it.

    Raises:
        PlacementConflictError: If another session holds the cell.
    """
    occupants = Session.objects.select_for_update().filter(day=day, hall=hall, time_slot=time_slot)
    if exclude is not None and exclude.pk is not None:
        occupants = occupants.exclude(pk=exclude.pk)
    existing = list(occupants)
    if existing:
        msg = f"'{existing[0].title}' already occupies {hall} at {time_slot} on {day}."
        raise PlacementConflictError(msg, conflicting=existing)


def _extra_data(data: Mapping[str, object]) -> dict[str, object]:
    return {key: value for key, value in data.items() if key not in _CONSUMED_KEYS and not is_empty(value)}


def _replace_participants(session: Session, data: Mapping[str, object]) -> list[SessionParticipant]:
    pairs = list(iter_participants(session.session_type, data))
    person_ids = {str(person_id) for _, person_id in pairs}
    people = {
        str(person.pk): person
        for person in Person.objects.filter(conference=session.conference, pk__in=person_ids)
    }
    missing = sorted(person_ids - people.keys())
    if missing:
        raise ValidationError(f"Unknown people: {', '.join(missing)}")

    session.participants.all().delete()
    return SessionParticipant.objects.bulk_create(
        [SessionParticipant(session=session, person=people[str(person_id)], role=role) for role, person_id in pairs],
    )


def save_session(
    conference: Conference,
    data: Mapping[str, object],
    *,
    session: Session | None = None,
) -> Session:
    """Create or update a session from a form submission.

    Args:
        conference: The conference the session belongs to.
        data: Submitted values keyed by form field name, including
            ``session_type`` and the placement ids.
        session: The session to update, or ``None`` to create one.

    Returns:
        The saved session with its participants replaced.

    Raises:
        UnknownTypeError: If ``session_type`` is not in the catalog.
        ValidationError: If a required field is empty or an id does not
            resolve inside the conference.
        PlacementConflictError: If another session already holds the cell.
    """
    session_type = str(data.get("session_type") or "")
    lookup(session_type)
    cleaned = validate_submission(session_type, data)

    with transaction.atomic():
        day, hall, time_slot = _resolve_placement(conference, cleaned)
        check_placement(day, hall, time_slot, exclude=session)

        if session is None:
            session = Session(conference=conference)
        session.session_type = session_type
        session.day = day
        session.hall = hall
        session.time_slot = time_slot
        for column in _SESSION_COLUMNS:
            value = cleaned.get(column)
            if column == "is_parallel_meal":
                setattr(session, column, bool(value))
            else:
                setattr(session, column, "" if value is None else str(value))
        session.extra_data = _extra_data(cleaned)

        try:
            with transaction.atomic():
                session.save()
        except IntegrityError as exc:
            msg = f"Another session already occupies {hall} at {time_slot} on {day}."
            raise PlacementConflictError(msg) from exc

        _replace_participants(session, cleaned)

    logger.info("Saved %s session %s (%s)", session_type, session.pk, session.title)
    return session


def delete_session(session: Session) -> None:
    """Delete a session and its participants."""
    pk = session.pk
    session.delete()
    logger.info("Deleted session %s", pk)


def _add_target_to_days(hall: Hall, target: Hall, day_ids: set[int]) -> None:
    """Put *target* on every day in *day_ids* that does not list it yet.

    The target takes over the removed hall's column where the removed hall
    had one, otherwise it is appended after the day's last column.
    """
    listed = set(DayHall.objects.filter(hall=target, day_id__in=day_ids).values_list("day_id", flat=True))
    for day_id in sorted(day_ids - listed):
        replaced = DayHall.objects.filter(day_id=day_id, hall=hall).first()
        if replaced is not None:
            order = replaced.order
        else:
            last = DayHall.objects.filter(day_id=day_id).aggregate(last=Max("order"))["last"]
            order = 0 if last is None else last + 1
        DayHall.objects.create(day_id=day_id, hall=target, order=order)
        logger.info("Added %s to day %s at column %d to keep moved sessions visible", target, day_id, order)


def delete_hall(hall: Hall, *, target: Hall | None = None) -> int:
    """Delete a hall after moving its sessions to a surviving hall.

    Args:
        hall: The hall to delete.
        target: Where to move the sessions.  Defaults to the first other
            hall of the conference by name.  The target is added to the
            hall list of every affected day that does not show it yet.

    Returns:
        The number of sessions moved.

    Raises:
        ValidationError: If sessions would be stranded with no surviving
            hall, or *target* is the hall itself or from another conference.
        PlacementConflictError: If a moved session would collide with one
            already in the target hall.  Nothing is changed in that case.
    """
    with transaction.atomic():
        sessions = list(Session.objects.select_for_update().filter(hall=hall))
        if target is None:
            target = Hall.objects.filter(conference_id=hall.conference_id).exclude(pk=hall.pk).order_by("name").first()
        elif target.pk == hall.pk or target.conference_id != hall.conference_id:
            raise ValidationError({"target": "Choose a different hall of the same conference."})

        if sessions and target is None:
            msg = f"Cannot delete {hall}: {len(sessions)} sessions use it and no other hall exists."
            raise ValidationError(msg)

        if sessions:
            cells = [(s.day_id, s.time_slot_id) for s in sessions if s.time_slot_id is not None]
            collisions = [
                s
                for s in Session.objects.filter(hall=target, time_slot__isnull=False)
                if (s.day_id, s.time_slot_id) in cells
            ]
            if collisions:
                titles = ", ".join(sorted(s.title for s in collisions))
                msg = f"Cannot move sessions from {hall} to {target}; these would collide: {titles}"
                raise PlacementConflictError(msg, conflicting=collisions)
            for session in sessions:
                session.hall = target
                session.save(update_fields=["hall", "updated_at"])
            _add_target_to_days(hall, target, {s.day_id for s in sessions if s.day_id is not None})

        hall.delete()

    logger.info("Deleted hall %s; moved %d sessions to %s", hall.name, len(sessions), target)
    return len(sessions)
