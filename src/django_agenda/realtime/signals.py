"""Model signal receivers that publish program changes to the change feed."""

import functools

from django.db import transaction
from django.db.models.signals import post_delete, post_save

from django_agenda.conference.models import ConferenceDay, DayHall, Hall
from django_agenda.program.models import DayTimeSlot, Session
from django_agenda.realtime.events import ChangeEvent, EntityKind, EventType
from django_agenda.realtime.feed import get_change_feed, serialize_instance

WATCHED_MODELS: dict[type, EntityKind] = {
    Session: EntityKind.SESSIONS,
    Hall: EntityKind.HALLS,
    ConferenceDay: EntityKind.DAYS,
    DayTimeSlot: EntityKind.TIME_SLOTS,
}


def _publish_on_commit(event: ChangeEvent) -> None:
    transaction.on_commit(functools.partial(get_change_feed().publish, event))


def publish_save(sender: type, instance: object, created: bool, raw: bool = False, **kwargs: object) -> None:  # noqa: ARG001, FBT001, FBT002
    """Publish an INSERT or UPDATE once the surrounding transaction commits.

    Fixture loading (``raw=True``) is not published.
    """
    if raw:
        return
    event_type = EventType.INSERT if created else EventType.UPDATE
    _publish_on_commit(ChangeEvent(WATCHED_MODELS[sender], event_type, new=serialize_instance(instance)))


def publish_delete(sender: type, instance: object, **kwargs: object) -> None:  # noqa: ARG001
    """Publish a DELETE carrying the row as it was before deletion."""
    _publish_on_commit(ChangeEvent(WATCHED_MODELS[sender], EventType.DELETE, old=serialize_instance(instance)))


def publish_day_hall(sender: type, instance: DayHall, raw: bool = False, **kwargs: object) -> None:  # noqa: ARG001, FBT001, FBT002
    """Publish a change to a day's hall list or column order as an UPDATE of the hall.

    Grids reload halls and day-hall order together, so membership rows
    ride on the halls stream under the hall's own id.
    """
    if raw:
        return
    hall = Hall.objects.filter(pk=instance.hall_id).first()
    if hall is None:
        return
    _publish_on_commit(ChangeEvent(EntityKind.HALLS, EventType.UPDATE, new=serialize_instance(hall)))


for _model, _kind in WATCHED_MODELS.items():
    post_save.connect(publish_save, sender=_model, dispatch_uid=f"agenda_realtime.publish_save.{_kind}")
    post_delete.connect(publish_delete, sender=_model, dispatch_uid=f"agenda_realtime.publish_delete.{_kind}")

post_save.connect(publish_day_hall, sender=DayHall, dispatch_uid="agenda_realtime.publish_day_hall.save")
post_delete.connect(publish_day_hall, sender=DayHall, dispatch_uid="agenda_realtime.publish_day_hall.delete")
