"""Time-slot provisioning for conference days.

:func:`ensure_slots` guarantees every day has an ordered slot sequence,
generating the configured default layout the first time a day is shown.
Generation is safe under concurrent callers: the ``(day, slot_order)``
unique constraint makes the loser's insert fail, and the loser re-reads
the winner's slots instead.
"""

import datetime
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from django_agenda.conference.models import ConferenceDay
from django_agenda.program.models import DayTimeSlot
from django_agenda.settings import SlotConfig, get_config

logger = logging.getLogger(__name__)


class ProvisionRaceLost(RuntimeError):
    """Another caller provisioned the same day first."""


def default_slot_times(config: SlotConfig | None = None) -> list[tuple[datetime.time, datetime.time]]:
    """Return ``(start, end)`` pairs for the default layout of a day.

    With the default configuration this is 25 half-hour slots covering
    08:00 to 20:30, the last one running 20:00-20:30.  A trailing
    remainder shorter than ``slot_minutes`` is not emitted.
    """
    config = config or get_config().slots
    step = datetime.timedelta(minutes=config.slot_minutes)
    anchor = datetime.date(2000, 1, 1)
    current = datetime.datetime.combine(anchor, config.start_time)
    day_end = datetime.datetime.combine(anchor, config.end_time)

    times: list[tuple[datetime.time, datetime.time]] = []
    while current + step <= day_end:
        end = current + step
        times.append((current.time(), end.time()))
        current = end
    return times


def _ordered_slots(day_id: int) -> list[DayTimeSlot]:
    return list(DayTimeSlot.objects.filter(day_id=day_id).order_by("slot_order"))


def _insert_default_slots(day_id: int) -> None:
    """Insert the default layout for a day.

    Raises:
        ProvisionRaceLost: If a concurrent caller already inserted slots.
    """
    slots = [
        DayTimeSlot(day_id=day_id, start_time=start, end_time=end, slot_order=order, is_break=False)
        for order, (start, end) in enumerate(default_slot_times(), start=1)
    ]
    try:
        with transaction.atomic():
            DayTimeSlot.objects.bulk_create(slots)
    except IntegrityError as exc:
        raise ProvisionRaceLost(f"Slots for day {day_id} were provisioned concurrently") from exc
    logger.info("Provisioned %d default time slots for day %s", len(slots), day_id)


def ensure_slots(day: ConferenceDay | int) -> list[DayTimeSlot]:
    """Return the day's slots ordered by ``slot_order``, creating defaults if none exist.

    A second call for the same day performs no writes.

    Args:
        day: The conference day, or its primary key.

    Returns:
        The day's slots in ascending ``slot_order``.
    """
    day_id = day.pk if isinstance(day, ConferenceDay) else int(day)
    slots = _ordered_slots(day_id)
    if slots:
        return slots

    try:
        _insert_default_slots(day_id)
    except ProvisionRaceLost:
        logger.warning("Lost slot provisioning race for day %s; re-reading", day_id)
    return _ordered_slots(day_id)


def update_time_slot(
    slot: DayTimeSlot,
    *,
    start_time: datetime.time,
    end_time: datetime.time,
    is_break: bool,
    break_title: str = "",
) -> DayTimeSlot:
    """Edit a slot's times and break status.

    Raises:
        ValidationError: If ``end_time`` is not after ``start_time``.
    """
    if end_time <= start_time:
        raise ValidationError({"end_time": "End time must be after start time."})
    slot.start_time = start_time
    slot.end_time = end_time
    slot.is_break = is_break
    slot.break_title = break_title.strip() if is_break else ""
    slot.save(update_fields=["start_time", "end_time", "is_break", "break_title"])
    return slot
