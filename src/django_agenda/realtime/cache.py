"""Short-lived optimistic cache of changes seen on the change streams.

Entries live for a fixed grace period after the most recent event for
their key; a newer event for the same ``(kind, id)`` overwrites the entry
and restarts its eviction timer.  The authoritative reload that follows
every event supersedes the cached row.
"""

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from django_agenda.realtime.events import ChangeEvent, EntityKind, EventType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class OptimisticEntry:
    """A change assumed applied, pending authoritative confirmation."""

    kind: EntityKind
    entity_id: str
    data: Mapping[str, Any] = field(default_factory=dict)
    deleted: bool = False
    optimistic: bool = True
    received_at: float = field(default_factory=time.monotonic)


class OptimisticCache:
    """Per-``(kind, id)`` entries with timer-based eviction.

    Must be used from a single event loop; timers are scheduled on the
    running loop at the time of :meth:`put`.
    """

    def __init__(self, grace_period: float) -> None:
        self.grace_period = grace_period
        self._entries: dict[tuple[EntityKind, str], OptimisticEntry] = {}
        self._timers: dict[tuple[EntityKind, str], asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def put(self, event: ChangeEvent) -> OptimisticEntry | None:
        """Record *event* and (re)start its eviction timer.

        Events without an id are ignored.

        Returns:
            The stored entry, or ``None`` when nothing was stored.
        """
        entity_id = event.entity_id
        if entity_id is None:
            logger.debug("Ignoring %s event without an id", event.kind)
            return None

        key = (event.kind, entity_id)
        entry = OptimisticEntry(
            kind=event.kind,
            entity_id=entity_id,
            data=dict(event.row),
            deleted=event.event_type is EventType.DELETE,
        )
        self._entries[key] = entry

        previous = self._timers.pop(key, None)
        if previous is not None:
            previous.cancel()
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(self.grace_period, self._evict, key)
        return entry

    def get(self, kind: EntityKind | str, entity_id: object) -> OptimisticEntry | None:
        """Return the live entry for ``(kind, entity_id)``, if any."""
        return self._entries.get((EntityKind(kind), str(entity_id)))

    def _evict(self, key: tuple[EntityKind, str]) -> None:
        self._timers.pop(key, None)
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry and cancel every pending eviction."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        self._entries.clear()
