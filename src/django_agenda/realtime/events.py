"""Change events and the change-stream contract consumed by the sync service.

A *change source* is whatever backs the program data (the Django signal
feed in :mod:`django_agenda.realtime.feed`, or a fake in tests).  It hands
out one :class:`ChangeStream` per watched entity kind; each stream yields
events in arrival order, with no ordering guarantee across streams and
possibly with duplicates.
"""

import enum
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from typing import Any, Protocol


class EntityKind(enum.StrEnum):
    """Collections the grid depends on."""

    SESSIONS = "sessions"
    HALLS = "halls"
    DAYS = "days"
    TIME_SLOTS = "time_slots"


class EventType(enum.StrEnum):
    """Kind of row change carried by a :class:`ChangeEvent`."""

    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class StreamDisconnected(ConnectionError):
    """A change stream failed, timed out, or was refused."""


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """One row change delivered by a change stream.

    ``new`` holds the row after an INSERT or UPDATE, ``old`` the row before
    a DELETE (and, when the source provides it, before an UPDATE).
    """

    kind: EntityKind
    event_type: EventType
    new: Mapping[str, Any] | None = None
    old: Mapping[str, Any] | None = None

    @property
    def entity_id(self) -> str | None:
        """Return the changed row's id as a string, or ``None`` when absent."""
        for row in (self.new, self.old):
            if row and row.get("id") is not None:
                return str(row["id"])
        return None

    @property
    def row(self) -> Mapping[str, Any]:
        """Return the most relevant row image for this event."""
        if self.event_type is EventType.DELETE:
            return self.old or {}
        return self.new or {}

    @classmethod
    def from_payload(cls, kind: EntityKind | str, payload: Mapping[str, Any]) -> "ChangeEvent":
        """Build an event from a store record shaped ``{eventType, new, old}``.

        Raises:
            ValueError: If the kind or event type is not recognized.
        """
        return cls(
            kind=EntityKind(kind),
            event_type=EventType(str(payload.get("eventType", "")).upper()),
            new=payload.get("new") or None,
            old=payload.get("old") or None,
        )


class ChangeStream(Protocol):
    """An open, acknowledged subscription to one entity kind."""

    def __aiter__(self) -> AsyncIterator[ChangeEvent]: ...

    async def close(self) -> None: ...


class ChangeSource(Protocol):
    """Anything that can open change streams."""

    async def subscribe(self, kind: EntityKind) -> ChangeStream:
        """Open a stream for *kind*, returning once the store acknowledges it.

        Raises:
            StreamDisconnected: If the subscription is refused.
        """
        ...
