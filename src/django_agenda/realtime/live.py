"""A self-refreshing program grid for one conference day.

:class:`LiveProgramGrid` keeps local copies of the collections the grid is
built from and re-reads a collection whenever a change event for it
arrives.  The grid itself is never patched; :attr:`LiveProgramGrid.grid`
rebuilds it from the current snapshot on every access.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from asgiref.sync import sync_to_async
from django.db import DatabaseError

from django_agenda.conference.models import ConferenceDay, DayHall, Hall
from django_agenda.program.grid import ProgramGrid, build_grid
from django_agenda.program.models import Session
from django_agenda.program.slots import ensure_slots
from django_agenda.realtime.events import ChangeEvent, ChangeSource, EntityKind
from django_agenda.realtime.service import RealtimeSyncService
from django_agenda.realtime.status import ConnectionStatus

logger = logging.getLogger(__name__)


class ProgramRepository(Protocol):
    """Blocking reads of the collections a day's grid depends on."""

    def list_days(self) -> list[Any]: ...

    def list_halls(self) -> list[Any]: ...

    def list_day_halls(self) -> list[Any]: ...

    def list_slots(self, day_id: int) -> list[Any]: ...

    def list_sessions(self, day_id: int) -> list[Any]: ...


class OrmProgramRepository:
    """Reads one conference's program through the Django ORM."""

    def __init__(self, conference_id: int) -> None:
        self.conference_id = conference_id

    def list_days(self) -> list[ConferenceDay]:
        return list(ConferenceDay.objects.filter(conference_id=self.conference_id).order_by("date"))

    def list_halls(self) -> list[Hall]:
        return list(Hall.objects.filter(conference_id=self.conference_id).order_by("name"))

    def list_day_halls(self) -> list[DayHall]:
        return list(DayHall.objects.filter(day__conference_id=self.conference_id).select_related("hall"))

    def list_slots(self, day_id: int) -> list[Any]:
        return ensure_slots(day_id)

    def list_sessions(self, day_id: int) -> list[Session]:
        # Ascending updated_at so the most recent write wins a duplicate cell.
        return list(
            Session.objects.filter(day_id=day_id)
            .select_related("hall", "time_slot")
            .prefetch_related("participants__person")
            .order_by("updated_at", "pk")
        )


class LiveProgramGrid:
    """View-model that keeps a day's grid current while it is open.

    Args:
        day_id: The conference day to show.
        repository: Where collections are read from.
        source: Change source handed to the sync service.
        service: An existing service to use instead of creating one.
        **service_options: Forwarded to :class:`RealtimeSyncService`.

    A failed read records the error under :attr:`errors` and leaves that
    collection empty; the other collections and the subscriptions are
    unaffected.  Reads that finish after :meth:`close` are discarded.
    """

    def __init__(
        self,
        day_id: int,
        repository: ProgramRepository,
        source: ChangeSource,
        *,
        service: RealtimeSyncService | None = None,
        **service_options: Any,
    ) -> None:
        self.day_id = day_id
        self.repository = repository
        self.service = service or RealtimeSyncService(source, **service_options)
        self.days: list[Any] = []
        self.halls: list[Any] = []
        self.day_halls: list[Any] = []
        self.slots: list[Any] = []
        self.sessions: list[Any] = []
        self.errors: dict[EntityKind, Exception] = {}
        self.disposed = False
        self._listeners: list[Callable[["LiveProgramGrid"], None]] = []

    @property
    def status(self) -> ConnectionStatus:
        return self.service.status

    @property
    def day(self) -> Any | None:
        """Return the shown day, or ``None`` if it no longer exists."""
        return next((day for day in self.days if str(day.id) == str(self.day_id)), None)

    @property
    def grid(self) -> ProgramGrid | None:
        """Return a grid built from the current snapshot."""
        day = self.day
        if day is None:
            return None
        return build_grid(day, self.day_halls, self.slots, self.sessions)

    def add_listener(self, listener: Callable[["LiveProgramGrid"], None]) -> None:
        """Call *listener* after every applied reload."""
        self._listeners.append(listener)

    async def start(self) -> ConnectionStatus:
        """Load every collection, then subscribe to changes.

        Returns:
            The connection status after subscribing.
        """
        await self.refresh()
        handlers = dict.fromkeys(EntityKind, self._on_change)
        return await self.service.subscribe_to_all(handlers)

    async def refresh(self) -> None:
        """Re-read every collection."""
        await asyncio.gather(*(self.reload(kind) for kind in EntityKind))

    async def close(self) -> None:
        """Stop listening.  Safe to call more than once."""
        self.disposed = True
        self._listeners.clear()
        await self.service.unsubscribe_from_all()

    async def _on_change(self, event: ChangeEvent) -> None:
        await self.reload(event.kind)

    def _read(self, kind: EntityKind) -> dict[str, list[Any]]:
        if kind is EntityKind.DAYS:
            return {"days": self.repository.list_days()}
        if kind is EntityKind.HALLS:
            return {"halls": self.repository.list_halls(), "day_halls": self.repository.list_day_halls()}
        if kind is EntityKind.TIME_SLOTS:
            return {"slots": self.repository.list_slots(self.day_id)}
        return {"sessions": self.repository.list_sessions(self.day_id)}

    async def reload(self, kind: EntityKind | str) -> None:
        """Re-read the collection(s) backing *kind* and apply the result."""
        kind = EntityKind(kind)
        attributes = {
            EntityKind.DAYS: ("days",),
            EntityKind.HALLS: ("halls", "day_halls"),
            EntityKind.TIME_SLOTS: ("slots",),
            EntityKind.SESSIONS: ("sessions",),
        }[kind]
        try:
            result = await sync_to_async(self._read)(kind)
        except DatabaseError as exc:
            if self.disposed:
                return
            logger.warning("Failed to load %s for day %s: %s", kind, self.day_id, exc)
            self.errors[kind] = exc
            result = dict.fromkeys(attributes, [])
        else:
            if self.disposed:
                logger.debug("Discarding %s reload for closed grid of day %s", kind, self.day_id)
                return
            self.errors.pop(kind, None)

        for attribute in attributes:
            setattr(self, attribute, list(result[attribute]))
        for listener in list(self._listeners):
            listener(self)
