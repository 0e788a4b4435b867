"""Assembly of a day's time-slot x hall grid.

:func:`build_grid` is a pure function over plain collections: it never
queries the database and never patches a previous grid, so it can be
re-run from a fresh snapshot whenever any collection changes.  Inputs
only need the attributes the models expose (``id``, ``day_id``,
``hall_id``, ``time_slot_id``, ``slot_order``, ``is_break``, ...).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from django_agenda.settings import get_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BreakBlock:
    """A full-width block covering every hall column of a break slot."""

    title: str
    span: int


@dataclass(frozen=True, slots=True)
class GridRow:
    """One time slot of the grid.

    Regular rows carry one cell per hall (a session or ``None`` when the
    cell is empty).  Break rows carry a single :class:`BreakBlock` and no
    per-hall cells.
    """

    slot: Any
    cells: tuple[Any, ...] = ()
    break_block: BreakBlock | None = None

    @property
    def is_break(self) -> bool:
        """Return whether this row is a full-width break."""
        return self.break_block is not None


@dataclass(frozen=True, slots=True)
class ProgramGrid:
    """The render/edit matrix for one conference day."""

    day: Any
    halls: tuple[Any, ...]
    rows: tuple[GridRow, ...]

    def cell(self, slot_id: object, hall_id: object) -> Any:
        """Return the session, break block, or ``None`` at a coordinate.

        Raises:
            KeyError: If the slot or hall is not part of this grid.
        """
        hall_index = next((i for i, hall in enumerate(self.halls) if _same_id(hall.id, hall_id)), None)
        if hall_index is None:
            raise KeyError(hall_id)
        for row in self.rows:
            if _same_id(row.slot.id, slot_id):
                return row.break_block if row.is_break else row.cells[hall_index]
        raise KeyError(slot_id)

    def matrix(self) -> list[list[Any]]:
        """Return the grid as nested lists; break rows hold a single block."""
        return [[row.break_block] if row.is_break else list(row.cells) for row in self.rows]

    @property
    def sessions(self) -> list[Any]:
        """Return every placed session in row-major order."""
        return [cell for row in self.rows for cell in row.cells if cell is not None]


def _same_id(left: object, right: object) -> bool:
    return str(left) == str(right)


def halls_for_day(day: Any, day_halls: Iterable[Any]) -> list[Any]:
    """Return the halls used on *day*, left to right by ``DayHall.order``."""
    memberships = [dh for dh in day_halls if _same_id(dh.day_id, day.id)]
    memberships.sort(key=lambda dh: dh.order)
    return [dh.hall for dh in memberships]


def index_sessions(day: Any, sessions: Iterable[Any]) -> dict[tuple[str, str], Any]:
    """Map ``(time_slot_id, hall_id)`` to the session placed there on *day*.

    Sessions without a slot or hall are skipped.  When two sessions claim the
    same cell the later one in *sessions* wins and a warning is logged.
    """
    index: dict[tuple[str, str], Any] = {}
    for session in sessions:
        if not _same_id(session.day_id, day.id):
            continue
        if session.time_slot_id is None or session.hall_id is None:
            continue
        key = (str(session.time_slot_id), str(session.hall_id))
        previous = index.get(key)
        if previous is not None:
            logger.warning(
                "Sessions %s and %s both occupy slot %s in hall %s; showing %s",
                previous.id,
                session.id,
                session.time_slot_id,
                session.hall_id,
                session.id,
            )
        index[key] = session
    return index


def build_grid(
    day: Any,
    day_halls: Iterable[Any],
    slots: Iterable[Any],
    sessions: Iterable[Any],
    *,
    default_break_title: str | None = None,
) -> ProgramGrid:
    """Build the slot x hall matrix for one day.

    Args:
        day: The conference day being rendered.
        day_halls: ``DayHall`` memberships; only those of *day* are used.
        slots: The day's time slots.
        sessions: Sessions to place; other days' sessions are ignored.
        default_break_title: Title for break slots without one.  Defaults
            to ``DJANGO_AGENDA['default_break_title']``.

    Returns:
        A :class:`ProgramGrid`.  Empty inputs produce an empty grid, and a
        day without halls yields rows with no hall cells.
    """
    if default_break_title is None:
        default_break_title = get_config().default_break_title

    halls = tuple(halls_for_day(day, day_halls))
    ordered_slots = sorted(
        (slot for slot in slots if _same_id(getattr(slot, "day_id", day.id), day.id)),
        key=lambda slot: slot.slot_order,
    )
    placed = index_sessions(day, sessions)

    rows: list[GridRow] = []
    for slot in ordered_slots:
        if slot.is_break:
            title = slot.break_title or default_break_title
            rows.append(GridRow(slot=slot, break_block=BreakBlock(title=title, span=len(halls))))
            continue
        slot_key = str(slot.id)
        cells = tuple(placed.get((slot_key, str(hall.id))) for hall in halls)
        rows.append(GridRow(slot=slot, cells=cells))

    return ProgramGrid(day=day, halls=halls, rows=tuple(rows))
