"""Server-Sent Events stream of a day's live program grid.

Each connection runs its own :class:`~django_agenda.realtime.live.LiveProgramGrid`
on the process-wide change feed and pushes two kinds of frames::

    data: {"type": "status", "status": "connected"}
    data: {"type": "grid", "day": {...}, "halls": [...], "rows": [...], "errors": []}

The response body is an async iterator, so the view must be served by an
ASGI server; under WSGI Django would try to buffer the endless stream.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from typing import Any

from asgiref.sync import sync_to_async
from django.core.serializers.json import DjangoJSONEncoder
from django.http import Http404, HttpRequest, StreamingHttpResponse
from django.views import View

from django_agenda.features import FeatureRequiredMixin
from django_agenda.program.views import ConferenceMixin, grid_rows, select_day
from django_agenda.realtime.feed import get_change_feed
from django_agenda.realtime.live import LiveProgramGrid, OrmProgramRepository

logger = logging.getLogger(__name__)

_GRID = "grid"
_STATUS = "status"


def grid_payload(live: LiveProgramGrid) -> dict[str, object]:
    """Serialize the current snapshot of *live* the way ``grid.json`` does."""
    day = live.day
    grid = live.grid
    return {
        "day": None if day is None else {"id": day.pk, "name": day.name, "date": day.date.isoformat()},
        "halls": [] if grid is None else [{"id": hall.pk, "name": hall.name} for hall in grid.halls],
        "rows": [] if grid is None else grid_rows(grid),
        "errors": sorted(str(kind) for kind in live.errors),
    }


def _sse(data: dict[str, object]) -> str:
    return f"data: {json.dumps(data, cls=DjangoJSONEncoder)}\n\n"


async def live_grid_events(
    live: LiveProgramGrid,
    *,
    render: Callable[[LiveProgramGrid], dict[str, Any]] = grid_payload,
    heartbeat: float = 15.0,
) -> AsyncIterator[str]:
    """Yield SSE frames for *live* until the consumer stops iterating.

    The first frames are the status after subscribing and the full grid.
    After that a ``status`` frame follows every aggregate connection
    transition and a ``grid`` frame every applied reload; bursts collapse
    into at most one frame of each type.  A comment line is sent after
    ``heartbeat`` idle seconds so proxies keep the connection open.

    Closing the iterator closes the grid and its subscriptions.
    """
    pending: asyncio.Queue[str] = asyncio.Queue()
    live.add_listener(lambda _live: pending.put_nowait(_GRID))
    remove_status_listener = live.service.add_status_listener(lambda _status: pending.put_nowait(_STATUS))
    try:
        await live.start()
        due = {_STATUS, _GRID}
        while True:
            while not pending.empty():
                due.add(pending.get_nowait())
            if _STATUS in due:
                yield _sse({"type": _STATUS, "status": str(live.status)})
            if _GRID in due:
                payload = await sync_to_async(render)(live)
                yield _sse({"type": _GRID, **payload})
            try:
                due = {await asyncio.wait_for(pending.get(), timeout=heartbeat)}
            except TimeoutError:
                due = set()
                yield ": keep-alive\n\n"
    finally:
        remove_status_listener()
        await live.close()
        logger.debug("Live grid stream for day %s closed", live.day_id)


class LiveGridStreamView(ConferenceMixin, FeatureRequiredMixin, View):
    """Stream a day's grid and connection status via Server-Sent Events.

    The day is chosen with ``?day=<id>`` like the grid page.
    """

    required_feature = "public_program"
    heartbeat_seconds = 15.0

    def get(self, request: HttpRequest, **kwargs: str) -> StreamingHttpResponse:  # noqa: ARG002
        day = select_day(self.conference, request.GET.get("day"))
        if day is None:
            raise Http404("No days have been scheduled yet")

        live = LiveProgramGrid(day.pk, OrmProgramRepository(self.conference.pk), get_change_feed())
        logger.debug("Opening live grid stream for %s day %s", self.conference.slug, day.pk)
        response = StreamingHttpResponse(
            live_grid_events(live, heartbeat=self.heartbeat_seconds),
            content_type="text/event-stream",
        )
        response["Cache-Control"] = "no-cache"
        response["X-Accel-Buffering"] = "no"
        return response
