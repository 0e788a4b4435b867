"""In-process change feed driven by Django model signals.

:class:`SignalChangeFeed` is the :class:`~django_agenda.realtime.events.ChangeSource`
for a Django process: the receivers in :mod:`django_agenda.realtime.signals`
publish a :class:`ChangeEvent` after every committed save or delete of a
watched model, and the feed fans each event out to every open stream of
that kind.  Publishing is thread-safe; each stream delivers on the event
loop that opened it.
"""

import asyncio
import functools
import logging
import threading
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any

from django.db import models

from django_agenda.realtime.events import ChangeEvent, EntityKind, StreamDisconnected

logger = logging.getLogger(__name__)

_CLOSED = object()


def serialize_instance(instance: models.Model) -> dict[str, Any]:
    """Return a row image of *instance* keyed by column attribute names.

    Foreign keys appear as ``<name>_id`` (e.g. ``hall_id``) so consumers can
    use the same attribute names as on the model.
    """
    data = {field.attname: field.value_from_object(instance) for field in instance._meta.concrete_fields}
    data["id"] = instance.pk
    return data


class QueueChangeStream:
    """A stream of events for one entity kind, backed by an ``asyncio.Queue``."""

    def __init__(self, feed: "SignalChangeFeed", kind: EntityKind, loop: asyncio.AbstractEventLoop) -> None:
        self.feed = feed
        self.kind = kind
        self.loop = loop
        self.closed = False
        self._queue: asyncio.Queue[object] = asyncio.Queue()

    def push(self, item: object) -> None:
        """Enqueue an event, a failure, or the close marker (loop thread only)."""
        if not self.closed or item is _CLOSED:
            self._queue.put_nowait(item)

    def __aiter__(self) -> AsyncIterator[ChangeEvent]:
        return self

    async def __anext__(self) -> ChangeEvent:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item  # type: ignore[return-value]

    async def close(self) -> None:
        """Detach from the feed and end iteration.  Safe to call twice."""
        if self.closed:
            return
        self.closed = True
        self.feed.detach(self)
        self.push(_CLOSED)


class SignalChangeFeed:
    """Fan-out hub from Django model signals to open change streams."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._streams: dict[EntityKind, set[QueueChangeStream]] = defaultdict(set)

    async def subscribe(self, kind: EntityKind) -> QueueChangeStream:
        """Open a stream for *kind* on the running event loop."""
        stream = QueueChangeStream(self, EntityKind(kind), asyncio.get_running_loop())
        with self._lock:
            self._streams[stream.kind].add(stream)
        logger.debug("Opened %s change stream", stream.kind)
        return stream

    def detach(self, stream: QueueChangeStream) -> None:
        """Stop delivering events to *stream*."""
        with self._lock:
            self._streams[stream.kind].discard(stream)

    def stream_count(self, kind: EntityKind | None = None) -> int:
        """Return the number of open streams, optionally for one kind."""
        with self._lock:
            if kind is not None:
                return len(self._streams[EntityKind(kind)])
            return sum(len(streams) for streams in self._streams.values())

    def _deliver(self, stream: QueueChangeStream, item: object) -> None:
        try:
            stream.loop.call_soon_threadsafe(stream.push, item)
        except RuntimeError:
            logger.debug("Dropping %s stream whose event loop is closed", stream.kind)
            self.detach(stream)

    def publish(self, event: ChangeEvent) -> int:
        """Deliver *event* to every open stream of its kind.

        Returns:
            The number of streams the event was handed to.
        """
        with self._lock:
            targets = list(self._streams[event.kind])
        for stream in targets:
            self._deliver(stream, event)
        logger.debug("Published %s %s %s to %d streams", event.kind, event.event_type, event.entity_id, len(targets))
        return len(targets)

    def disconnect_all(self, reason: str = "change feed disconnected") -> None:
        """Fail every open stream with :class:`StreamDisconnected`."""
        with self._lock:
            targets = [stream for streams in self._streams.values() for stream in streams]
            self._streams.clear()
        for stream in targets:
            self._deliver(stream, StreamDisconnected(reason))


@functools.lru_cache(maxsize=1)
def get_change_feed() -> SignalChangeFeed:
    """Return the process-wide feed the model signal receivers publish to."""
    return SignalChangeFeed()
