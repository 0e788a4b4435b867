"""Realtime synchronization of program collections over change streams.

:class:`RealtimeSyncService` is an explicit handle with a controlled
lifetime: create one per consuming view, ``subscribe_to_all`` when the view
mounts and ``unsubscribe_from_all`` (or leave the ``async with`` block) when
it goes away.  Nothing here is a module-level singleton, so independent
instances can run side by side.

For every event the service records an optimistic cache entry, restarts
that entry's eviction timer, and schedules the reload callback registered
for the event's kind.  Stream failures never propagate to the consumer:
they move the stream's status to ``disconnected`` and, when enabled,
start a bounded reconnect.
"""

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping

from django_agenda.realtime.cache import OptimisticCache, OptimisticEntry
from django_agenda.realtime.events import ChangeEvent, ChangeSource, ChangeStream, EntityKind, StreamDisconnected
from django_agenda.realtime.status import ConnectionStatus, StatusListener, StatusTracker
from django_agenda.settings import get_config

logger = logging.getLogger(__name__)

ReloadHandler = Callable[[ChangeEvent], Awaitable[object] | object]


class RealtimeSyncService:
    """Subscribes to every watched entity kind and fans out change events.

    Args:
        source: Where change streams come from.
        grace_period: Seconds an optimistic entry survives after its latest
            event.  Defaults to ``optimistic_grace_seconds``.
        max_reconnect_attempts: Reconnect budget for the service lifetime.
        reconnect_delay: Fixed delay before each reconnect attempt.
        subscribe_timeout: How long to wait for a subscribe acknowledgment.
        auto_reconnect: Start :meth:`reconnect` when a stream fails.
        kinds: Entity kinds to watch.  Defaults to all of them.
    """

    def __init__(
        self,
        source: ChangeSource,
        *,
        grace_period: float | None = None,
        max_reconnect_attempts: int | None = None,
        reconnect_delay: float | None = None,
        subscribe_timeout: float | None = None,
        auto_reconnect: bool = True,
        kinds: Iterable[EntityKind] = tuple(EntityKind),
    ) -> None:
        config = get_config().realtime
        self.source = source
        self.kinds = tuple(EntityKind(kind) for kind in kinds)
        self.max_reconnect_attempts = (
            config.max_reconnect_attempts if max_reconnect_attempts is None else max_reconnect_attempts
        )
        self.reconnect_delay = config.reconnect_delay_seconds if reconnect_delay is None else reconnect_delay
        self.subscribe_timeout = config.subscribe_timeout_seconds if subscribe_timeout is None else subscribe_timeout
        self.auto_reconnect = auto_reconnect

        self.cache = OptimisticCache(config.optimistic_grace_seconds if grace_period is None else grace_period)
        self.tracker = StatusTracker()

        self._handlers: dict[EntityKind, ReloadHandler] = {}
        self._streams: dict[EntityKind, ChangeStream] = {}
        self._readers: dict[EntityKind, asyncio.Task[None]] = {}
        self._reloads: set[asyncio.Task[None]] = set()
        self._reconnect_lock = asyncio.Lock()
        self._reconnect_task: asyncio.Task[bool] | None = None
        self._reconnect_attempts = 0
        self._active = False

    async def __aenter__(self) -> "RealtimeSyncService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unsubscribe_from_all()

    @property
    def status(self) -> ConnectionStatus:
        """Return the worst status across all subscriptions."""
        return self.tracker.status

    @property
    def reconnect_attempts(self) -> int:
        """Return how many reconnect attempts have been spent."""
        return self._reconnect_attempts

    @property
    def pending_reloads(self) -> int:
        """Return the number of reload callbacks still running."""
        return len(self._reloads)

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Call *listener* on every aggregate status transition.

        Returns:
            A function that unregisters the listener.
        """
        return self.tracker.add_listener(listener)

    def get_optimistic(self, kind: EntityKind | str, entity_id: object) -> OptimisticEntry | None:
        """Return the optimistic entry for a row, if one is still cached."""
        return self.cache.get(kind, entity_id)

    async def subscribe_to_all(self, handlers: Mapping[EntityKind | str, ReloadHandler] | None = None) -> ConnectionStatus:
        """Open one change stream per watched kind.

        Args:
            handlers: Reload callback per entity kind.  Callbacks may be
                plain functions or coroutines; kinds without a callback are
                still watched and cached.

        Returns:
            The aggregate status once every subscribe attempt has settled.
        """
        self._handlers = {EntityKind(kind): handler for kind, handler in (handlers or {}).items()}
        self._active = True
        logger.info("Setting up realtime subscriptions for %s", ", ".join(self.kinds))
        await asyncio.gather(*(self._open(kind) for kind in self.kinds))
        return self.status

    async def unsubscribe_from_all(self) -> None:
        """Close every open stream and clear the optimistic cache.

        Safe to call when nothing is subscribed.  Reload callbacks already
        running are left to finish.
        """
        self._active = False
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._reconnect_task
        self._reconnect_task = None
        for kind in list(self._streams):
            await self._close_stream(kind)
        self.tracker.clear()
        self.cache.clear()

    async def reconnect(self) -> bool:
        """Re-open every stream that is not connected.

        Makes at most ``max_reconnect_attempts`` attempts over the lifetime
        of the service, waiting ``reconnect_delay`` seconds before each.

        Returns:
            ``True`` once every stream is connected (the budget is then
            restored), ``False`` when the budget is exhausted or the
            service is unsubscribed while waiting.  After exhaustion every
            call returns ``False`` immediately.
        """
        async with self._reconnect_lock:
            while self.status is not ConnectionStatus.CONNECTED:
                if not self._active:
                    logger.info("Reconnect abandoned: realtime subscriptions were closed")
                    return False
                if self._reconnect_attempts >= self.max_reconnect_attempts:
                    logger.error("Max reconnection attempts (%d) reached", self.max_reconnect_attempts)
                    return False
                self._reconnect_attempts += 1
                logger.info(
                    "Attempting to reconnect (%d/%d)",
                    self._reconnect_attempts,
                    self.max_reconnect_attempts,
                )
                await asyncio.sleep(self.reconnect_delay)
                if not self._active:
                    continue
                stale = [kind for kind in self.kinds if self.tracker.status_of(kind) is not ConnectionStatus.CONNECTED]
                await asyncio.gather(*(self._open(kind) for kind in stale))
            self._reconnect_attempts = 0
            return True

    async def _open(self, kind: EntityKind) -> bool:
        await self._close_stream(kind)
        self.tracker.set(kind, ConnectionStatus.CONNECTING)
        try:
            stream = await asyncio.wait_for(self.source.subscribe(kind), timeout=self.subscribe_timeout)
        except (StreamDisconnected, TimeoutError, OSError) as exc:
            logger.warning("Could not subscribe to %s changes: %s", kind, exc or type(exc).__name__)
            self._mark_failed(kind)
            return False
        except Exception:
            logger.exception("Unexpected error subscribing to %s changes", kind)
            self._mark_failed(kind)
            return False

        if not self._active:
            # Unsubscribed while the acknowledgment was in flight.
            self.tracker.remove(kind)
            await self._close_quietly(kind, stream)
            return False

        self._streams[kind] = stream
        self._readers[kind] = asyncio.create_task(self._read(kind, stream), name=f"agenda-realtime-{kind}")
        self.tracker.set(kind, ConnectionStatus.CONNECTED)
        logger.debug("Subscribed to %s changes", kind)
        return True

    def _mark_failed(self, kind: EntityKind) -> None:
        if self._active:
            self.tracker.set(kind, ConnectionStatus.DISCONNECTED)
        else:
            self.tracker.remove(kind)

    async def _close_stream(self, kind: EntityKind) -> None:
        stream = self._streams.pop(kind, None)
        reader = self._readers.pop(kind, None)
        if reader is not None and not reader.done():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
        if stream is not None:
            await self._close_quietly(kind, stream)

    async def _close_quietly(self, kind: EntityKind, stream: ChangeStream) -> None:
        try:
            await stream.close()
        except (StreamDisconnected, OSError) as exc:
            logger.warning("Error closing %s change stream: %s", kind, exc)

    async def _read(self, kind: EntityKind, stream: ChangeStream) -> None:
        try:
            async for event in stream:
                self._dispatch(event)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.warning("%s change stream failed: %s", kind, exc or type(exc).__name__)
        else:
            logger.warning("%s change stream ended unexpectedly", kind)

        if self._streams.get(kind) is stream:
            self._streams.pop(kind, None)
            self._readers.pop(kind, None)
            self.tracker.set(kind, ConnectionStatus.DISCONNECTED)
            self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if not (self.auto_reconnect and self._active):
            return
        if self._reconnect_task is not None and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(self.reconnect(), name="agenda-realtime-reconnect")

    def _dispatch(self, event: ChangeEvent) -> None:
        self.cache.put(event)
        handler = self._handlers.get(event.kind)
        if handler is None:
            return
        task = asyncio.create_task(self._run_handler(handler, event))
        self._reloads.add(task)
        task.add_done_callback(self._reloads.discard)

    async def _run_handler(self, handler: ReloadHandler, event: ChangeEvent) -> None:
        try:
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Reload callback for %s %s failed", event.kind, event.event_type)

    async def wait_for_reloads(self) -> None:
        """Wait until every scheduled reload callback has finished."""
        while self._reloads:
            await asyncio.gather(*list(self._reloads), return_exceptions=True)
