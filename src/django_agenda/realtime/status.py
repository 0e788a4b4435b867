"""Connection-status state machine with push notification of transitions."""

import enum
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class ConnectionStatus(enum.StrEnum):
    """Health of a change-stream subscription, worst first."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


_RANK = {ConnectionStatus.DISCONNECTED: 0, ConnectionStatus.CONNECTING: 1, ConnectionStatus.CONNECTED: 2}

StatusListener = Callable[[ConnectionStatus], None]


class StatusTracker:
    """Tracks one status per subscription and reports the worst of them.

    With no subscriptions the aggregate is ``disconnected``.  Listeners are
    called exactly when the aggregate changes, never on a no-op update.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, ConnectionStatus] = {}
        self._listeners: list[StatusListener] = []
        self._aggregate = ConnectionStatus.DISCONNECTED

    @property
    def status(self) -> ConnectionStatus:
        """Return the aggregate (worst-case) status."""
        return self._aggregate

    def status_of(self, name: str) -> ConnectionStatus:
        """Return the status of one subscription (``disconnected`` if unknown)."""
        return self._statuses.get(name, ConnectionStatus.DISCONNECTED)

    def subscriptions(self) -> dict[str, ConnectionStatus]:
        """Return a copy of the per-subscription statuses."""
        return dict(self._statuses)

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def set(self, name: str, status: ConnectionStatus) -> None:
        """Record the status of subscription *name*."""
        if self._statuses.get(name) is not status:
            logger.debug("Subscription %s is %s", name, status)
        self._statuses[name] = status
        self._recompute()

    def remove(self, name: str) -> None:
        """Forget subscription *name*."""
        self._statuses.pop(name, None)
        self._recompute()

    def clear(self) -> None:
        """Forget every subscription."""
        self._statuses.clear()
        self._recompute()

    def _recompute(self) -> None:
        if self._statuses:
            aggregate = min(self._statuses.values(), key=_RANK.__getitem__)
        else:
            aggregate = ConnectionStatus.DISCONNECTED
        if aggregate is self._aggregate:
            return
        previous, self._aggregate = self._aggregate, aggregate
        logger.info("Connection status changed: %s -> %s", previous, aggregate)
        for listener in list(self._listeners):
            try:
                listener(aggregate)
            except Exception:
                logger.exception("Connection status listener %r failed", listener)
