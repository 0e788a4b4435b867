import asyncio
from collections import Counter, defaultdict

import pytest
from django.db import DatabaseError

from django_agenda.realtime.events import EntityKind, StreamDisconnected

_END = object()


class FakeStream:
    """Queue-backed change stream driven by the test."""

    def __init__(self, kind):
        self.kind = kind
        self.closed = False
        self._queue = asyncio.Queue()

    def emit(self, event):
        self._queue.put_nowait(event)

    def fail(self, exc=None):
        self._queue.put_nowait(exc or StreamDisconnected("connection reset"))

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item

    async def close(self):
        self.closed = True
        self._queue.put_nowait(_END)


class FakeSource:
    """Change source whose subscribe calls can be refused, held, or left hanging.

    ``errors`` maps a kind to an exception raised on every subscribe;
    ``gates`` maps a kind to an event the subscribe call waits on.
    """

    def __init__(self):
        self.streams = defaultdict(list)
        self.calls = []
        self.refusals = Counter()
        self.refuse_forever = set()
        self.hang = set()
        self.errors = {}
        self.gates = {}

    async def subscribe(self, kind):
        self.calls.append(kind)
        await asyncio.sleep(0)
        if kind in self.hang:
            await asyncio.Event().wait()
        if kind in self.gates:
            await self.gates[kind].wait()
        if kind in self.errors:
            raise self.errors[kind]
        if kind in self.refuse_forever or self.refusals[kind] > 0:
            self.refusals[kind] -= 1
            raise StreamDisconnected(f"{kind} subscription refused")
        stream = FakeStream(kind)
        self.streams[kind].append(stream)
        return stream

    def latest(self, kind):
        return self.streams[EntityKind(kind)][-1]


class FakeRepository:
    """In-memory program collections; methods named in ``failing`` raise."""

    def __init__(self, *, days=(), halls=(), day_halls=(), slots=(), sessions=()):
        self.days = list(days)
        self.halls = list(halls)
        self.day_halls = list(day_halls)
        self.slots = list(slots)
        self.sessions = list(sessions)
        self.failing = set()
        self.reads = Counter()

    def _read(self, name, value):
        self.reads[name] += 1
        if name in self.failing:
            raise DatabaseError(f"{name} is unavailable")
        return list(value)

    def list_days(self):
        return self._read("list_days", self.days)

    def list_halls(self):
        return self._read("list_halls", self.halls)

    def list_day_halls(self):
        return self._read("list_day_halls", self.day_halls)

    def list_slots(self, day_id):
        return self._read("list_slots", [slot for slot in self.slots if slot.day_id == day_id])

    def list_sessions(self, day_id):
        return self._read("list_sessions", [session for session in self.sessions if session.day_id == day_id])


async def _settle(service=None, rounds=10):
    for _ in range(rounds):
        await asyncio.sleep(0)
    if service is not None:
        await service.wait_for_reloads()


async def _wait_until(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def source():
    return FakeSource()


@pytest.fixture
def settle():
    """Let reader tasks drain their queues, then wait for reload callbacks."""
    return _settle


@pytest.fixture
def wait_until():
    """Poll a predicate on the running loop until it holds."""
    return _wait_until


@pytest.fixture
def make_repository():
    return FakeRepository
