"""Tests for the self-refreshing day grid."""

import asyncio
import datetime
from types import SimpleNamespace

import pytest

from django_agenda.conference.models import Conference, ConferenceDay, DayHall, Hall
from django_agenda.program.models import Session
from django_agenda.realtime.events import ChangeEvent, EntityKind, EventType
from django_agenda.realtime.live import LiveProgramGrid, OrmProgramRepository
from django_agenda.realtime.status import ConnectionStatus

DAY_1 = SimpleNamespace(id=1, name="Day 1")
HALL_A = SimpleNamespace(id=10, name="Hall A")
HALL_B = SimpleNamespace(id=11, name="Hall B")
NINE_AM = SimpleNamespace(id=100, day_id=1, slot_order=3, is_break=False, break_title="")
LUNCH = SimpleNamespace(id=101, day_id=1, slot_order=11, is_break=True, break_title="Lunch")


def _keynote():
    return SimpleNamespace(id=500, day_id=1, time_slot_id=NINE_AM.id, hall_id=HALL_A.id, title="Keynote")


@pytest.fixture
def repository(make_repository):
    return make_repository(
        days=[DAY_1],
        halls=[HALL_A, HALL_B],
        day_halls=[
            SimpleNamespace(day_id=1, hall=HALL_A, order=0),
            SimpleNamespace(day_id=1, hall=HALL_B, order=1),
        ],
        slots=[NINE_AM, LUNCH],
        sessions=[_keynote()],
    )


class TestLiveProgramGrid:
    def test_start_loads_everything_and_subscribes(self, repository, source):
        async def scenario():
            live = LiveProgramGrid(1, repository, source, auto_reconnect=False)
            status = await live.start()
            grid = live.grid
            await live.close()
            return status, grid

        status, grid = asyncio.run(scenario())
        assert status is ConnectionStatus.CONNECTED
        assert grid.halls == (HALL_A, HALL_B)
        assert grid.cell(NINE_AM.id, HALL_A.id).title == "Keynote"
        assert grid.cell(LUNCH.id, HALL_B.id).title == "Lunch"

    def test_remote_delete_empties_the_cell(self, repository, source, settle):
        updates = []

        async def scenario():
            live = LiveProgramGrid(1, repository, source, auto_reconnect=False)
            live.add_listener(lambda current: updates.append(len(current.sessions)))
            await live.start()

            repository.sessions = []
            source.latest(EntityKind.SESSIONS).emit(
                ChangeEvent(EntityKind.SESSIONS, EventType.DELETE, old={"id": 500, "title": "Keynote"})
            )
            await settle(live.service)

            cell = live.grid.cell(NINE_AM.id, HALL_A.id)
            entry = live.service.get_optimistic("sessions", 500)
            await live.close()
            return cell, entry

        cell, entry = asyncio.run(scenario())
        assert cell is None
        assert entry.deleted
        assert updates[-1] == 0
        assert repository.reads["list_sessions"] == 2

    def test_hall_event_reloads_halls_and_order(self, repository, source, settle):
        async def scenario():
            live = LiveProgramGrid(1, repository, source, auto_reconnect=False)
            await live.start()

            repository.day_halls = [
                SimpleNamespace(day_id=1, hall=HALL_B, order=0),
                SimpleNamespace(day_id=1, hall=HALL_A, order=1),
            ]
            source.latest(EntityKind.HALLS).emit(
                ChangeEvent(EntityKind.HALLS, EventType.UPDATE, new={"id": HALL_B.id, "name": "Hall B"})
            )
            await settle(live.service)
            halls = live.grid.halls
            await live.close()
            return halls

        assert asyncio.run(scenario()) == (HALL_B, HALL_A)
        assert repository.reads["list_day_halls"] == 2
        assert repository.reads["list_sessions"] == 1

    def test_failed_read_leaves_collection_empty(self, repository, source):
        repository.failing.add("list_sessions")

        async def scenario():
            live = LiveProgramGrid(1, repository, source, auto_reconnect=False)
            status = await live.start()
            snapshot = dict(live.errors), list(live.sessions), list(live.halls), live.grid.sessions

            repository.failing.clear()
            await live.refresh()
            recovered = dict(live.errors), len(live.sessions)
            await live.close()
            return status, snapshot, recovered

        status, (errors, sessions, halls, placed), (errors_after, sessions_after) = asyncio.run(scenario())
        assert status is ConnectionStatus.CONNECTED
        assert "list_sessions is unavailable" in str(errors[EntityKind.SESSIONS])
        assert sessions == []
        assert placed == []
        assert halls == [HALL_A, HALL_B]
        assert errors_after == {}
        assert sessions_after == 1

    def test_reads_after_close_are_discarded(self, repository, source):
        updates = []

        async def scenario():
            live = LiveProgramGrid(1, repository, source, auto_reconnect=False)
            live.add_listener(updates.append)
            await live.start()
            await live.close()
            await live.close()

            repository.sessions = []
            await live.reload(EntityKind.SESSIONS)
            return live

        live = asyncio.run(scenario())
        assert live.disposed
        assert len(live.sessions) == 1
        assert live.status is ConnectionStatus.DISCONNECTED
        assert len(updates) == len(EntityKind)

    def test_missing_day_has_no_grid(self, repository, source):
        async def scenario():
            live = LiveProgramGrid(2, repository, source, auto_reconnect=False)
            await live.refresh()
            return live.day, live.grid

        assert asyncio.run(scenario()) == (None, None)


@pytest.mark.django_db
class TestOrmProgramRepository:
    @pytest.fixture
    def day(self):
        conference = Conference.objects.create(
            name="MedCon 2027",
            slug="medcon-2027",
            start_date=datetime.date(2027, 3, 1),
            end_date=datetime.date(2027, 3, 2),
        )
        return ConferenceDay.objects.create(conference=conference, name="Day 1", date=datetime.date(2027, 3, 1))

    def test_reads_one_conference(self, day):
        hall = Hall.objects.create(conference=day.conference, name="Hall A")
        DayHall.objects.create(day=day, hall=hall, order=0)
        other = Conference.objects.create(
            name="Other",
            slug="other",
            start_date=datetime.date(2027, 1, 1),
            end_date=datetime.date(2027, 1, 1),
        )
        Hall.objects.create(conference=other, name="Elsewhere")

        repository = OrmProgramRepository(day.conference_id)

        assert repository.list_days() == [day]
        assert repository.list_halls() == [hall]
        assert [membership.hall for membership in repository.list_day_halls()] == [hall]

    def test_slots_are_provisioned_and_sessions_ordered(self, day):
        hall_a = Hall.objects.create(conference=day.conference, name="Hall A")
        hall_b = Hall.objects.create(conference=day.conference, name="Hall B")
        repository = OrmProgramRepository(day.conference_id)

        slots = repository.list_slots(day.pk)
        assert len(slots) == 25
        assert repository.list_slots(day.pk) == slots

        first = Session.objects.create(
            conference=day.conference, title="First", session_type="other", day=day, hall=hall_a, time_slot=slots[0]
        )
        second = Session.objects.create(
            conference=day.conference, title="Second", session_type="other", day=day, hall=hall_b, time_slot=slots[0]
        )
        first.title = "First (edited)"
        first.save()

        assert [session.title for session in repository.list_sessions(day.pk)] == ["Second", "First (edited)"]
        assert second.pk != first.pk
