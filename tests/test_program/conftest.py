"""Shared program fixtures: one conference day with two halls and default slots."""

import datetime

import pytest

from django_agenda.conference.models import Conference, ConferenceDay, DayHall, Hall
from django_agenda.program.models import Person
from django_agenda.program.slots import ensure_slots


@pytest.fixture
def conference(db):
    return Conference.objects.create(
        name="MedCon 2027",
        slug="medcon-2027",
        start_date=datetime.date(2027, 3, 1),
        end_date=datetime.date(2027, 3, 2),
    )


@pytest.fixture
def day(conference):
    return ConferenceDay.objects.create(conference=conference, name="Day 1", date=datetime.date(2027, 3, 1))


@pytest.fixture
def hall_a(conference):
    return Hall.objects.create(conference=conference, name="Hall A", capacity=400)


@pytest.fixture
def hall_b(conference):
    return Hall.objects.create(conference=conference, name="Hall B")


@pytest.fixture
def day_halls(day, hall_a, hall_b):
    return [
        DayHall.objects.create(day=day, hall=hall_a, order=0),
        DayHall.objects.create(day=day, hall=hall_b, order=1),
    ]


@pytest.fixture
def slots(day):
    return ensure_slots(day)


@pytest.fixture
def alice(conference):
    return Person.objects.create(conference=conference, name="Dr. Alice Rao", email="alice@example.com")


@pytest.fixture
def bob(conference):
    return Person.objects.create(conference=conference, name="Dr. Bob Iyer")


@pytest.fixture
def carol(conference):
    return Person.objects.create(conference=conference, name="Dr. Carol Das")


@pytest.fixture
def placement(day, hall_a, slots, day_halls):
    """Submission keys for Hall A at 09:00 on Day 1."""
    return {"day_id": day.pk, "hall_id": hall_a.pk, "time_slot_id": slots[2].pk}
