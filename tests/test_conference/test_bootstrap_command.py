import datetime
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from django_agenda.conference.models import Conference, ConferenceDay, DayHall, Hall
from django_agenda.program.models import DayTimeSlot

BASE = """[conference]
name = "MedCon 2027"
start = 2027-03-01
end = 2027-03-02
timezone = "Asia/Kolkata"

[[conference.halls]]
name = "Hall A"
capacity = 400

[[conference.halls]]
name = "Hall B"
"""

DAYS = """
[[conference.days]]
name = "Day 1"
date = 2027-03-01
halls = ["Hall B", "Hall A"]

[[conference.days]]
name = "Day 2"
date = 2027-03-02
halls = ["Hall A"]

[[conference.days.slots]]
start = "09:00"
end = "10:00"

[[conference.days.slots]]
start = "10:00"
end = "10:30"
break = true
title = "Tea"
"""


def _write_config(path, contents):
    path.write_text(contents)
    return str(path)


def test_bootstrap_wraps_loader_errors_as_command_error(tmp_path):
    config_path = _write_config(tmp_path / "bad.toml", BASE + '\n[[conference.days]]\nname = "Day 1"\n')
    with pytest.raises(CommandError, match=r"conference\.days\[0\] is missing required fields: date"):
        call_command("bootstrap_program", config=config_path)


def test_bootstrap_missing_file(tmp_path):
    with pytest.raises(CommandError, match="not found"):
        call_command("bootstrap_program", config=str(tmp_path / "missing.toml"))


@pytest.mark.django_db
def test_bootstrap_creates_halls_days_and_slots(tmp_path):
    config_path = _write_config(tmp_path / "program.toml", BASE + DAYS)

    call_command("bootstrap_program", config=config_path, stdout=StringIO())

    conference = Conference.objects.get(slug="medcon-2027")
    assert conference.start_date == datetime.date(2027, 3, 1)
    assert Hall.objects.get(conference=conference, name="Hall A").capacity == 400

    day_one = ConferenceDay.objects.get(conference=conference, date=datetime.date(2027, 3, 1))
    order = list(DayHall.objects.filter(day=day_one).order_by("order").values_list("hall__name", flat=True))
    assert order == ["Hall B", "Hall A"]
    assert DayTimeSlot.objects.filter(day=day_one).count() == 25

    day_two = ConferenceDay.objects.get(conference=conference, name="Day 2")
    slots = list(DayTimeSlot.objects.filter(day=day_two).order_by("slot_order"))
    assert [(s.slot_order, s.is_break, s.break_title) for s in slots] == [(1, False, ""), (2, True, "Tea")]


@pytest.mark.django_db
def test_bootstrap_existing_conference_requires_update(tmp_path):
    config_path = _write_config(tmp_path / "program.toml", BASE)
    call_command("bootstrap_program", config=config_path, stdout=StringIO())

    with pytest.raises(CommandError, match="already exists"):
        call_command("bootstrap_program", config=config_path, stdout=StringIO())


@pytest.mark.django_db
def test_bootstrap_update_replaces_hall_order_and_slots(tmp_path):
    call_command("bootstrap_program", config=_write_config(tmp_path / "a.toml", BASE + DAYS), stdout=StringIO())

    updated = BASE.replace('name = "MedCon 2027"', 'name = "MedCon 2027"\nslug = "medcon-2027"') + """
[[conference.days]]
name = "Opening Day"
date = 2027-03-01
halls = ["Hall A"]

[[conference.days.slots]]
start = "08:00"
end = "09:30"
"""
    out = StringIO()
    call_command("bootstrap_program", config=_write_config(tmp_path / "b.toml", updated), update=True, stdout=out)

    day = ConferenceDay.objects.get(date=datetime.date(2027, 3, 1))
    assert day.name == "Opening Day"
    assert list(DayHall.objects.filter(day=day).values_list("hall__name", flat=True)) == ["Hall A"]
    slots = list(DayTimeSlot.objects.filter(day=day))
    assert [(s.start_time, s.end_time) for s in slots] == [(datetime.time(8), datetime.time(9, 30))]
    assert "Updated conference" in out.getvalue()


@pytest.mark.django_db
def test_bootstrap_dry_run_writes_nothing(tmp_path):
    out = StringIO()
    call_command(
        "bootstrap_program", config=_write_config(tmp_path / "p.toml", BASE + DAYS), dry_run=True, stdout=out
    )

    assert not Conference.objects.exists()
    output = out.getvalue()
    assert "Dry run" in output
    assert "Hall: Hall A (capacity 400)" in output
    assert "Day: Day 2 2027-03-02 [Hall A] 2 slots" in output
