"""TOML loader for program bootstrap configuration.

Loads and validates a program TOML file so that a conference, its halls,
its days (with their left-to-right hall order) and optionally explicit
time slots can be created programmatically.  A minimal file::

    [conference]
    name = "MedCon 2027"
    start = 2027-03-01
    end = 2027-03-02
    timezone = "Asia/Kolkata"

    [[conference.halls]]
    name = "Hall A"

    [[conference.days]]
    name = "Day 1"
    date = 2027-03-01
    halls = ["Hall A"]

Days without a ``slots`` list get the default slot layout.
"""

import datetime
import re
import tomllib
from pathlib import Path
from typing import Any

_REQUIRED_CONFERENCE_FIELDS: set[str] = {"name", "start", "end", "timezone"}
_REQUIRED_HALL_FIELDS: set[str] = {"name"}
_REQUIRED_DAY_FIELDS: set[str] = {"name", "date"}
_REQUIRED_SLOT_FIELDS: set[str] = {"start", "end"}

_SLUG_RE = re.compile(r"[^\w\s-]")
_WHITESPACE_RE = re.compile(r"[-\s]+")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def _slugify(value: str) -> str:
    """Convert a string to a URL-friendly slug."""
    value = _SLUG_RE.sub("", value.lower())
    return _WHITESPACE_RE.sub("-", value).strip("-")


def _validate_mapping(mapping: object, required: set[str], label: str) -> None:
    """Validate that *mapping* is a dict containing all *required* keys.

    Raises:
        TypeError: If *mapping* is not a dict.
        ValueError: If *mapping* is missing required keys.
    """
    if not isinstance(mapping, dict):
        msg = f"{label} must be a mapping, got {type(mapping).__name__}"
        raise TypeError(msg)
    missing = required - mapping.keys()
    if missing:
        msg = f"{label} is missing required fields: {', '.join(sorted(missing))}"
        raise ValueError(msg)


def _validate_list(conf: dict[str, Any], key: str, required_fields: set[str], label: str) -> list[dict[str, Any]]:
    """Validate an optional list of mappings and return it (empty when absent)."""
    items = conf.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        msg = f"{label} must be a list"
        raise TypeError(msg)
    for idx, item in enumerate(items):
        _validate_mapping(item, required_fields, f"{label}[{idx}]")
    return items


def _validate_unique(items: list[dict[str, Any]], key: str, label: str) -> None:
    seen: set[object] = set()
    duplicates: set[str] = set()
    for item in items:
        value = item[key]
        if value in seen:
            duplicates.add(str(value))
        seen.add(value)
    if duplicates:
        msg = f"{label} has duplicate {key}s: {', '.join(sorted(duplicates))}"
        raise ValueError(msg)


def parse_time(value: object, label: str) -> datetime.time:
    """Parse a TOML local time or an ``"HH:MM[:SS]"`` string.

    Raises:
        ValueError: If *value* is neither.
    """
    if isinstance(value, datetime.time):
        return value
    match = _TIME_RE.match(value) if isinstance(value, str) else None
    if match is None:
        msg = f"{label} must be a time like 09:30, got {value!r}"
        raise ValueError(msg)
    hours, minutes, seconds = (int(part or 0) for part in match.groups())
    try:
        return datetime.time(hours, minutes, seconds)
    except ValueError as exc:
        msg = f"{label} is not a valid time: {value!r}"
        raise ValueError(msg) from exc


def _validate_slots(day: dict[str, Any], label: str) -> None:
    slots = _validate_list(day, "slots", _REQUIRED_SLOT_FIELDS, f"{label}.slots")
    for idx, slot in enumerate(slots):
        slot_label = f"{label}.slots[{idx}]"
        slot["start"] = parse_time(slot["start"], f"{slot_label}.start")
        slot["end"] = parse_time(slot["end"], f"{slot_label}.end")
        if slot["end"] <= slot["start"]:
            msg = f"{slot_label} must end after it starts"
            raise ValueError(msg)
        slot["break"] = bool(slot.get("break", False))
        slot["title"] = str(slot.get("title", "")) if slot["break"] else ""


def load_program_config(path: str | Path) -> dict[str, Any]:
    """Load and validate a program TOML configuration file.

    Args:
        path: Filesystem path to the TOML file.

    Returns:
        The ``conference`` mapping with ``halls`` and ``days`` lists always
        present, slot times converted to :class:`datetime.time`, and a
        ``slug`` derived from ``name`` when not given.

    Raises:
        FileNotFoundError: If *path* does not exist.
        TypeError: If a table or list has the wrong shape.
        ValueError: If required keys are missing, names repeat, a day
            references an unknown hall, a slot is malformed, or the file
            is not valid TOML.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Program config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as fh:
        try:
            data: dict[str, Any] = tomllib.load(fh)
        except tomllib.TOMLDecodeError as exc:
            msg = f"Invalid TOML in {path}: {exc}"
            raise ValueError(msg) from exc

    if "conference" not in data:
        msg = "Missing required [conference] table in config file"
        raise ValueError(msg)

    conf = data["conference"]
    _validate_mapping(conf, _REQUIRED_CONFERENCE_FIELDS, "conference")
    if "slug" not in conf:
        conf["slug"] = _slugify(conf["name"])

    halls = _validate_list(conf, "halls", _REQUIRED_HALL_FIELDS, "conference.halls")
    _validate_unique(halls, "name", "conference.halls")
    conf["halls"] = halls
    hall_names = {hall["name"] for hall in halls}

    days = _validate_list(conf, "days", _REQUIRED_DAY_FIELDS, "conference.days")
    _validate_unique(days, "date", "conference.days")
    for idx, day in enumerate(days):
        label = f"conference.days[{idx}]"
        if not isinstance(day["date"], datetime.date) or isinstance(day["date"], datetime.datetime):
            msg = f"{label}.date must be a date like 2027-03-01"
            raise ValueError(msg)
        day_halls = day.setdefault("halls", sorted(hall_names))
        unknown = sorted(set(day_halls) - hall_names)
        if unknown:
            msg = f"{label} references unknown halls: {', '.join(unknown)}"
            raise ValueError(msg)
        if len(set(day_halls)) != len(day_halls):
            msg = f"{label}.halls lists a hall more than once"
            raise ValueError(msg)
        _validate_slots(day, label)
    conf["days"] = days

    return conf
