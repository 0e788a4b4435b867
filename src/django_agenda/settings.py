"""Typed configuration for django-agenda.

Reads a single ``DJANGO_AGENDA`` dict from Django settings and exposes it as
composed, frozen dataclasses with sensible defaults.

Usage::

    from django_agenda.settings import get_config

    config = get_config()
    config.slots.slot_minutes
    config.realtime.optimistic_grace_seconds
    config.default_break_title
"""

import datetime
import functools
from collections.abc import Mapping
from dataclasses import dataclass, field

from django.conf import settings
from django.test.signals import setting_changed


@dataclass(frozen=True, slots=True)
class SlotConfig:
    """Default time-slot layout used when a day has no slots yet.

    ``day_end`` is the end of the last generated slot, so the defaults
    produce 25 half-hour slots from 08:00-08:30 up to 20:00-20:30.
    """

    day_start: str = "08:00"
    day_end: str = "20:30"
    slot_minutes: int = 30

    @property
    def start_time(self) -> datetime.time:
        """Return ``day_start`` parsed as a :class:`datetime.time`."""
        return datetime.time.fromisoformat(self.day_start)

    @property
    def end_time(self) -> datetime.time:
        """Return ``day_end`` parsed as a :class:`datetime.time`."""
        return datetime.time.fromisoformat(self.day_end)


@dataclass(frozen=True, slots=True)
class RealtimeConfig:
    """Change-stream synchronization settings."""

    optimistic_grace_seconds: float = 5.0
    max_reconnect_attempts: int = 5
    reconnect_delay_seconds: float = 1.0
    subscribe_timeout_seconds: float = 10.0


@dataclass(frozen=True, slots=True)
class FeaturesConfig:
    """Feature toggles for the public program and the editor views.

    All features are enabled by default. Set to ``False`` in
    ``DJANGO_AGENDA['features']`` to disable.
    """

    public_program_enabled: bool = True
    manage_ui_enabled: bool = True


@dataclass(frozen=True, slots=True)
class AgendaConfig:
    """Top-level django-agenda configuration."""

    slots: SlotConfig = field(default_factory=SlotConfig)
    realtime: RealtimeConfig = field(default_factory=RealtimeConfig)
    features: FeaturesConfig = field(default_factory=FeaturesConfig)
    default_break_title: str = "Global Block"


def _section(raw_data: dict[str, object], key: str) -> dict[str, object]:
    value = raw_data.pop(key, {})
    if not isinstance(value, Mapping):
        msg = f"DJANGO_AGENDA['{key}'] must be a mapping (dict-like object)"
        raise TypeError(msg)
    return dict(value)


@functools.lru_cache(maxsize=1)
def get_config() -> AgendaConfig:
    """Build and return the agenda configuration.

    Reads ``settings.DJANGO_AGENDA`` (a plain dict) and returns a frozen
    :class:`AgendaConfig`.  The result is cached; the cache is cleared
    automatically when Django's ``setting_changed`` signal fires (e.g. inside
    ``override_settings``).
    """
    raw = getattr(settings, "DJANGO_AGENDA", {})
    if not isinstance(raw, Mapping):
        msg = "DJANGO_AGENDA must be a mapping (dict-like object)"
        raise TypeError(msg)
    raw_data = dict(raw)

    slots_data = _section(raw_data, "slots")
    realtime_data = _section(raw_data, "realtime")
    features_data = _section(raw_data, "features")

    config = AgendaConfig(
        slots=SlotConfig(**slots_data),
        realtime=RealtimeConfig(**realtime_data),
        features=FeaturesConfig(**features_data),
        **raw_data,
    )
    _validate_agenda_config(config)
    return config


def _validate_agenda_config(config: AgendaConfig) -> None:
    """Validate high-impact configuration values with clear error messages."""
    try:
        start = config.slots.start_time
        end = config.slots.end_time
    except (TypeError, ValueError) as exc:
        msg = "DJANGO_AGENDA['slots'] day_start/day_end must be 'HH:MM' strings"
        raise ValueError(msg) from exc
    if end <= start:
        msg = "DJANGO_AGENDA['slots']['day_end'] must be later than day_start"
        raise ValueError(msg)
    if not isinstance(config.slots.slot_minutes, int) or config.slots.slot_minutes <= 0:
        msg = "DJANGO_AGENDA['slots']['slot_minutes'] must be a positive integer"
        raise ValueError(msg)

    realtime = config.realtime
    if not isinstance(realtime.optimistic_grace_seconds, (int, float)) or realtime.optimistic_grace_seconds <= 0:
        msg = "DJANGO_AGENDA['realtime']['optimistic_grace_seconds'] must be a positive number"
        raise ValueError(msg)
    if not isinstance(realtime.max_reconnect_attempts, int) or realtime.max_reconnect_attempts < 0:
        msg = "DJANGO_AGENDA['realtime']['max_reconnect_attempts'] must be a non-negative integer"
        raise ValueError(msg)
    if not isinstance(realtime.reconnect_delay_seconds, (int, float)) or realtime.reconnect_delay_seconds < 0:
        msg = "DJANGO_AGENDA['realtime']['reconnect_delay_seconds'] must be a non-negative number"
        raise ValueError(msg)
    if not isinstance(realtime.subscribe_timeout_seconds, (int, float)) or realtime.subscribe_timeout_seconds <= 0:
        msg = "DJANGO_AGENDA['realtime']['subscribe_timeout_seconds'] must be a positive number"
        raise ValueError(msg)

    if not isinstance(config.default_break_title, str) or not config.default_break_title.strip():
        msg = "DJANGO_AGENDA['default_break_title'] must be a non-empty string"
        raise ValueError(msg)


def _clear_config_cache(*, setting: str, **kwargs: object) -> None:  # noqa: ARG001
    """Clear the cached config when Django settings change during tests."""
    if setting == "DJANGO_AGENDA":
        get_config.cache_clear()


setting_changed.connect(_clear_config_cache, dispatch_uid="django_agenda.settings.clear_config_cache")
