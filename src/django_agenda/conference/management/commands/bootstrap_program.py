"""Management command to bootstrap a conference program from a TOML configuration file."""

import logging
from typing import Any

from django.core.management.base import BaseCommand, CommandError, CommandParser
from django.db import transaction

from django_agenda.conference.models import Conference, ConferenceDay, DayHall, Hall
from django_agenda.config_loader import load_program_config
from django_agenda.program.models import DayTimeSlot
from django_agenda.program.slots import ensure_slots

logger = logging.getLogger(__name__)

# Mapping from TOML short field names to Django model field names.
_CONFERENCE_FIELD_MAP: dict[str, str] = {
    "name": "name",
    "start": "start_date",
    "end": "end_date",
    "timezone": "timezone",
    "venue": "venue",
}


def _map_fields(data: dict[str, Any], field_map: dict[str, str]) -> dict[str, Any]:
    """Map TOML config keys to Django model field names."""
    return {model_field: data[config_key] for config_key, model_field in field_map.items() if config_key in data}


class Command(BaseCommand):
    """Bootstrap a conference program from a TOML configuration file.

    Creates (or, with ``--update``, updates) the ``Conference``, its
    ``Hall`` records, its ``ConferenceDay`` records with their hall order,
    and each day's time slots.

    Usage::

        manage.py bootstrap_program --config program.toml
        manage.py bootstrap_program --config program.toml --update
        manage.py bootstrap_program --config program.toml --dry-run
    """

    help = "Create or update a conference program (halls, days, time slots) from a TOML config file."

    def add_arguments(self, parser: CommandParser) -> None:
        """Define the command-line arguments accepted by this command."""
        parser.add_argument(
            "--config",
            required=True,
            help="Path to the program TOML configuration file.",
        )
        parser.add_argument(
            "--update",
            action="store_true",
            default=False,
            help="Update an existing conference instead of failing on duplicate slug.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            default=False,
            help="Validate the config and print what would be created without saving.",
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the bootstrap command."""
        config_path: str = options["config"]
        update: bool = options["update"]
        dry_run: bool = options["dry_run"]

        try:
            conf = load_program_config(config_path)
        except (FileNotFoundError, TypeError, ValueError) as exc:
            raise CommandError(str(exc)) from exc

        if dry_run:
            self._print_dry_run(conf)
            return

        with transaction.atomic():
            conference = self._bootstrap_conference(conf, update=update)
            halls = self._bootstrap_halls(conference, conf["halls"])
            for day_conf in conf["days"]:
                self._bootstrap_day(conference, day_conf, halls, update=update)

        logger.info("Bootstrapped program for %s from %s", conference.slug, config_path)
        self.stdout.write(
            self.style.SUCCESS(
                f"Program ready: {conference.name} ({len(conf['halls'])} halls, {len(conf['days'])} days)"
            )
        )

    def _bootstrap_conference(self, conf: dict[str, Any], *, update: bool) -> Conference:
        """Create or update the Conference matched by slug.

        Raises:
            CommandError: If the conference exists and ``update`` is ``False``.
        """
        slug = conf["slug"]
        fields = _map_fields(conf, _CONFERENCE_FIELD_MAP)

        existing = Conference.objects.filter(slug=slug).first()
        if existing and not update:
            raise CommandError(f"Conference with slug '{slug}' already exists. Use --update to update it.")

        if existing:
            for attr, value in fields.items():
                setattr(existing, attr, value)
            existing.save()
            self.stdout.write(self.style.SUCCESS(f"  Updated conference: {existing.name}"))
            return existing

        conference = Conference.objects.create(slug=slug, **fields)
        self.stdout.write(self.style.SUCCESS(f"  Created conference: {conference.name}"))
        return conference

    def _bootstrap_halls(self, conference: Conference, halls_data: list[dict[str, Any]]) -> dict[str, Hall]:
        halls: dict[str, Hall] = {}
        for hall_conf in halls_data:
            hall, created = Hall.objects.update_or_create(
                conference=conference,
                name=hall_conf["name"],
                defaults={"capacity": hall_conf.get("capacity")},
            )
            halls[hall.name] = hall
            verb = "Created" if created else "Updated"
            self.stdout.write(f"  {verb} hall: {hall.name}")
        return halls

    def _bootstrap_day(
        self,
        conference: Conference,
        day_conf: dict[str, Any],
        halls: dict[str, Hall],
        *,
        update: bool,
    ) -> ConferenceDay:
        """Create or update one day, its hall order and its slots."""
        day, created = ConferenceDay.objects.update_or_create(
            conference=conference,
            date=day_conf["date"],
            defaults={"name": day_conf["name"]},
        )
        self.stdout.write(f"  {'Created' if created else 'Updated'} day: {day.name} ({day.date})")

        DayHall.objects.filter(day=day).exclude(hall__name__in=day_conf["halls"]).delete()
        for order, hall_name in enumerate(day_conf["halls"]):
            DayHall.objects.update_or_create(day=day, hall=halls[hall_name], defaults={"order": order})

        slots_conf = day_conf.get("slots") or []
        if not slots_conf:
            slots = ensure_slots(day)
            self.stdout.write(f"    {len(slots)} time slots")
            return day

        if DayTimeSlot.objects.filter(day=day).exists():
            if not update:
                self.stdout.write(self.style.WARNING(f"    Keeping existing slots for {day.name}; use --update to replace"))
                return day
            DayTimeSlot.objects.filter(day=day).delete()

        DayTimeSlot.objects.bulk_create(
            [
                DayTimeSlot(
                    day=day,
                    start_time=slot["start"],
                    end_time=slot["end"],
                    slot_order=order,
                    is_break=slot["break"],
                    break_title=slot["title"],
                )
                for order, slot in enumerate(slots_conf, start=1)
            ]
        )
        self.stdout.write(f"    {len(slots_conf)} time slots")
        return day

    def _print_dry_run(self, conf: dict[str, Any]) -> None:
        """Print what would be created without touching the database."""
        self.stdout.write(self.style.NOTICE("Dry run: no changes will be saved."))
        self.stdout.write(f"Conference: {conf['name']} ({conf['slug']})")
        for hall_conf in conf["halls"]:
            capacity = hall_conf.get("capacity")
            self.stdout.write(f"  Hall: {hall_conf['name']}" + (f" (capacity {capacity})" if capacity else ""))
        for day_conf in conf["days"]:
            slots = day_conf.get("slots") or []
            slot_summary = f"{len(slots)} slots" if slots else "default slots"
            self.stdout.write(
                f"  Day: {day_conf['name']} {day_conf['date']} [{', '.join(day_conf['halls'])}] {slot_summary}"
            )
