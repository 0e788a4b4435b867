"""Closed catalog of session types and the field/role schema of each.

Every consumer (model choices, the session form, participant validation,
grid labels and statistics) reads from :data:`SESSION_TYPES`; nothing else
in the package hard-codes per-type field lists.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from django.core.exceptions import ValidationError


class UnknownTypeError(LookupError):
    """Raised when a session-type tag is not part of the catalog."""

    def __init__(self, type_tag: object) -> None:
        self.type_tag = type_tag
        super().__init__(f"Unknown session type: {type_tag!r}")


@dataclass(frozen=True, slots=True)
class SessionTypeConfig:
    """Schema descriptor for one session type."""

    type_id: str
    display_name: str
    required_fields: tuple[str, ...]
    optional_fields: tuple[str, ...]
    allowed_roles: tuple[str, ...]

    @property
    def fields(self) -> tuple[str, ...]:
        """Return required fields followed by optional fields."""
        return self.required_fields + self.optional_fields


_PLACEMENT = ("day_id", "hall_id", "time_slot_id")

SESSION_TYPES: dict[str, SessionTypeConfig] = {
    config.type_id: config
    for config in (
        SessionTypeConfig(
            type_id="lecture",
            display_name="Lecture / Talk",
            required_fields=("title", "topic", *_PLACEMENT, "speaker_id"),
            optional_fields=("chairperson_id", "description", "is_parallel_meal"),
            allowed_roles=("speaker", "chairperson"),
        ),
        SessionTypeConfig(
            type_id="panel",
            display_name="Panel Discussion",
            required_fields=("title", "topic", *_PLACEMENT, "moderator_id", "panelist_ids"),
            optional_fields=("description", "is_parallel_meal"),
            allowed_roles=("moderator", "panelist"),
        ),
        SessionTypeConfig(
            type_id="symposium",
            display_name="Symposium",
            required_fields=("title", "topic", *_PLACEMENT, "moderator_id", "symposium_subtalks"),
            optional_fields=("description",),
            allowed_roles=("moderator", "speaker"),
        ),
        SessionTypeConfig(
            type_id="workshop",
            display_name="Workshop",
            required_fields=("title", "topic", *_PLACEMENT, "workshop_lead_ids"),
            optional_fields=("assistant_ids", "capacity", "description"),
            allowed_roles=("workshop_lead", "assistant"),
        ),
        SessionTypeConfig(
            type_id="oration",
            display_name="Oration / Keynote / Plenary",
            required_fields=("title", "topic", *_PLACEMENT, "speaker_id"),
            optional_fields=("introducer_id", "description"),
            allowed_roles=("speaker", "introducer"),
        ),
        SessionTypeConfig(
            type_id="guest_lecture",
            display_name="Guest Lecture",
            required_fields=("title", "topic", *_PLACEMENT, "speaker_id"),
            optional_fields=("chairperson_id", "description"),
            allowed_roles=("speaker", "chairperson"),
        ),
        SessionTypeConfig(
            type_id="discussion",
            display_name="Discussion / Free Paper Session",
            required_fields=("title", "topic", *_PLACEMENT, "discussion_leader_id", "presenter_ids"),
            optional_fields=("description",),
            allowed_roles=("discussion_leader", "presenter"),
        ),
        SessionTypeConfig(
            type_id="break",
            display_name="Break / Meal (Only)",
            required_fields=("title", *_PLACEMENT, "meal_type"),
            optional_fields=("description",),
            allowed_roles=(),
        ),
        SessionTypeConfig(
            type_id="other",
            display_name="Other / Custom",
            required_fields=("title", *_PLACEMENT),
            optional_fields=("topic", "description", "custom_data"),
            allowed_roles=(),
        ),
    )
}

SESSION_TYPE_CHOICES: list[tuple[str, str]] = [(c.type_id, c.display_name) for c in SESSION_TYPES.values()]

# Form field -> participant role it creates.
ROLE_FIELDS: dict[str, str] = {
    "speaker_id": "speaker",
    "chairperson_id": "chairperson",
    "moderator_id": "moderator",
    "panelist_ids": "panelist",
    "workshop_lead_ids": "workshop_lead",
    "assistant_ids": "assistant",
    "introducer_id": "introducer",
    "presenter_ids": "presenter",
    "discussion_leader_id": "discussion_leader",
}


def lookup(type_tag: str) -> SessionTypeConfig:
    """Return the schema for *type_tag*.

    Raises:
        UnknownTypeError: If the tag is not in the catalog.
    """
    try:
        return SESSION_TYPES[type_tag]
    except (KeyError, TypeError):
        raise UnknownTypeError(type_tag) from None


def required_fields(type_tag: str) -> tuple[str, ...]:
    """Return the fields a submission of *type_tag* must fill in."""
    return lookup(type_tag).required_fields


def optional_fields(type_tag: str) -> tuple[str, ...]:
    """Return the fields a submission of *type_tag* may fill in."""
    return lookup(type_tag).optional_fields


def display_name(type_tag: str) -> str:
    """Return the human label for *type_tag*, or the tag itself when unknown."""
    config = SESSION_TYPES.get(type_tag)
    return config.display_name if config else type_tag


def is_empty(value: object) -> bool:
    """Return whether *value* counts as "not filled in" for validation."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def validate_submission(type_tag: str, data: Mapping[str, object]) -> dict[str, object]:
    """Check that every required field of *type_tag* is filled in.

    Optional and unknown keys are passed through unchanged.

    Args:
        type_tag: The selected session type.
        data: The submitted values keyed by form field name.

    Returns:
        A plain dict copy of *data*.

    Raises:
        UnknownTypeError: If *type_tag* is not in the catalog.
        ValidationError: Keyed by field name, for each empty required field.
    """
    config = lookup(type_tag)
    errors = {
        name: ValidationError(
            "This field is required for %(type)s sessions.",
            code="required",
            params={"type": config.display_name},
        )
        for name in config.required_fields
        if is_empty(data.get(name))
    }
    if errors:
        raise ValidationError(errors)
    return dict(data)


def iter_participants(type_tag: str, data: Mapping[str, object]) -> Iterator[tuple[str, object]]:
    """Yield ``(role, person_id)`` pairs described by a submission.

    Only role fields that belong to the type's schema are read, so values
    left over from a different type are ignored.  Symposium sub-talk
    speakers are yielded with the ``speaker`` role.

    Raises:
        ValidationError: If a role is not allowed for the session type.
    """
    config = lookup(type_tag)
    for field_name in config.fields:
        role = ROLE_FIELDS.get(field_name)
        if role is None:
            continue
        if role not in config.allowed_roles:
            raise ValidationError({field_name: f"Role {role!r} is not allowed for {config.display_name} sessions."})
        value = data.get(field_name)
        if is_empty(value):
            continue
        values = value if isinstance(value, (list, tuple)) else [value]
        for person_id in values:
            if not is_empty(person_id):
                yield role, person_id

    if "symposium_subtalks" in config.fields:
        for subtalk in data.get("symposium_subtalks") or []:
            if isinstance(subtalk, Mapping) and not is_empty(subtalk.get("speaker_id")):
                yield "speaker", subtalk["speaker_id"]
