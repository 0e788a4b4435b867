"""Grouping of a session's participants into display buckets."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

# Roles outside this table (panelist, assistant) have no bucket and are not shown.
ROLE_BUCKETS: dict[str, str] = {
    "speaker": "speakers",
    "orator": "speakers",
    "presenter": "speakers",
    "workshop_lead": "speakers",
    "moderator": "moderators",
    "discussion_leader": "moderators",
    "chairperson": "chairpersons",
    "introducer": "chairpersons",
}

_PLACEHOLDERS: dict[str, str] = {
    "speakers": "Unknown Speaker",
    "moderators": "Unknown Moderator",
    "chairpersons": "Unknown Chairperson",
}


@dataclass(frozen=True, slots=True)
class RoleBuckets:
    """Participant names grouped for display."""

    speakers: list[str] = field(default_factory=list)
    moderators: list[str] = field(default_factory=list)
    chairpersons: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Return the number of names across all buckets."""
        return len(self.speakers) + len(self.moderators) + len(self.chairpersons)

    def as_dict(self) -> dict[str, list[str]]:
        """Return the buckets as a plain dict (for JSON and templates)."""
        return {
            "speakers": list(self.speakers),
            "moderators": list(self.moderators),
            "chairpersons": list(self.chairpersons),
        }


def _person_name(participant: Any) -> str | None:
    if getattr(participant, "person_id", None) is None:
        return None
    person = getattr(participant, "person", None)
    return getattr(person, "name", None) or None


def resolve_roles(session: Any, participants: Iterable[Any] | None = None) -> RoleBuckets:
    """Group *session*'s participants into speakers, moderators and chairpersons.

    Every participant whose role has a bucket contributes exactly one name;
    when the person record is gone a placeholder such as
    ``"Unknown Speaker"`` is used instead, so counts never shrink because of
    a failed lookup.

    Args:
        session: The session to resolve.
        participants: Pre-fetched participants.  Defaults to
            ``session.participants.all()``.

    Returns:
        The grouped names in participant order.
    """
    if participants is None:
        participants = session.participants.all()

    buckets = RoleBuckets()
    for participant in participants:
        bucket = ROLE_BUCKETS.get(participant.role)
        if bucket is None:
            continue
        name = _person_name(participant) or _PLACEHOLDERS[bucket]
        getattr(buckets, bucket).append(name)
    return buckets
