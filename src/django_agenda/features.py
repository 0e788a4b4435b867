"""Feature toggles for the program views.

Two toggles exist, both read from ``DJANGO_AGENDA["features"]``:

``public_program``
    The read-only grid, its JSON export and the stats endpoint.
``manage_ui``
    The session editor and the hall removal flow.

A disabled toggle makes the affected views answer 404 so that their URLs
do not leak to visitors.  Settings are cached, so a change needs a
restart (or a ``setting_changed`` signal in tests).
"""

import logging
from dataclasses import fields

from django.http import Http404, HttpRequest, HttpResponse

from django_agenda.settings import FeaturesConfig, get_config

logger = logging.getLogger(__name__)

_SUFFIX = "_enabled"

KNOWN_FEATURES: frozenset[str] = frozenset(f.name.removesuffix(_SUFFIX) for f in fields(FeaturesConfig))


def is_feature_enabled(feature: str) -> bool:
    """Return whether *feature* is switched on.

    Raises:
        ValueError: If *feature* is not one of :data:`KNOWN_FEATURES`.
    """
    if feature not in KNOWN_FEATURES:
        msg = f"Unknown feature: {feature!r} (expected one of {', '.join(sorted(KNOWN_FEATURES))})"
        raise ValueError(msg)
    return bool(getattr(get_config().features, feature + _SUFFIX))


def require_feature(feature: str) -> None:
    """Raise :class:`~django.http.Http404` when *feature* is switched off."""
    if is_feature_enabled(feature):
        return
    logger.debug("Feature %s is disabled, hiding view", feature)
    raise Http404(f"Feature {feature!r} is not enabled")


class FeatureRequiredMixin:
    """Gate a view behind one or more feature toggles.

    ``required_feature`` takes a single name or a tuple; every listed
    toggle must be on.  An empty value leaves the view ungated.
    """

    required_feature: str | tuple[str, ...] = ""

    def get_required_features(self) -> tuple[str, ...]:
        required = self.required_feature
        if not required:
            return ()
        return (required,) if isinstance(required, str) else tuple(required)

    def dispatch(self, request: HttpRequest, *args: object, **kwargs: object) -> HttpResponse:
        for feature in self.get_required_features():
            require_feature(feature)
        return super().dispatch(request, *args, **kwargs)  # type: ignore[misc]
