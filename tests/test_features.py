"""Tests for the public_program / manage_ui toggles."""

import pytest
from django.http import Http404, HttpRequest, HttpResponse
from django.test import override_settings
from django.views import View

from django_agenda.features import KNOWN_FEATURES, FeatureRequiredMixin, is_feature_enabled, require_feature


def _get(view_class: type[View]) -> HttpResponse:
    request = HttpRequest()
    request.method = "GET"
    return view_class.as_view()(request)


def test_known_features_follow_config_fields() -> None:
    assert KNOWN_FEATURES == {"public_program", "manage_ui"}


class TestIsFeatureEnabled:
    @pytest.mark.parametrize("feature", sorted(KNOWN_FEATURES))
    def test_on_without_settings(self, feature: str) -> None:
        assert is_feature_enabled(feature) is True

    @pytest.mark.parametrize("feature", sorted(KNOWN_FEATURES))
    def test_switched_off(self, feature: str) -> None:
        with override_settings(DJANGO_AGENDA={"features": {f"{feature}_enabled": False}}):
            assert is_feature_enabled(feature) is False

    def test_other_toggle_unaffected(self) -> None:
        with override_settings(DJANGO_AGENDA={"features": {"manage_ui_enabled": False}}):
            assert is_feature_enabled("public_program") is True

    def test_unknown_name_lists_choices(self) -> None:
        with pytest.raises(ValueError, match="expected one of manage_ui, public_program"):
            is_feature_enabled("registration")


class TestRequireFeature:
    def test_silent_when_on(self) -> None:
        assert require_feature("public_program") is None

    def test_404_when_off(self) -> None:
        with override_settings(DJANGO_AGENDA={"features": {"public_program_enabled": False}}):
            with pytest.raises(Http404, match="public_program"):
                require_feature("public_program")


class _EditorView(FeatureRequiredMixin, View):
    required_feature = ("public_program", "manage_ui")

    def get(self, request: HttpRequest) -> HttpResponse:
        return HttpResponse("editor")


class _GridView(FeatureRequiredMixin, View):
    required_feature = "public_program"

    def get(self, request: HttpRequest) -> HttpResponse:
        return HttpResponse("grid")


class _OpenView(FeatureRequiredMixin, View):
    def get(self, request: HttpRequest) -> HttpResponse:
        return HttpResponse("open")


class TestFeatureRequiredMixin:
    def test_required_features_normalized(self) -> None:
        assert _GridView().get_required_features() == ("public_program",)
        assert _EditorView().get_required_features() == ("public_program", "manage_ui")
        assert _OpenView().get_required_features() == ()

    def test_all_on_dispatches(self) -> None:
        assert _get(_EditorView).content == b"editor"

    def test_one_off_hides_view(self) -> None:
        with override_settings(DJANGO_AGENDA={"features": {"manage_ui_enabled": False}}):
            with pytest.raises(Http404):
                _get(_EditorView)
            assert _get(_GridView).content == b"grid"

    def test_ungated_view_ignores_toggles(self) -> None:
        with override_settings(
            DJANGO_AGENDA={"features": {"manage_ui_enabled": False, "public_program_enabled": False}}
        ):
            assert _get(_OpenView).content == b"open"
