import pytest

from django_agenda.conference.models import Hall
from django_agenda.program.forms import HallDeleteForm, SessionForm
from django_agenda.program.services import save_session


@pytest.fixture
def panel_post(placement, alice, bob, carol):
    return {
        "session_type": "panel",
        "title": "Antibiotic stewardship",
        "topic": "Infectious disease",
        "day_id": str(placement["day_id"]),
        "hall_id": str(placement["hall_id"]),
        "time_slot_id": str(placement["time_slot_id"]),
        "moderator_id": str(alice.pk),
        "panelist_ids": [str(bob.pk), str(carol.pk)],
        "speaker_id": str(alice.pk),
    }


@pytest.mark.django_db
class TestSessionForm:
    def test_valid_panel(self, conference, panel_post, alice, bob, carol):
        form = SessionForm(panel_post, conference=conference)
        assert form.is_valid(), form.errors
        submission = form.submission()
        assert submission["panelist_ids"] == [bob.pk, carol.pk]
        assert submission["moderator_id"] == alice.pk
        assert "speaker_id" not in submission

    def test_panel_without_panelists(self, conference, panel_post):
        panel_post.pop("panelist_ids")
        form = SessionForm(panel_post, conference=conference)
        assert not form.is_valid()
        assert "panelist_ids" in form.errors
        assert "Panel Discussion" in form.errors["panelist_ids"][0]

    def test_unknown_type_is_a_choice_error(self, conference, panel_post):
        form = SessionForm({**panel_post, "session_type": "keynote"}, conference=conference)
        assert not form.is_valid()
        assert "session_type" in form.errors

    def test_choices_are_scoped_to_conference(self, conference, panel_post, hall_a, hall_b):
        hall_choices = dict(SessionForm(conference=conference).fields["hall_id"].choices)
        assert set(hall_choices) == {"", hall_a.pk, hall_b.pk}

    def test_symposium_subtalks_must_be_objects(self, conference, panel_post):
        data = {**panel_post, "session_type": "symposium", "symposium_subtalks": '["just a string"]'}
        form = SessionForm(data, conference=conference)
        assert not form.is_valid()
        assert "symposium_subtalks" in form.errors

    def test_symposium_subtalk_speaker_ids_are_coerced(self, conference, panel_post, bob):
        data = {
            **panel_post,
            "session_type": "symposium",
            "symposium_subtalks": f'[{{"title": "Part 1", "speaker_id": "{bob.pk}"}}]',
        }
        form = SessionForm(data, conference=conference)
        assert form.is_valid(), form.errors
        assert form.submission()["symposium_subtalks"] == [{"title": "Part 1", "speaker_id": bob.pk}]

    def test_parallel_meal_type_kept_only_when_flagged(self, conference, panel_post):
        form = SessionForm(
            {**panel_post, "is_parallel_meal": "on", "parallel_meal_type": "lunch"}, conference=conference
        )
        assert form.is_valid(), form.errors
        assert form.submission()["parallel_meal_type"] == "lunch"

        form = SessionForm({**panel_post, "parallel_meal_type": "lunch"}, conference=conference)
        assert form.is_valid(), form.errors
        assert "parallel_meal_type" not in form.submission()

    def test_initial_for_round_trips_participants(self, conference, panel_post, alice, bob, carol):
        form = SessionForm(panel_post, conference=conference)
        assert form.is_valid(), form.errors
        session = save_session(conference, form.submission())

        initial = SessionForm.initial_for(session)

        assert initial["session_type"] == "panel"
        assert initial["moderator_id"] == alice.pk
        assert sorted(initial["panelist_ids"]) == sorted([bob.pk, carol.pk])
        assert initial["hall_id"] == session.hall_id


@pytest.mark.django_db
class TestHallDeleteForm:
    def test_requires_exact_name(self, hall_a):
        form = HallDeleteForm({"confirm_name": "hall a"}, hall=hall_a)
        assert not form.is_valid()
        assert "confirm_name" in form.errors

    def test_target_excludes_the_hall(self, conference, hall_a, hall_b):
        other = Hall.objects.create(conference=conference, name="Auditorium")
        form = HallDeleteForm(hall=hall_a)
        assert set(form.fields["target"].queryset) == {hall_b, other}

    def test_valid(self, hall_a, hall_b):
        form = HallDeleteForm({"confirm_name": " Hall A ", "target": hall_b.pk}, hall=hall_a)
        assert form.is_valid(), form.errors
        assert form.cleaned_data["target"] == hall_b
