import pytest
from django.core.exceptions import ValidationError

from django_agenda.conference.models import Conference, DayHall, Hall
from django_agenda.program.models import Session
from django_agenda.program.services import (
    PlacementConflictError,
    delete_hall,
    delete_session,
    save_session,
)
from django_agenda.program.session_types import UnknownTypeError


@pytest.fixture
def lecture_data(placement, alice, bob):
    return {
        **placement,
        "session_type": "lecture",
        "title": "Sepsis in 2027",
        "topic": "Critical care",
        "speaker_id": alice.pk,
        "chairperson_id": bob.pk,
    }


@pytest.mark.django_db
class TestSaveSession:
    def test_creates_session_and_participants(self, conference, lecture_data, alice, bob):
        session = save_session(conference, lecture_data)

        assert session.pk is not None
        assert session.title == "Sepsis in 2027"
        assert session.hall_id == lecture_data["hall_id"]
        roles = sorted(session.participants.values_list("role", "person_id"))
        assert roles == [("chairperson", bob.pk), ("speaker", alice.pk)]

    def test_missing_required_field(self, conference, lecture_data):
        lecture_data["speaker_id"] = None
        with pytest.raises(ValidationError) as excinfo:
            save_session(conference, lecture_data)
        assert "speaker_id" in excinfo.value.error_dict
        assert not Session.objects.exists()

    def test_unknown_type(self, conference, lecture_data):
        lecture_data["session_type"] = "keynote"
        with pytest.raises(UnknownTypeError):
            save_session(conference, lecture_data)

    def test_occupied_cell_is_rejected(self, conference, lecture_data):
        first = save_session(conference, lecture_data)
        with pytest.raises(PlacementConflictError) as excinfo:
            save_session(conference, {**lecture_data, "title": "Second"})
        assert excinfo.value.conflicting == [first]
        assert excinfo.value.code == "placement_conflict"
        assert Session.objects.count() == 1

    def test_update_keeps_own_cell(self, conference, lecture_data):
        session = save_session(conference, lecture_data)
        updated = save_session(conference, {**lecture_data, "title": "Renamed"}, session=session)
        assert updated.pk == session.pk
        assert Session.objects.get().title == "Renamed"

    def test_update_replaces_participants(self, conference, lecture_data, carol):
        session = save_session(conference, lecture_data)
        save_session(conference, {**lecture_data, "speaker_id": carol.pk, "chairperson_id": None}, session=session)
        assert list(session.participants.values_list("role", "person_id")) == [("speaker", carol.pk)]

    def test_changing_type_drops_old_roles(self, conference, lecture_data, alice, bob, carol):
        session = save_session(conference, lecture_data)
        panel = {
            **lecture_data,
            "session_type": "panel",
            "moderator_id": carol.pk,
            "panelist_ids": [alice.pk, bob.pk],
        }
        save_session(conference, panel, session=session)
        roles = sorted(session.participants.values_list("role", flat=True))
        assert roles == ["moderator", "panelist", "panelist"]

    def test_placement_from_other_conference_is_rejected(self, conference, lecture_data):
        other = Conference.objects.create(
            name="Other", slug="other", start_date=conference.start_date, end_date=conference.end_date
        )
        foreign_hall = Hall.objects.create(conference=other, name="Elsewhere")
        with pytest.raises(ValidationError) as excinfo:
            save_session(conference, {**lecture_data, "hall_id": foreign_hall.pk})
        assert "hall_id" in excinfo.value.error_dict

    def test_unknown_person_is_rejected(self, conference, lecture_data):
        with pytest.raises(ValidationError, match="Unknown people"):
            save_session(conference, {**lecture_data, "speaker_id": 99999})
        assert not Session.objects.exists()

    def test_type_specific_values_go_to_extra_data(self, conference, placement):
        session = save_session(
            conference,
            {**placement, "session_type": "break", "title": "Lunch", "meal_type": "lunch", "description": ""},
        )
        assert session.extra_data == {"meal_type": "lunch"}
        assert not session.participants.exists()

    def test_symposium_subtalks(self, conference, placement, alice, bob, carol):
        subtalks = [{"title": "Part 1", "speaker_id": alice.pk}, {"title": "Part 2", "speaker_id": bob.pk}]
        session = save_session(
            conference,
            {
                **placement,
                "session_type": "symposium",
                "title": "Trauma",
                "topic": "Trauma care",
                "moderator_id": carol.pk,
                "symposium_subtalks": subtalks,
            },
        )
        assert session.extra_data["symposium_subtalks"] == subtalks
        assert session.participants.filter(role="speaker").count() == 2


@pytest.mark.django_db
def test_delete_session_removes_participants(conference, lecture_data):
    session = save_session(conference, lecture_data)
    delete_session(session)
    assert not Session.objects.exists()


@pytest.mark.django_db
class TestDeleteHall:
    def test_moves_sessions_to_first_other_hall(self, conference, lecture_data, hall_a, hall_b):
        session = save_session(conference, lecture_data)

        moved = delete_hall(hall_a)

        assert moved == 1
        session.refresh_from_db()
        assert session.hall == hall_b
        assert not Hall.objects.filter(pk=hall_a.pk).exists()

    def test_explicit_target(self, conference, lecture_data, hall_a, hall_b):
        hall_c = Hall.objects.create(conference=conference, name="Auditorium")
        session = save_session(conference, lecture_data)
        delete_hall(hall_a, target=hall_c)
        session.refresh_from_db()
        assert session.hall == hall_c

    def test_collision_aborts_without_changes(self, conference, lecture_data, hall_a, hall_b):
        in_a = save_session(conference, lecture_data)
        in_b = save_session(conference, {**lecture_data, "title": "Parallel", "hall_id": hall_b.pk})

        with pytest.raises(PlacementConflictError) as excinfo:
            delete_hall(hall_a)

        assert excinfo.value.conflicting == [in_b]
        in_a.refresh_from_db()
        assert in_a.hall == hall_a
        assert Hall.objects.filter(pk=hall_a.pk).exists()

    def test_last_hall_with_sessions_cannot_be_deleted(self, conference, lecture_data, hall_a, hall_b):
        save_session(conference, lecture_data)
        hall_b.delete()
        with pytest.raises(ValidationError, match="no other hall"):
            delete_hall(hall_a)

    def test_empty_last_hall_can_be_deleted(self, conference, hall_a):
        assert delete_hall(hall_a) == 0
        assert not Hall.objects.exists()

    def test_target_must_differ(self, hall_a):
        with pytest.raises(ValidationError):
            delete_hall(hall_a, target=hall_a)

    def test_target_takes_over_the_removed_column(self, conference, day, lecture_data, hall_a, hall_b):
        hall_c = Hall.objects.create(conference=conference, name="Auditorium")
        save_session(conference, lecture_data)

        delete_hall(hall_a, target=hall_c)

        columns = DayHall.objects.filter(day=day).order_by("order")
        assert [(membership.hall, membership.order) for membership in columns] == [(hall_c, 0), (hall_b, 1)]

    def test_target_already_on_the_day_keeps_its_column(self, day, conference, lecture_data, hall_a, hall_b):
        save_session(conference, lecture_data)

        delete_hall(hall_a)

        assert [(m.hall, m.order) for m in DayHall.objects.filter(day=day)] == [(hall_b, 1)]

    def test_target_is_appended_when_removed_hall_was_not_listed(self, conference, day, lecture_data, hall_a, hall_b):
        hall_c = Hall.objects.create(conference=conference, name="Auditorium")
        save_session(conference, lecture_data)
        DayHall.objects.filter(day=day, hall=hall_a).delete()

        delete_hall(hall_a, target=hall_c)

        columns = DayHall.objects.filter(day=day).order_by("order")
        assert [(membership.hall, membership.order) for membership in columns] == [(hall_b, 1), (hall_c, 2)]
