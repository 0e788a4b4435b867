import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, connection, transaction

from django_agenda.program.models import Person, Session, SessionParticipant


@pytest.mark.django_db
class TestPerson:
    def test_email_is_encrypted_at_rest(self, alice):
        with connection.cursor() as cursor:
            cursor.execute("SELECT email FROM agenda_program_person WHERE id = %s", [alice.pk])
            stored = cursor.fetchone()[0]
        assert stored != "alice@example.com"
        assert Person.objects.get(pk=alice.pk).email == "alice@example.com"

    def test_email_is_optional(self, conference):
        person = Person.objects.create(conference=conference, name="Dr. Rao")
        person.refresh_from_db()
        assert person.email is None

    def test_blank_email_is_stored_as_null(self, conference):
        person = Person.objects.create(conference=conference, name="Dr. Rao", email="")
        with connection.cursor() as cursor:
            cursor.execute("SELECT email FROM agenda_program_person WHERE id = %s", [person.pk])
            assert cursor.fetchone()[0] is None


@pytest.mark.django_db
class TestSession:
    def test_type_label(self, conference, day, hall_a, slots):
        session = Session(conference=conference, title="Keynote", session_type="oration", day=day)
        assert session.type_label == "Oration / Keynote / Plenary"
        assert str(session) == "Keynote"

    def test_cell_is_unique(self, conference, day, hall_a, slots):
        Session.objects.create(
            conference=conference, title="A", session_type="lecture", day=day, hall=hall_a, time_slot=slots[0]
        )
        with pytest.raises(IntegrityError), transaction.atomic():
            Session.objects.create(
                conference=conference, title="B", session_type="lecture", day=day, hall=hall_a, time_slot=slots[0]
            )

    def test_deleting_slot_orphans_session(self, conference, day, hall_a, slots):
        session = Session.objects.create(
            conference=conference, title="A", session_type="lecture", day=day, hall=hall_a, time_slot=slots[0]
        )
        slots[0].delete()
        session.refresh_from_db()
        assert session.time_slot_id is None


@pytest.mark.django_db
class TestSessionParticipant:
    def test_disallowed_role_fails_clean(self, conference, day, hall_a, slots, alice):
        session = Session.objects.create(
            conference=conference, title="A", session_type="lecture", day=day, hall=hall_a, time_slot=slots[0]
        )
        participant = SessionParticipant(session=session, person=alice, role="panelist")
        with pytest.raises(ValidationError) as excinfo:
            participant.full_clean()
        assert "role" in excinfo.value.error_dict

    def test_str_after_person_removed(self, conference, day, hall_a, slots, alice):
        session = Session.objects.create(
            conference=conference, title="A", session_type="lecture", day=day, hall=hall_a, time_slot=slots[0]
        )
        participant = SessionParticipant.objects.create(session=session, person=alice, role="speaker")
        alice.delete()
        participant.refresh_from_db()
        assert str(participant) == "(removed) as Speaker"
