import django.db.models.deletion
import encrypted_fields.fields
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("agenda_conference", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Person",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=300)),
                ("email", encrypted_fields.fields.EncryptedCharField(blank=True, default=None, max_length=254, null=True)),
                ("title", models.CharField(blank=True, default="", max_length=200)),
                ("organization", models.CharField(blank=True, default="", max_length=300)),
                ("bio", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "conference",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="people",
                        to="agenda_conference.conference",
                    ),
                ),
            ],
            options={
                "ordering": ["name"],
                "verbose_name_plural": "people",
            },
        ),
        migrations.CreateModel(
            name="DayTimeSlot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("slot_order", models.PositiveIntegerField()),
                ("is_break", models.BooleanField(default=False)),
                ("break_title", models.CharField(blank=True, default="", max_length=200)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "day",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="time_slots",
                        to="agenda_conference.conferenceday",
                    ),
                ),
            ],
            options={
                "ordering": ["day", "slot_order"],
                "constraints": [
                    models.UniqueConstraint(fields=("day", "slot_order"), name="uniq_day_time_slot_order"),
                    models.CheckConstraint(
                        condition=models.Q(("end_time__gt", models.F("start_time"))),
                        name="day_time_slot_end_after_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Session",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=500)),
                (
                    "session_type",
                    models.CharField(
                        choices=[
                            ("lecture", "Lecture / Talk"),
                            ("panel", "Panel Discussion"),
                            ("symposium", "Symposium"),
                            ("workshop", "Workshop"),
                            ("oration", "Oration / Keynote / Plenary"),
                            ("guest_lecture", "Guest Lecture"),
                            ("discussion", "Discussion / Free Paper Session"),
                            ("break", "Break / Meal (Only)"),
                            ("other", "Other / Custom"),
                        ],
                        max_length=50,
                    ),
                ),
                ("topic", models.CharField(blank=True, default="", max_length=500)),
                ("description", models.TextField(blank=True, default="")),
                ("is_parallel_meal", models.BooleanField(default=False)),
                (
                    "parallel_meal_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("breakfast", "Breakfast"),
                            ("lunch", "Lunch"),
                            ("dinner", "Dinner"),
                            ("coffee_break", "Coffee Break"),
                        ],
                        default="",
                        max_length=20,
                    ),
                ),
                ("extra_data", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "conference",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="agenda_conference.conference",
                    ),
                ),
                (
                    "day",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sessions",
                        to="agenda_conference.conferenceday",
                    ),
                ),
                (
                    "hall",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sessions",
                        to="agenda_conference.hall",
                    ),
                ),
                (
                    "time_slot",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sessions",
                        to="agenda_program.daytimeslot",
                    ),
                ),
            ],
            options={
                "ordering": ["day", "time_slot__slot_order", "hall__name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("day", "hall", "time_slot"),
                        name="uniq_session_day_hall_time_slot",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SessionParticipant",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "role",
                    models.CharField(
                        choices=[
                            ("speaker", "Speaker"),
                            ("moderator", "Moderator"),
                            ("panelist", "Panelist"),
                            ("chairperson", "Chairperson"),
                            ("workshop_lead", "Workshop Lead"),
                            ("assistant", "Assistant"),
                            ("presenter", "Presenter"),
                            ("introducer", "Introducer"),
                            ("orator", "Orator"),
                            ("discussion_leader", "Discussion Leader"),
                        ],
                        max_length=30,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "person",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="participations",
                        to="agenda_program.person",
                    ),
                ),
                (
                    "session",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="participants",
                        to="agenda_program.session",
                    ),
                ),
            ],
            options={
                "ordering": ["session", "role", "id"],
            },
        ),
    ]
