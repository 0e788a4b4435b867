"""Settings for the example program server.

Values can be overridden from ``examples/.env``:

``AGENDA_DB_PATH``
    SQLite file to use (defaults to ``examples/db.sqlite3``).
``AGENDA_DAY_START`` / ``AGENDA_DAY_END`` / ``AGENDA_SLOT_MINUTES``
    Default slot layout for days bootstrapped without explicit slots.
``AGENDA_LOG_LEVEL``
    Level for the ``django_agenda`` loggers, including reconnect attempts.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.environ.get("SECRET_KEY", "agenda-example-key-not-for-production")
SALT_KEY = os.environ.get("SALT_KEY", "agenda-example-salt-not-for-production")
DEBUG = True
ALLOWED_HOSTS = ["localhost", "127.0.0.1", "[::1]"]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.messages",
    "django.contrib.sessions",
    "django.contrib.staticfiles",
    "django_agenda.conference",
    "django_agenda.program",
    "django_agenda.realtime",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.environ.get("AGENDA_DB_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "Asia/Kolkata"
STATIC_URL = "static/"

LOGIN_URL = "login"
LOGIN_REDIRECT_URL = "root"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {"short": {"format": "%(levelname)s %(name)s: %(message)s"}},
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "short"}},
    "loggers": {
        "django_agenda": {"handlers": ["console"], "level": os.environ.get("AGENDA_LOG_LEVEL", "INFO")},
    },
}

DJANGO_AGENDA = {
    "slots": {
        "day_start": os.environ.get("AGENDA_DAY_START", "08:00"),
        "day_end": os.environ.get("AGENDA_DAY_END", "20:30"),
        "slot_minutes": int(os.environ.get("AGENDA_SLOT_MINUTES", "30")),
    },
    "realtime": {
        "max_reconnect_attempts": 5,
        "reconnect_delay_seconds": 2.0,
    },
    "default_break_title": "Global Block",
}
