#!/usr/bin/env python
"""Run the django-agenda example project.

Typical session::

    python manage.py migrate
    python manage.py bootstrap_program --config program.example.toml
    python manage.py runserver
"""

import os
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent.parent / "src"


def main() -> None:
    """Run administrative tasks against the example settings."""
    if SRC_DIR.is_dir() and str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "settings")
    from django.core.management import execute_from_command_line  # noqa: PLC0415

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
