#!/usr/bin/env python
"""Django's command-line utility for administrative tasks."""
import os
import sys


def main():
    """Run administrative tasks."""
    import clip_relay.env_bootstrap  # noqa: F401

    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clip_relay.settings")
    from django.core.management import execute_from_command_line

    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
