"""
WSGI config for the clipboard relay.

Only useful for management tooling: websockets and the relay need the ASGI
application in clip_relay.asgi.
"""
# Load secrets (when configured) before Django settings are loaded
import clip_relay.env_bootstrap  # noqa: F401

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'clip_relay.settings')

application = get_wsgi_application()
