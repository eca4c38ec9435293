"""
ASGI config for the clipboard relay.

It exposes the ASGI callable as a module-level variable named ``application``.
Run with e.g. ``daphne clip_relay.asgi:application`` from the ``server/`` directory.
"""
# Load secrets (when configured) before Django settings are loaded
import clip_relay.env_bootstrap  # noqa: F401

import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clip_relay.settings")

from channels.routing import ProtocolTypeRouter, URLRouter
from channels.security.websocket import OriginValidator
from django.conf import settings
from django.core.asgi import get_asgi_application

# Standard Django ASGI application for HTTP; must be created before importing consumers.
django_asgi_app = get_asgi_application()

from clip_relay.routing import websocket_urlpatterns  # noqa: E402

# Channels router for WebSockets.
#
# OriginValidator is applied only when WS_ALLOWED_ORIGINS is set; by default any
# device's web client may connect.
websocket_app = URLRouter(websocket_urlpatterns)
if settings.WS_ALLOWED_ORIGINS:
    websocket_app = OriginValidator(websocket_app, settings.WS_ALLOWED_ORIGINS)

application = ProtocolTypeRouter(
    {
        "http": django_asgi_app,
        "websocket": websocket_app,
    }
)
