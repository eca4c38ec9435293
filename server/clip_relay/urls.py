"""
URL configuration for the clipboard relay.

HTTP is only a side-channel: session issuance, lookup, health and diagnostics.
Everything else happens over the websocket (see realtime/routing.py).
"""
from django.urls import path

from realtime.views import check_session, debug_sessions, new_session
from .health import health

urlpatterns = [
    path("health/", health),
    path("new-session/", new_session),
    path("check-session/<str:code>/", check_session),
    path("debug/sessions/", debug_sessions),
]
