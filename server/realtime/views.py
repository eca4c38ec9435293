"""
Django async views for the HTTP side-channel (session issuance and lookup).
"""

import logging
from datetime import datetime, timezone

from django.http import JsonResponse
from django.views.decorators.http import require_GET

from .apps import get_janitor, get_relay, get_relay_settings
from .errors import GeneratorExhausted
from .serializers import CheckSessionResponse, NewSessionResponse, SessionDebugEntry, dump

logger = logging.getLogger(__name__)


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@require_GET
async def new_session(request):
    """GET /new-session/ - Allocate a session code."""
    # Sessions can be issued before any socket connects; they still need sweeping.
    get_janitor().ensure_running()
    try:
        code = get_relay().create_session()
    except GeneratorExhausted as e:
        logger.error("Session creation failed: %s", e)
        return JsonResponse({"error": e.message}, status=503)
    return JsonResponse(dump(NewSessionResponse(session_code=code)))


@require_GET
async def check_session(request, code: str):
    """GET /check-session/<code>/ - Report whether a session exists and how many devices are in it."""
    status = get_relay().check_session(code)
    return JsonResponse(dump(CheckSessionResponse(exists=status.exists, connections=status.connections)))


@require_GET
async def debug_sessions(request):
    """GET /debug/sessions/ - List every live session (only when RELAY_DEBUG_ENDPOINTS is on)."""
    if not get_relay_settings().DEBUG_ENDPOINTS:
        return JsonResponse({"detail": "Not found"}, status=404)

    relay = get_relay()
    payload = {
        info.code: dump(
            SessionDebugEntry(
                created_at=_iso(info.created_at),
                last_activity=_iso(info.last_activity),
                connections=relay.registry.count(info.code),
                history_size=info.history_size,
            )
        )
        for info in relay.store.snapshot()
    }
    return JsonResponse(payload)
