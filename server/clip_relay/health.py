from __future__ import annotations

import os
import time

from django.http import JsonResponse

from realtime.apps import get_relay


def health(request):
    """
    Load balancer health check endpoint.

    Keep it cheap: reads the in-memory session count, nothing else.
    """

    return JsonResponse(
        {
            "status": "ok",
            "ts": int(time.time()),
            "instance_id": os.environ.get("INSTANCE_ID", "unknown-instance"),
            "sessions": len(get_relay().store),
        }
    )
