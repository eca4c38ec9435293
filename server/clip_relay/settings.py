"""
Settings for the clipboard relay (Django + Channels, ASGI).

Key points:
- Websocket-only service: no database, no auth/session apps.
- Environment-based configuration (relay tunables live in RELAY_* variables,
  see realtime/config.py).
- InMemoryChannelLayer by default (single process); RedisChannelLayer when REDIS_URL
  is set.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Optional: allows local dev to load env vars from a `.env` file.
load_dotenv()


BASE_DIR = Path(__file__).resolve().parent.parent


def _env(name: str, default: str | None = None) -> str | None:
    v = os.environ.get(name)
    return v if v not in (None, "") else default


def _env_bool(name: str, default: bool = False) -> bool:
    v = _env(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_csv(name: str, default: str = "") -> List[str]:
    raw = _env(name, default) or ""
    return [x.strip() for x in raw.split(",") if x.strip()]


def _env_int(name: str, default: int) -> int:
    return int(_env(name, str(default)) or default)


# SECURITY WARNING: Do not hardcode secrets in code.
DEBUG = _env_bool("DJANGO_DEBUG", default=False)

SECRET_KEY = _env("DJANGO_SECRET_KEY", "dev-insecure-secret-key-change-me")
if not DEBUG and (not SECRET_KEY or SECRET_KEY.startswith("dev-insecure-")):
    raise RuntimeError("DJANGO_SECRET_KEY must be set in production")

ALLOWED_HOSTS = _env_csv("DJANGO_ALLOWED_HOSTS", default="localhost,127.0.0.1")

# CORS: devices open the web client from anywhere, so allow all origins unless a list is given.
CORS_ALLOWED_ORIGINS = _env_csv("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_ALL_ORIGINS = not CORS_ALLOWED_ORIGINS
CORS_ALLOW_METHODS = ("GET", "OPTIONS")

# Websocket Origin allow-list; empty accepts any origin.
WS_ALLOWED_ORIGINS = _env_csv("WS_ALLOWED_ORIGINS")

# When serving behind a proxy, Django must respect X-Forwarded-* headers.
USE_X_FORWARDED_HOST = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")


INSTALLED_APPS = [
    # Daphne provides the ASGI `runserver`.
    "daphne",
    "corsheaders",
    "channels",
    "realtime.apps.RealtimeConfig",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "clip_relay.urls"

TEMPLATES: list = []

# IMPORTANT:
# - WSGI is kept for tooling, but the relay only works under ASGI (Daphne/Uvicorn).
WSGI_APPLICATION = "clip_relay.wsgi.application"
ASGI_APPLICATION = "clip_relay.asgi.application"

# Sessions live in memory; no database is configured.
DATABASES: dict = {}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = False
USE_TZ = True

# HTTP bodies are bounded like websocket frames (RELAY_MAX_PAYLOAD_BYTES).
DATA_UPLOAD_MAX_MEMORY_SIZE = _env_int("RELAY_MAX_PAYLOAD_BYTES", 10_000_000)


# Relay deliveries go straight to each member's channel name; groups are not used.
_LAYER_CONFIG = {
    "capacity": _env_int("CHANNEL_LAYER_CAPACITY", 1000),
    "expiry": _env_int("CHANNEL_LAYER_EXPIRY", 60),
}
REDIS_URL = _env("REDIS_URL", None)
CHANNEL_LAYERS = {
    "default": (
        {"BACKEND": "channels_redis.core.RedisChannelLayer", "CONFIG": {"hosts": [REDIS_URL], **_LAYER_CONFIG}}
        if REDIS_URL
        else {"BACKEND": "channels.layers.InMemoryChannelLayer", "CONFIG": dict(_LAYER_CONFIG)}
    )
}


LOG_LEVEL = _env("DJANGO_LOG_LEVEL", "INFO") or "INFO"
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "plain": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {"console": {"class": "logging.StreamHandler", "formatter": "plain"}},
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "realtime": {"level": _env("RELAY_LOG_LEVEL", LOG_LEVEL) or LOG_LEVEL},
        "daphne": {"level": "WARNING"},
    },
}
