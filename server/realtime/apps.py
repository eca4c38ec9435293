"""
Django app configuration for the realtime relay.
Builds the process-wide Relay and ExpiryJanitor on startup.
"""

import logging

from django.apps import AppConfig, apps

logger = logging.getLogger(__name__)


class RealtimeConfig(AppConfig):
    """App configuration for the clipboard relay."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "realtime"

    def ready(self):
        """Construct relay state from RELAY_* settings.

        Note: the janitor task is not started here (no event loop yet); the first
        websocket connection starts it.
        """
        from .config import load_relay_settings
        from .janitor import ExpiryJanitor
        from .relay import Relay

        self.relay_settings = load_relay_settings()
        self.relay = Relay.from_settings(self.relay_settings)
        self.janitor = ExpiryJanitor.from_settings(self.relay, self.relay_settings)
        logger.info(
            "Relay ready (history=%d, timeout=%ss, sweep=%ss)",
            self.relay_settings.HISTORY_LIMIT,
            self.relay_settings.SESSION_TIMEOUT_SECONDS,
            self.relay_settings.SWEEP_INTERVAL_SECONDS,
        )


def _config() -> RealtimeConfig:
    return apps.get_app_config("realtime")


def get_relay():
    return _config().relay


def get_janitor():
    return _config().janitor


def get_relay_settings():
    return _config().relay_settings
