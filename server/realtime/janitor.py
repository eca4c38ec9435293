"""
Periodic eviction of idle sessions.

The janitor is started lazily from the first websocket connection (it needs a running
event loop) and then sweeps every `interval` seconds until stopped.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from .config import RelaySettings
from .relay import Relay

logger = logging.getLogger(__name__)


class ExpiryJanitor:
    def __init__(
        self,
        relay: Relay,
        *,
        interval: float = 60 * 60,
        timeout: float = 24 * 60 * 60,
        enabled: bool = True,
    ):
        self.relay = relay
        self.interval = interval
        self.timeout = timeout
        self.enabled = enabled
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, relay: Relay, settings: RelaySettings) -> "ExpiryJanitor":
        return cls(
            relay,
            interval=settings.SWEEP_INTERVAL_SECONDS,
            timeout=settings.SESSION_TIMEOUT_SECONDS,
            enabled=settings.JANITOR_ENABLED,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_running(self) -> None:
        """Start the sweep loop on the current event loop if it is not running yet."""
        if self.enabled and not self.running:
            self._task = asyncio.create_task(self._run(), name="relay-expiry-janitor")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def sweep(self, now: Optional[float] = None) -> List[str]:
        evicted = await self.relay.evict_idle(self.timeout, now=now)
        if evicted:
            logger.info("Evicted %d idle sessions, %d remain", len(evicted), len(self.relay.store))
        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception:
                # Keep sweeping; a failed pass is retried on the next tick.
                logger.exception("Session sweep failed")
