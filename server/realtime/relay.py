"""
Clipboard relay service: protocol operations over SessionStore + MembershipRegistry.

Key behavior:
- Every compound operation (join, copy-text, disconnect, eviction) holds the lock of
  each session code it touches for its whole read-modify-broadcast step. Locks are
  per code, so traffic in one session never waits on another.
- Outbound events for a session are enqueued while its lock is held, which gives every
  member one consistent event order (a joiner sees the current text before any later
  paste).
- Delivery goes through a `Broadcaster`; the relay only knows connection ids.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Protocol, Tuple

from channels.exceptions import ChannelFull
from channels.layers import get_channel_layer

from .codes import SessionCodeGenerator
from .config import RelaySettings
from .errors import InvalidSessionCode
from .membership import MembershipRegistry
from .serializers import PasteTextEvent, SessionUpdateEvent, dump
from .sessions import SessionStore, WriteOutcome

logger = logging.getLogger(__name__)

# Channel layer message type; handled by ClipboardConsumer.relay_event.
RELAY_EVENT_TYPE = "relay.event"


class Broadcaster(Protocol):
    async def send(self, connection_id: str, event: Dict[str, Any]) -> None:
        ...


class ChannelLayerBroadcaster:
    """Delivers events to consumers by channel name over the Channels layer."""

    def __init__(self, alias: str = "default"):
        self.alias = alias

    async def send(self, connection_id: str, event: Dict[str, Any]) -> None:
        layer = get_channel_layer(self.alias)
        if layer is None:
            raise RuntimeError("CHANNEL_LAYERS is not configured")
        try:
            await layer.send(connection_id, {"type": RELAY_EVENT_TYPE, "event": event})
        except ChannelFull:
            # Receiver is gone or hopelessly behind; drop rather than stall the session.
            logger.warning("Dropping %s for %s: channel full", event.get("type"), connection_id)


class KeyedLock:
    """One asyncio.Lock per key, created on demand and dropped once unused."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._refs: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, *keys: Optional[str]) -> AsyncIterator[None]:
        # Sorted acquisition keeps multi-key holders (join across sessions) deadlock free.
        ordered = sorted({k for k in keys if k})
        for key in ordered:
            self._refs[key] = self._refs.get(key, 0) + 1
            self._locks.setdefault(key, asyncio.Lock())
        acquired: List[str] = []
        try:
            for key in ordered:
                await self._locks[key].acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            for key in ordered:
                self._refs[key] -= 1
                if not self._refs[key]:
                    del self._refs[key]
                    del self._locks[key]


@dataclass(frozen=True)
class SessionStatus:
    exists: bool
    connections: int


class Relay:
    def __init__(
        self,
        store: SessionStore,
        registry: MembershipRegistry,
        broadcaster: Broadcaster,
        *,
        generator: Optional[SessionCodeGenerator] = None,
    ):
        self.store = store
        self.registry = registry
        self.broadcaster = broadcaster
        self.generator = generator or store.generator
        self.locks = KeyedLock()

    @classmethod
    def from_settings(cls, settings: RelaySettings, broadcaster: Optional[Broadcaster] = None) -> "Relay":
        generator = SessionCodeGenerator(
            length=settings.CODE_LENGTH,
            alphabet=settings.CODE_ALPHABET,
            max_attempts=settings.CODE_MAX_ATTEMPTS,
        )
        store = SessionStore(generator, history_limit=settings.HISTORY_LIMIT)
        return cls(store, MembershipRegistry(), broadcaster or ChannelLayerBroadcaster())

    def normalize(self, code: str) -> str:
        return self.generator.normalize(code)

    async def _broadcast(self, code: str, event: Dict[str, Any], *, exclude: Optional[str] = None) -> int:
        sent = 0
        for connection_id in self.registry.members(code):
            if connection_id == exclude:
                continue
            await self.broadcaster.send(connection_id, event)
            sent += 1
        return sent

    async def _announce_counts(self, updates: List[Tuple[str, int]]) -> None:
        for code, remaining in updates:
            await self._broadcast(code, dump(SessionUpdateEvent(connections=remaining)))
            logger.info("Session %s now has %d connections", code, remaining)

    # HTTP side-channel

    def create_session(self) -> str:
        return self.store.create()

    def check_session(self, code: str) -> SessionStatus:
        code = self.normalize(code)
        if not self.store.exists(code):
            return SessionStatus(exists=False, connections=0)
        return SessionStatus(exists=True, connections=self.registry.count(code))

    # Websocket events

    async def join(self, connection_id: str, code: str) -> int:
        """
        Move `connection_id` into session `code` and return its new member count.

        Raises InvalidSessionCode (membership unchanged) when the code is unknown.
        """
        code = self.normalize(code)
        previous = self.registry.session_of(connection_id)
        async with self.locks.hold(code, previous):
            if not self.store.exists(code):
                logger.info("Invalid session: %s", code)
                raise InvalidSessionCode(code)

            left, count = self.registry.join(connection_id, code)
            for old_code, _ in left:
                logger.info("Connection %s leaving session %s", connection_id, old_code)
            await self._announce_counts(left)

            self.store.touch(code)
            text = self.store.get_text(code)
            if text:
                await self.broadcaster.send(connection_id, dump(PasteTextEvent(text=text)))

            await self._announce_counts([(code, count)])
        return count

    async def copy_text(self, connection_id: str, code: str, text: str) -> WriteOutcome:
        """
        Store `text` in session `code` and relay it to every other member.

        Empty and duplicate writes come back as REJECTED without any broadcast.
        """
        code = self.normalize(code)
        async with self.locks.hold(code):
            if not self.store.exists(code):
                logger.info("Session %s not found!", code)
                raise InvalidSessionCode(code)

            outcome = self.store.set_text(code, text)
            if outcome is not WriteOutcome.ACCEPTED:
                logger.debug("Ignoring %s write to %s from %s", outcome.value, code, connection_id)
                return outcome

            recipients = await self._broadcast(code, dump(PasteTextEvent(text=text)), exclude=connection_id)
        logger.info(
            "Text from %s (%d chars) broadcast to %d devices in session %s",
            connection_id,
            len(text),
            recipients,
            code,
        )
        return outcome

    def get_history(self, code: str) -> List[str]:
        return self.store.get_history(self.normalize(code))

    async def disconnect(self, connection_id: str) -> List[Tuple[str, int]]:
        current = self.registry.session_of(connection_id)
        async with self.locks.hold(current):
            updates = self.registry.leave_all(connection_id)
            await self._announce_counts(updates)
        return updates

    def debug_info(self, connection_id: str) -> Tuple[Optional[str], int]:
        code = self.registry.session_of(connection_id)
        return code, (self.registry.count(code) if code else 0)

    # Expiry

    async def evict_idle(self, timeout: float, now: Optional[float] = None) -> List[str]:
        """
        Evict sessions idle for longer than `timeout` seconds.

        Each eviction holds that session's lock, and drops its membership set in the
        same step, so a concurrent join either lands before (and refreshes activity)
        or fails with InvalidSessionCode.
        """
        now = self.store.now() if now is None else now
        evicted: List[str] = []
        for code in self.store.idle_codes(now, timeout):
            async with self.locks.hold(code):
                if self.store.evict_idle(now, timeout, codes=[code]):
                    self.registry.discard_session(code)
                    evicted.append(code)
        return evicted
