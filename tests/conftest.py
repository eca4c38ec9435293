from __future__ import annotations

from collections import defaultdict
from typing import Any, Dict, List, Tuple

import pytest

from realtime.codes import SessionCodeGenerator
from realtime.membership import MembershipRegistry
from realtime.relay import Relay
from realtime.sessions import SessionStore


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingBroadcaster:
    """Broadcaster double: remembers every delivery in order."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, Dict[str, Any]]] = []

    async def send(self, connection_id: str, event: Dict[str, Any]) -> None:
        self.sent.append((connection_id, event))

    def events_for(self, connection_id: str) -> List[Dict[str, Any]]:
        return [event for cid, event in self.sent if cid == connection_id]

    def of_type(self, event_type: str) -> Dict[str, List[Dict[str, Any]]]:
        by_conn: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        for cid, event in self.sent:
            if event["type"] == event_type:
                by_conn[cid].append(event)
        return by_conn

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> SessionStore:
    return SessionStore(SessionCodeGenerator(), clock=clock)


@pytest.fixture
def registry() -> MembershipRegistry:
    return MembershipRegistry()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def relay(store: SessionStore, registry: MembershipRegistry, broadcaster: RecordingBroadcaster) -> Relay:
    return Relay(store, registry, broadcaster)


@pytest.fixture
def live_relay():
    """
    Fresh process-wide Relay wired to the channel layer, as used by the consumer and views.

    The app config's relay, janitor and settings are restored afterwards; channel layers
    are rebuilt so each test's event loop gets its own queues.
    """
    from channels.layers import channel_layers
    from django.apps import apps

    from realtime.janitor import ExpiryJanitor

    config = apps.get_app_config("realtime")
    saved = (config.relay, config.janitor, config.relay_settings)
    channel_layers.backends.clear()

    fresh = Relay.from_settings(config.relay_settings)
    config.relay = fresh
    config.janitor = ExpiryJanitor(fresh, enabled=False)
    try:
        yield fresh
    finally:
        config.relay, config.janitor, config.relay_settings = saved
        channel_layers.backends.clear()
