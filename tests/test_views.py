from __future__ import annotations

import pytest
from django.apps import apps
from django.test import AsyncClient, Client

from realtime.config import RelaySettings
from realtime.errors import GeneratorExhausted
from realtime.janitor import ExpiryJanitor


@pytest.fixture
def client():
    return AsyncClient()


@pytest.mark.asyncio
async def test_new_session_issues_usable_code(client, live_relay):
    response = await client.get("/new-session/")
    assert response.status_code == 200
    code = response.json()["sessionCode"]
    assert len(code) == 6
    assert live_relay.store.exists(code)


@pytest.mark.asyncio
async def test_new_session_codes_are_distinct(client, live_relay):
    codes = {(await client.get("/new-session/")).json()["sessionCode"] for _ in range(20)}
    assert len(codes) == 20


@pytest.mark.asyncio
async def test_new_session_starts_expiry_janitor(client, live_relay):
    config = apps.get_app_config("realtime")
    config.janitor = ExpiryJanitor(live_relay, interval=3600)
    try:
        for _ in range(5):
            assert (await client.get("/new-session/")).status_code == 200
        assert len(live_relay.store) == 5
        assert config.janitor.running
    finally:
        await config.janitor.stop()


@pytest.mark.asyncio
async def test_new_session_generator_exhausted(client, live_relay, monkeypatch):
    def exhausted():
        raise GeneratorExhausted(100)

    monkeypatch.setattr(live_relay, "create_session", exhausted)
    response = await client.get("/new-session/")
    assert response.status_code == 503
    assert "100 attempts" in response.json()["error"]


@pytest.mark.asyncio
async def test_new_session_rejects_post(client, live_relay):
    response = await client.post("/new-session/")
    assert response.status_code == 405


class TestCheckSession:
    @pytest.mark.asyncio
    async def test_known_session(self, client, live_relay):
        code = live_relay.create_session()
        await live_relay.join("somebody", code)
        response = await client.get(f"/check-session/{code}/")
        assert response.json() == {"exists": True, "connections": 1}

    @pytest.mark.asyncio
    async def test_unknown_session(self, client, live_relay):
        response = await client.get("/check-session/NOPE22/")
        assert response.status_code == 200
        assert response.json() == {"exists": False, "connections": 0}

    @pytest.mark.asyncio
    async def test_lowercase_code(self, client, live_relay):
        code = live_relay.create_session()
        response = await client.get(f"/check-session/{code.lower()}/")
        assert response.json()["exists"] is True


class TestDebugSessions:
    @pytest.mark.asyncio
    async def test_hidden_by_default(self, client, live_relay):
        live_relay.create_session()
        response = await client.get("/debug/sessions/")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_lists_sessions_when_enabled(self, client, live_relay):
        apps.get_app_config("realtime").relay_settings = RelaySettings(DEBUG_ENDPOINTS=True)
        code = live_relay.create_session()
        await live_relay.copy_text("somebody", code, "hello")
        await live_relay.join("somebody", code)

        response = await client.get("/debug/sessions/")
        assert response.status_code == 200
        entry = response.json()[code]
        assert entry["connections"] == 1
        assert entry["historySize"] == 1
        assert entry["createdAt"].endswith("+00:00")
        assert "lastActivity" in entry


def test_health(live_relay):
    live_relay.create_session()
    response = Client().get("/health/")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["sessions"] == 1
