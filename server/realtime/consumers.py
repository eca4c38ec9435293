"""
WebSocket consumer for clipboard sessions.

Key behavior:
- URL: /ws/clipboard/
- A connection starts outside any session; `join-session` moves it into one (re-joining
  elsewhere moves it again). Disconnect removes it from wherever it is.
- The connection id is the Channels channel name; relay broadcasts reach this consumer
  through `relay_event`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from channels.generic.websocket import AsyncWebsocketConsumer
from pydantic import ValidationError

from .apps import get_janitor, get_relay, get_relay_settings
from .errors import InvalidSessionCode
from .serializers import (
    ConnectedEvent,
    CopyTextRequest,
    DebugInfoEvent,
    DebugInfoRequest,
    ErrorEvent,
    GetHistoryRequest,
    HistoryEvent,
    JoinSessionRequest,
    client_message_adapter,
    dump,
)

logger = logging.getLogger(__name__)


class ClipboardConsumer(AsyncWebsocketConsumer):
    """
    One instance per websocket.

    States: connected (no session) -> in session(code) -> disconnected.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.relay = None
        self.max_payload_bytes: int = 0
        self.closed: bool = False

    @property
    def connection_id(self) -> str:
        return self.channel_name

    async def connect(self) -> None:
        self.relay = get_relay()
        self.max_payload_bytes = get_relay_settings().MAX_PAYLOAD_BYTES

        await self.accept()
        get_janitor().ensure_running()

        logger.info("New connection: %s", self.connection_id)
        await self.send_json(dump(ConnectedEvent(connection_id=self.connection_id)))

    async def disconnect(self, close_code: int) -> None:
        self.closed = True
        if self.relay is not None:
            await self.relay.disconnect(self.connection_id)
        logger.info("Socket disconnected: %s (code=%s)", self.connection_id, close_code)

    async def receive(self, text_data: Optional[str] = None, bytes_data: Optional[bytes] = None) -> None:
        if self.closed:
            return
        if text_data is None:
            if bytes_data:
                await self.send_error("Binary frames are not supported")
            return

        # Reject oversized frames before parsing them.
        if len(text_data.encode("utf-8")) > self.max_payload_bytes:
            logger.warning("Oversized frame from %s (%d chars)", self.connection_id, len(text_data))
            await self.send_error("Payload too large")
            return

        try:
            msg = json.loads(text_data)
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON")
            return

        try:
            request = client_message_adapter.validate_python(msg)
        except ValidationError as e:
            first = e.errors()[0]
            where = ".".join(str(p) for p in first.get("loc", ()))
            await self.send_error(f"Invalid message: {where} {first.get('msg', '')}".strip())
            return

        try:
            await self.dispatch_request(request)
        except InvalidSessionCode as e:
            await self.send_error(e.message)
        except Exception:
            logger.exception("Failed to handle %s from %s", msg.get("type"), self.connection_id)
            await self.send_error("Internal server error")

    async def dispatch_request(self, request: Any) -> None:
        if isinstance(request, JoinSessionRequest):
            logger.info("Socket %s joining session %s", self.connection_id, request.session_code)
            await self.relay.join(self.connection_id, request.session_code)
            return

        if isinstance(request, CopyTextRequest):
            await self.relay.copy_text(self.connection_id, request.session_code, request.text)
            return

        if isinstance(request, GetHistoryRequest):
            try:
                history = self.relay.get_history(request.session_code)
            except InvalidSessionCode as e:
                reply = HistoryEvent(request_id=request.request_id, error=e.message)
            else:
                reply = HistoryEvent(request_id=request.request_id, history=history)
            await self.send_json(dump(reply))
            return

        if isinstance(request, DebugInfoRequest):
            code, members = self.relay.debug_info(self.connection_id)
            await self.send_json(
                dump(DebugInfoEvent(connection_id=self.connection_id, session=code, members=members))
            )

    async def relay_event(self, event: Dict[str, Any]) -> None:
        """
        Handler for relay deliveries (paste-text, session-update).
        """
        if self.closed:
            return
        await self.send_json(event["event"])

    async def send_error(self, message: str) -> None:
        await self.send_json(dump(ErrorEvent(message=message)))

    async def send_json(self, payload: Dict[str, Any]) -> None:
        await self.send(text_data=json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
