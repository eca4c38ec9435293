"""
CLI client for the clipboard relay.

Supports:
- HTTP session issuance:   GET /new-session/
- HTTP session lookup:     GET /check-session/<code>/
- WebSocket relay:         /ws/clipboard/

WebSocket protocol (`ClipboardConsumer`):
- Client sends:
  - {"type":"join-session","sessionCode":"AB3CDE"}
  - {"type":"copy-text","sessionCode":"AB3CDE","text":"..."}
  - {"type":"get-history","sessionCode":"AB3CDE","requestId":"..."}
  - {"type":"debug-info"}
- Server sends:
  - {"type":"connected","connectionId":...}
  - {"type":"paste-text","text":"..."}
  - {"type":"session-update","connections":N}
  - {"type":"history","history":[...]} | {"type":"history","error":"..."}
  - {"type":"error","message":"..."}
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from typing import Any, Dict, Optional

import aiohttp
import websockets


def _rstrip_slash(s: str) -> str:
    return s[:-1] if s.endswith("/") else s


def _ws_url(ws_base: str) -> str:
    return f"{_rstrip_slash(ws_base)}/ws/clipboard/"


def _http_url(http_base: str, path: str) -> str:
    return f"{_rstrip_slash(http_base)}{path}"


def _frame(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


async def _stdin_lines() -> str:
    return await asyncio.to_thread(sys.stdin.readline)


class HttpClient:
    def __init__(self, http_base: str):
        self.http_base = http_base
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "HttpClient":
        self._session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def get_json(self, path: str) -> Dict[str, Any]:
        if self._session is None:
            raise RuntimeError("HttpClient must be used as an async context manager")
        async with self._session.get(_http_url(self.http_base, path)) as resp:
            # The relay answers errors (404/503) with JSON bodies too.
            try:
                data = await resp.json(content_type=None)
            except json.JSONDecodeError as e:
                raise RuntimeError(f"{path} returned a non-JSON body (HTTP {resp.status})") from e
        if resp.status >= 400:
            detail = (data or {}).get("error") or (data or {}).get("detail") or data
            raise RuntimeError(f"{path} failed with HTTP {resp.status}: {detail}")
        return data or {}

    async def new_session(self) -> str:
        data = await self.get_json("/new-session/")
        return data["sessionCode"]

    async def check_session(self, code: str) -> Dict[str, Any]:
        return await self.get_json(f"/check-session/{code}/")


def print_event(msg: Dict[str, Any]) -> bool:
    """Print one server frame. Returns False when the frame was an error."""
    t = msg.get("type")
    if t == "paste-text":
        sys.stdout.write(msg.get("text", "") + "\n")
        sys.stdout.flush()
    elif t == "session-update":
        sys.stderr.write(f"[devices connected: {msg.get('connections')}]\n")
        sys.stderr.flush()
    elif t == "error":
        sys.stderr.write(f"[error {msg.get('message')}]\n")
        sys.stderr.flush()
        return False
    # ignore unknown frames
    return True


class RelaySocket:
    """Thin wrapper over a websocket connection speaking the relay protocol."""

    def __init__(self, ws_base: str, code: str):
        self.url = _ws_url(ws_base)
        self.code = code
        self._ws = None
        self.connection_id: Optional[str] = None

    async def __aenter__(self) -> "RelaySocket":
        self._ws = await websockets.connect(self.url)
        first = json.loads(await self._ws.recv())
        if first.get("type") == "connected":
            self.connection_id = first.get("connectionId")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None

    async def send(self, payload: Dict[str, Any]) -> None:
        await self._ws.send(_frame(payload))

    async def recv(self) -> Dict[str, Any]:
        return json.loads(await self._ws.recv())

    async def join(self) -> None:
        await self.send({"type": "join-session", "sessionCode": self.code})

    async def copy(self, text: str) -> None:
        await self.send({"type": "copy-text", "sessionCode": self.code, "text": text})

    async def history(self) -> Dict[str, Any]:
        request_id = uuid.uuid4().hex
        await self.send({"type": "get-history", "sessionCode": self.code, "requestId": request_id})
        while True:
            msg = await self.recv()
            if msg.get("type") == "history" and msg.get("requestId") == request_id:
                return msg
            print_event(msg)


async def cmd_listen(ws_base: str, code: str) -> int:
    async with RelaySocket(ws_base, code) as sock:
        await sock.join()
        while True:
            if not print_event(await sock.recv()):
                return 1


async def cmd_send(ws_base: str, code: str, text: str) -> int:
    async with RelaySocket(ws_base, code) as sock:
        await sock.join()
        await sock.copy(text)
        # Round-trip a history request so the copy is processed before we hang up.
        reply = await sock.history()
        if "error" in reply:
            sys.stderr.write(f"[error {reply['error']}]\n")
            return 1
        return 0


async def cmd_history(ws_base: str, code: str) -> int:
    async with RelaySocket(ws_base, code) as sock:
        reply = await sock.history()
    if "error" in reply:
        sys.stderr.write(f"[error {reply['error']}]\n")
        return 1
    print(json.dumps(reply.get("history", []), indent=2, ensure_ascii=False))
    return 0


async def cmd_interactive(ws_base: str, code: str) -> int:
    async with RelaySocket(ws_base, code) as sock:
        await sock.join()

        async def _pump() -> None:
            while True:
                print_event(await sock.recv())

        reader = asyncio.create_task(_pump())
        sys.stderr.write("Interactive mode. Each line you type is sent to the session. Ctrl+C to quit.\n")
        sys.stderr.flush()
        try:
            while True:
                line = await _stdin_lines()
                if not line:
                    return 0
                line = line.rstrip("\n")
                if line:
                    await sock.copy(line)
        finally:
            reader.cancel()


async def main(argv: Optional[list] = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the clipboard relay")
    parser.add_argument("--http", default="http://localhost:8000", help="HTTP base, e.g. http://localhost:8000")
    parser.add_argument("--ws", default="ws://localhost:8000", help="WS base, e.g. ws://localhost:8000")

    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("new", help="Create a session and print its code")
    for name, help_text in (
        ("check", "Show whether a session exists and how many devices are in it"),
        ("history", "Print the session's clipboard history"),
        ("listen", "Join a session and print every pasted text"),
        ("interactive", "Join a session; stdin lines are sent, incoming text is printed"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("code")
    p_send = sub.add_parser("send", help="Join a session and send one text")
    p_send.add_argument("code")
    p_send.add_argument("text")

    args = parser.parse_args(argv)

    if args.cmd in ("new", "check"):
        async with HttpClient(args.http) as http:
            if args.cmd == "new":
                print(await http.new_session())
            else:
                print(json.dumps(await http.check_session(args.code), indent=2))
        return 0

    code = args.code.strip().upper()
    if args.cmd == "listen":
        return await cmd_listen(args.ws, code)
    if args.cmd == "send":
        return await cmd_send(args.ws, code, args.text)
    if args.cmd == "history":
        return await cmd_history(args.ws, code)
    if args.cmd == "interactive":
        return await cmd_interactive(args.ws, code)
    return 2


if __name__ == "__main__":
    try:
        raise SystemExit(asyncio.run(main()))
    except KeyboardInterrupt:
        raise SystemExit(130)
