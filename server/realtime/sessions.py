"""
In-memory clipboard sessions.

Design:
- One `Session` per issued code: current text, bounded history (most recent first)
  and creation/activity timestamps.
- `SessionStore` owns the code -> Session map. The map itself is guarded by one lock;
  each Session carries its own lock for text/history mutation, so writes to different
  codes never wait on each other.
- Nothing survives the process. Sessions leave the store only through `evict_idle`.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from .codes import SessionCodeGenerator
from .errors import InvalidSessionCode

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class WriteOutcome(enum.Enum):
    ACCEPTED = "accepted"
    # Empty, whitespace-only, or identical to the current text.
    REJECTED = "rejected"
    NOT_FOUND = "not_found"


@dataclass
class Session:
    code: str
    created_at: float
    last_activity: float
    text: str = ""
    history: List[str] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def idle_for(self, now: float) -> float:
        return now - self.last_activity


@dataclass(frozen=True)
class SessionInfo:
    code: str
    created_at: float
    last_activity: float
    history_size: int


class SessionStore:
    def __init__(
        self,
        generator: Optional[SessionCodeGenerator] = None,
        *,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        clock: Callable[[], float] = time.time,
    ):
        self.generator = generator or SessionCodeGenerator()
        self.history_limit = history_limit
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def now(self) -> float:
        return self._clock()

    def _get(self, code: str) -> Optional[Session]:
        return self._sessions.get(code)

    def _require(self, code: str) -> Session:
        session = self._get(code)
        if session is None:
            raise InvalidSessionCode(code)
        return session

    def create(self) -> str:
        """Allocate a new empty session and return its code."""
        with self._lock:
            # Generation and insertion share the lock so two creates cannot pick the same code.
            code = self.generator.generate(is_taken=self._sessions.__contains__)
            now = self._clock()
            self._sessions[code] = Session(code=code, created_at=now, last_activity=now)
        logger.info("New session created: %s", code)
        return code

    def exists(self, code: str) -> bool:
        return code in self._sessions

    def get_text(self, code: str) -> str:
        return self._require(code).text

    def get_history(self, code: str) -> List[str]:
        session = self._require(code)
        with session.lock:
            return list(session.history)

    def set_text(self, code: str, text: str) -> WriteOutcome:
        session = self._get(code)
        if session is None:
            return WriteOutcome.NOT_FOUND
        if not text or not text.strip():
            return WriteOutcome.REJECTED

        with session.lock:
            if text == session.text:
                return WriteOutcome.REJECTED
            session.text = text
            if not session.history or session.history[0] != text:
                session.history.insert(0, text)
                del session.history[self.history_limit:]
            session.last_activity = self._clock()
        return WriteOutcome.ACCEPTED

    def touch(self, code: str) -> None:
        session = self._require(code)
        with session.lock:
            session.last_activity = self._clock()

    def idle_codes(self, now: float, timeout: float) -> List[str]:
        with self._lock:
            return [code for code, s in self._sessions.items() if s.idle_for(now) > timeout]

    def evict_idle(self, now: float, timeout: float, codes: Optional[Iterable[str]] = None) -> List[str]:
        """
        Remove sessions idle for longer than `timeout` seconds and return their codes.

        `codes` restricts the sweep to the given candidates; idleness is re-checked
        for each one, so a session touched since it was listed survives.
        """
        removed: List[str] = []
        with self._lock:
            candidates = list(self._sessions) if codes is None else list(codes)
            for code in candidates:
                session = self._sessions.get(code)
                if session is None or session.idle_for(now) <= timeout:
                    continue
                del self._sessions[code]
                removed.append(code)
        for code in removed:
            logger.info("Cleaning up inactive session: %s", code)
        return removed

    def snapshot(self) -> List[SessionInfo]:
        with self._lock:
            sessions = list(self._sessions.values())
        return [
            SessionInfo(
                code=s.code,
                created_at=s.created_at,
                last_activity=s.last_activity,
                history_size=len(s.history),
            )
            for s in sessions
        ]
