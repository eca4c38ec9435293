"""
Membership tracking (which connections are in which session).

WHY:
- Channels groups do not provide a way to list or count members.
- A connection may only be in one session at a time, and moving it must never
  expose a moment where it is in both.

Design:
- code -> set of connection_ids (broadcast targets and counts)
- connection_id -> code (reverse index, so leave/move is O(1))
Both maps change together under one lock. The registry holds identifiers only; the
connections themselves belong to the transport.
"""

from __future__ import annotations

import threading
from typing import Dict, FrozenSet, List, Optional, Set, Tuple

# (session code, member count after the change)
CountUpdate = Tuple[str, int]


class MembershipRegistry:
    def __init__(self) -> None:
        self._members: Dict[str, Set[str]] = {}
        self._session_of: Dict[str, str] = {}
        self._lock = threading.Lock()

    def _remove(self, connection_id: str) -> Optional[CountUpdate]:
        code = self._session_of.pop(connection_id, None)
        if code is None:
            return None
        members = self._members.get(code)
        if members is None:
            return code, 0
        members.discard(connection_id)
        if not members:
            # Clean up empty session sets
            del self._members[code]
        return code, len(members)

    def join(self, connection_id: str, code: str) -> Tuple[List[CountUpdate], int]:
        """
        Move `connection_id` into `code`.

        Returns the sessions it left (each with its remaining count) and the new count
        for `code`. Re-joining the current session leaves nothing.
        """
        with self._lock:
            left: List[CountUpdate] = []
            if self._session_of.get(connection_id) != code:
                update = self._remove(connection_id)
                if update is not None:
                    left.append(update)
            members = self._members.setdefault(code, set())
            members.add(connection_id)
            self._session_of[connection_id] = code
            return left, len(members)

    def leave_all(self, connection_id: str) -> List[CountUpdate]:
        with self._lock:
            update = self._remove(connection_id)
        return [update] if update is not None else []

    def discard_session(self, code: str) -> FrozenSet[str]:
        """Drop every membership in `code` and return the connections that were in it."""
        with self._lock:
            members = self._members.pop(code, set())
            for connection_id in members:
                if self._session_of.get(connection_id) == code:
                    del self._session_of[connection_id]
            return frozenset(members)

    def count(self, code: str) -> int:
        with self._lock:
            return len(self._members.get(code, ()))

    def members(self, code: str) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._members.get(code, ()))

    def session_of(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._session_of.get(connection_id)
