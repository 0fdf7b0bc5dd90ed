"""Thread-safe registry of logged-in client sessions."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterator

__all__ = ["LOGGED_IN", "NOT_LOGGED_IN", "Session", "SessionStore"]

LOGGED_IN = 3
NOT_LOGGED_IN = 4

_TABLE_HEADER = "Socket ID\tClient Address\t\t\tUsername\tLogin Status\n"


@dataclass(frozen=True)
class Session:
    """One client connection bound to a logged-in username."""

    socket_id: int
    username: str
    client_addr: str = ""
    port: int = 0
    login_status: int = LOGGED_IN


class SessionStore:
    """Sessions keyed by connection, newest first, guarded by a lock."""

    def __init__(self) -> None:
        self._sessions: list[Session] = []
        self._lock = threading.Lock()

    def add(
        self,
        socket_id: int,
        username: str,
        client_addr: str = "",
        port: int = 0,
    ) -> Session:
        """Record a new session and return it; it becomes the first entry."""
        session = Session(socket_id, username, client_addr, port)
        with self._lock:
            self._sessions.insert(0, session)
        return session

    def find_by_username(self, username: str) -> Session | None:
        """Return the newest session for *username*, or None."""
        with self._lock:
            return next((s for s in self._sessions if s.username == username), None)

    def find_by_socket(self, socket_id: int) -> Session | None:
        """Return the newest session on connection *socket_id*, or None."""
        with self._lock:
            return next((s for s in self._sessions if s.socket_id == socket_id), None)

    def remove(self, socket_id: int) -> Session | None:
        """Remove the newest session on *socket_id* and return it, or None."""
        with self._lock:
            for position, session in enumerate(self._sessions):
                if session.socket_id == socket_id:
                    del self._sessions[position]
                    return session
        return None

    def clear(self) -> None:
        """Drop every session."""
        with self._lock:
            self._sessions.clear()

    def format_table(self) -> str:
        """Render all sessions as a tab-separated table with a header line."""
        with self._lock:
            rows = [
                f"{s.socket_id}\t\t{s.client_addr}\t\t{s.username}\t\t{s.login_status}\n"
                for s in self._sessions
            ]
        return _TABLE_HEADER + "".join(rows)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        with self._lock:
            snapshot = list(self._sessions)
        return iter(snapshot)