"""Request handling for the bulletin server: login, logout and posting."""

from __future__ import annotations

import logging
import os
import threading
from enum import IntEnum
from pathlib import Path
from typing import Iterator

from .protocol import StatusCode
from .sessions import SessionStore

__all__ = [
    "DEFAULT_ACCOUNTS_PATH",
    "AccountStatus",
    "Verdict",
    "verify_account",
    "RequestHandler",
]

DEFAULT_ACCOUNTS_PATH = "./TCP_Server/database/account.txt"

logger = logging.getLogger(__name__)


class AccountStatus(IntEnum):
    """Status column of the accounts file."""

    BAN = 0
    ACTIVE = 1


class Verdict(IntEnum):
    """Outcome of looking an account up in the accounts file."""

    ACCOUNT_NOT_EXIST = 1
    ACCOUNT_BANNED = 2
    ACCOUNT_VALID = 5


def _records(path: str | os.PathLike[str]) -> Iterator[tuple[str, int]]:
    """Yield (username, status) pairs until a status is not a number."""
    with open(path, encoding="utf-8") as handle:
        tokens = handle.read().split()
    for name, status in zip(tokens[0::2], tokens[1::2]):
        try:
            yield name, int(status)
        except ValueError:
            return


def verify_account(path: str | os.PathLike[str], account: str) -> Verdict:
    """Look *account* up in the whitespace-separated accounts file at *path*.

    The first entry for the name whose status is banned or active decides;
    entries with any other status are ignored.
    """
    for name, status in _records(path):
        if name != account:
            continue
        if status == AccountStatus.BAN:
            return Verdict.ACCOUNT_BANNED
        if status == AccountStatus.ACTIVE:
            return Verdict.ACCOUNT_VALID
    return Verdict.ACCOUNT_NOT_EXIST


def _parse_request(message: str) -> tuple[str, str]:
    """Split a request into its keyword and the rest of its first line."""
    parts = message.split(None, 1)
    if not parts:
        return "", ""
    keyword = parts[0]
    rest = parts[1] if len(parts) > 1 else ""
    return keyword, rest.split("\n", 1)[0]


class RequestHandler:
    """Turns client requests into status codes, tracking who is logged in.

    With *single_login* set, an account logged in on one connection cannot
    log in on another at the same time.
    """

    def __init__(
        self,
        accounts_path: str | os.PathLike[str],
        sessions: SessionStore | None = None,
        single_login: bool = True,
    ) -> None:
        self.accounts_path = Path(accounts_path)
        self.sessions = sessions if sessions is not None else SessionStore()
        self.single_login = single_login
        self._lock = threading.Lock()

    def is_logged_in(self, client_id: int) -> bool:
        """Return whether connection *client_id* has a session."""
        return self.sessions.find_by_socket(client_id) is not None

    def login(self, client_id: int, username: str) -> StatusCode:
        """Log *username* in on connection *client_id*."""
        with self._lock:
            if self.is_logged_in(client_id):
                return StatusCode.ACCOUNT_ALREADY_LOGGED_IN

            if self.single_login:
                existing = self.sessions.find_by_username(username)
                if existing is not None and existing.socket_id != client_id:
                    return StatusCode.ACCOUNT_ALREADY_LOGGED_IN_ANOTHER_DEVICE

            verdict = verify_account(self.accounts_path, username)
            if verdict is Verdict.ACCOUNT_BANNED:
                return StatusCode.ACCOUNT_LOCKED
            if verdict is Verdict.ACCOUNT_NOT_EXIST:
                return StatusCode.ACCOUNT_NOT_FOUND

            self.sessions.add(client_id, username)
            return StatusCode.ACCOUNT_EXISTS_AND_ACTIVE

    def logout(self, client_id: int) -> StatusCode:
        """End the session on connection *client_id*."""
        with self._lock:
            if self.sessions.remove(client_id) is None:
                return StatusCode.NOT_HAVE_ACCESS
            return StatusCode.LOGOUT_SUCCESSFULLY

    def post_article(self, client_id: int, article: str) -> StatusCode:
        """Accept an article from a logged-in connection."""
        if not self.is_logged_in(client_id):
            return StatusCode.NOT_HAVE_ACCESS
        logger.info("Client %d post article: %s", client_id, article)
        return StatusCode.POST_SUCCESSFULLY

    def handle(self, client_id: int, message: str) -> StatusCode:
        """Dispatch one request line and return the status to reply with."""
        keyword, parameter = _parse_request(message)
        if keyword == "USER":
            return self.login(client_id, parameter)
        if keyword == "POST":
            return self.post_article(client_id, parameter)
        if keyword == "BYE":
            return self.logout(client_id)
        return StatusCode.UNDEFINED_MESSAGE_TYPE

    def disconnect(self, client_id: int) -> None:
        """Forget any session held by a connection that has gone away."""
        self.sessions.remove(client_id)