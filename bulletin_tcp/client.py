"""Interactive client for the bulletin service."""

from __future__ import annotations

import argparse
import re
import socket
import sys
from typing import TextIO

from .protocol import (
    STRING_LENGTH,
    ConnectionClosed,
    ProtocolError,
    StatusCode,
    recv_message,
    send_message,
    status_text,
)

__all__ = ["Client", "menu_text", "run_menu", "main"]

_GREETING_LIMIT = 1024
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_EXIT_CHOICE = 4


def _leading_int(text: str) -> int | None:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def _as_status(reply: str) -> int:
    """Turn a reply payload into a StatusCode, or a plain int if unknown."""
    code = _leading_int(reply)
    if code is None:
        return 0
    try:
        return StatusCode(code)
    except ValueError:
        return code


class Client:
    """A connection to the bulletin server."""

    def __init__(self, sock: socket.socket) -> None:
        self.sock = sock
        self.greeting: int | None = None

    @classmethod
    def connect(cls, host: str, port: int) -> "Client":
        """Connect to *host*:*port* and read the server's greeting."""
        sock = socket.create_connection((host, port))
        client = cls(sock)
        try:
            client.greeting = _as_status(recv_message(sock, _GREETING_LIMIT))
        except Exception:
            sock.close()
            raise
        return client

    def _request(self, message: str) -> int:
        send_message(self.sock, message)
        return _as_status(recv_message(self.sock))

    def login(self, username: str) -> int:
        """Ask to log in as *username*; return the server's status."""
        return self._request(f"USER {username}")

    def post_article(self, article: str) -> int:
        """Post *article*; return the server's status."""
        return self._request(f"POST {article}")

    def logout(self) -> int:
        """Ask to log out; return the server's status."""
        return self._request("BYE")

    def close(self) -> None:
        """Close the connection."""
        self.sock.close()

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


def menu_text() -> str:
    """Return the menu shown before each choice."""
    rule = "-" * 66
    return (
        f"\n {rule}\n"
        "Menu:\n"
        "1. Log in\n"
        "2. Post message\n"
        "3. Logout\n"
        "4. Exit\n"
        f"{rule}\n"
    )


def _read_text(stdin: TextIO) -> str | None:
    line = stdin.readline()
    if line == "":
        return None
    return line.rstrip("\n")[: STRING_LENGTH - 1]


def run_menu(client: Client, stdin: TextIO, stdout: TextIO) -> None:
    """Drive *client* from a numbered menu until the user exits or input ends."""
    while True:
        stdout.write(menu_text())
        stdout.write("Enter your choice(1-4): ")
        stdout.flush()
        line = stdin.readline()
        if line == "":
            return
        choice = _leading_int(line)

        try:
            if choice == 1:
                stdout.write("Enter username: ")
                stdout.flush()
                username = _read_text(stdin)
                if username is None:
                    return
                status = client.login(username)
            elif choice == 2:
                stdout.write("Post article: ")
                stdout.flush()
                article = _read_text(stdin)
                if article is None:
                    return
                status = client.post_article(article)
            elif choice == 3:
                status = client.logout()
            elif choice == _EXIT_CHOICE:
                return
            else:
                stdout.write("Invalid choice. Please enter a valid option (1-4).\n")
                continue
        except ConnectionClosed:
            stdout.write("Server disconnect\n")
            return
        except ProtocolError:
            stdout.write("Invalid message length. Disconnecting Server.\n")
            return

        stdout.write(status_text(status) + "\n")


def main(argv: list[str] | None = None) -> int:
    """Connect to a bulletin server and run the interactive menu."""
    parser = argparse.ArgumentParser(
        prog="bulletin-client", description="Talk to a bulletin server."
    )
    parser.add_argument("ip_address", help="server IP address")
    parser.add_argument("port", type=int, help="server port number")
    args = parser.parse_args(argv)

    try:
        client = Client.connect(args.ip_address, args.port)
    except (OSError, ProtocolError) as exc:
        print(f"Error connecting to the server: {exc}", file=sys.stderr)
        return 1

    with client:
        print(status_text(client.greeting if client.greeting is not None else 0))
        run_menu(client, sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())