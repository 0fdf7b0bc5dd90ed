"""Wire protocol shared by the bulletin server and client.

Every message is framed as a four-character, right-aligned decimal length
followed by that many bytes of payload.  Replies carry a numeric status code
as their payload.
"""

from __future__ import annotations

import re
import socket
from enum import IntEnum

__all__ = [
    "STRING_LENGTH",
    "HEADER_SIZE",
    "StatusCode",
    "ProtocolError",
    "ConnectionClosed",
    "encode_frame",
    "decode_length",
    "send_message",
    "recv_message",
    "status_text",
]

STRING_LENGTH = 100
HEADER_SIZE = 4
_MAX_FRAME_LENGTH = 10**HEADER_SIZE - 1

_HEADER_NUMBER = re.compile(r"[+-]?\d+")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class StatusCode(IntEnum):
    """Status codes sent by the server in reply to a request."""

    CONNECTED_SUCCESSFULLY = 100
    ACCOUNT_EXISTS_AND_ACTIVE = 110
    POST_SUCCESSFULLY = 120
    LOGOUT_SUCCESSFULLY = 130
    ACCOUNT_LOCKED = 211
    ACCOUNT_NOT_FOUND = 212
    ACCOUNT_ALREADY_LOGGED_IN_ANOTHER_DEVICE = 213
    ACCOUNT_ALREADY_LOGGED_IN = 214
    NOT_HAVE_ACCESS = 221
    UNDEFINED_MESSAGE_TYPE = 300


class ProtocolError(Exception):
    """A frame could not be built or its length header is invalid."""


class ConnectionClosed(ConnectionError):
    """The peer closed the connection before a whole frame arrived."""


_STATUS_TEXT = {
    StatusCode.CONNECTED_SUCCESSFULLY: "Connection to the service successful.",
    StatusCode.ACCOUNT_EXISTS_AND_ACTIVE: "Login successfully.",
    StatusCode.ACCOUNT_LOCKED: "Login failed: Account is locked.",
    StatusCode.ACCOUNT_NOT_FOUND: "Login failed: Account does not exist.",
    StatusCode.ACCOUNT_ALREADY_LOGGED_IN_ANOTHER_DEVICE: (
        "Login failed: Account is already logged in on another client."
    ),
    StatusCode.ACCOUNT_ALREADY_LOGGED_IN: "Login failed: You are already logged in.",
    StatusCode.UNDEFINED_MESSAGE_TYPE: "Login failed: Undefined message request type.",
    StatusCode.POST_SUCCESSFULLY: "Post article successful.",
    StatusCode.NOT_HAVE_ACCESS: "Cannot use the service, you are not logged in.",
    StatusCode.LOGOUT_SUCCESSFULLY: "Logout successful.",
}


def _to_bytes(message: str | bytes | int) -> bytes:
    if isinstance(message, bytes):
        return message
    if isinstance(message, int):
        return str(int(message)).encode("ascii")
    return message.encode("utf-8")


def encode_frame(message: str | bytes | int) -> bytes:
    """Return the framed bytes for *message*: a 4-wide length, then the payload.

    Integers (such as a StatusCode) are sent as their decimal text.
    """
    payload = _to_bytes(message)
    if len(payload) > _MAX_FRAME_LENGTH:
        raise ProtocolError(
            f"message of {len(payload)} bytes does not fit a {HEADER_SIZE}-digit header"
        )
    return b"%4d" % len(payload) + payload


def decode_length(header: bytes, limit: int = STRING_LENGTH) -> int:
    """Parse a length header and check it lies in 1..limit.

    Leading whitespace and a sign are accepted; anything after the digits
    other than the end of the header (or a NUL) is rejected.
    """
    raw = bytes(header).split(b"\0", 1)[0]
    try:
        text = raw.decode("ascii")
    except UnicodeDecodeError as exc:
        raise ProtocolError("length header is not ASCII") from exc

    stripped = text.lstrip()
    if stripped == "" and text == "":
        length = 0
    elif _HEADER_NUMBER.fullmatch(stripped):
        length = int(stripped)
    else:
        raise ProtocolError(f"invalid length header {header!r}")

    if length <= 0 or length > limit:
        raise ProtocolError(f"invalid message length {length}")
    return length


def _recv_exactly(sock: socket.socket, count: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < count:
        chunk = sock.recv(count - len(chunks))
        if not chunk:
            raise ConnectionClosed("peer closed the connection")
        chunks.extend(chunk)
    return bytes(chunks)


def send_message(sock: socket.socket, message: str | bytes | int) -> None:
    """Send one framed message on *sock*."""
    sock.sendall(encode_frame(message))


def recv_message(sock: socket.socket, limit: int = STRING_LENGTH) -> str:
    """Receive one framed message from *sock* and return its payload as text.

    Raises ConnectionClosed if the peer goes away and ProtocolError if the
    length header is malformed or exceeds *limit*.
    """
    header = _recv_exactly(sock, HEADER_SIZE)
    length = decode_length(header, limit)
    payload = _recv_exactly(sock, length)
    return payload.decode("utf-8", errors="replace")


def _leading_int(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def status_text(status: str | int) -> str:
    """Return the human-readable description of a status reply."""
    code = int(status) if isinstance(status, int) else _leading_int(status)
    try:
        return _STATUS_TEXT[StatusCode(code)]
    except ValueError:
        return f"Unknown status code: {code}"