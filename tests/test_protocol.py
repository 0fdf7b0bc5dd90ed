import socket

import pytest

from bulletin_tcp.protocol import (
    ConnectionClosed,
    ProtocolError,
    StatusCode,
    decode_length,
    encode_frame,
    recv_message,
    send_message,
    status_text,
)


@pytest.fixture
def pair():
    left, right = socket.socketpair()
    yield left, right
    left.close()
    right.close()


def test_encode_frame_wire_bytes():
    assert encode_frame("BYE") == b"   3BYE"


@pytest.mark.parametrize("message", ["USER admin", "POST Hello", "BYE", "foo", "USER "])
def test_header_decodes_to_payload_length(message):
    frame = encode_frame(message)
    assert decode_length(frame[:4], 100) == len(message.encode())
    assert frame[4:] == message.encode()


def test_encode_uses_byte_length_for_non_ascii():
    message = "POST café"
    frame = encode_frame(message)
    assert decode_length(frame[:4], 100) == len(message.encode("utf-8"))


def test_encode_status_code_as_decimal_text():
    assert encode_frame(StatusCode.POST_SUCCESSFULLY)[4:] == b"120"


def test_encode_too_long_raises():
    with pytest.raises(ProtocolError):
        encode_frame("x" * 10000)


@pytest.mark.parametrize("header", [b"abcd", b"   0", b"-005", b"12ab", b"    ", b"\0\0\0\0"])
def test_decode_length_rejects_bad_headers(header):
    with pytest.raises(ProtocolError):
        decode_length(header, 100)


def test_decode_length_respects_limit():
    header = encode_frame("y" * 50)[:4]
    assert decode_length(header, 50) == 50
    with pytest.raises(ProtocolError):
        decode_length(header, 49)


@pytest.mark.parametrize("message", ["USER admin", "POST Hello. I am tungbt", "BYE", "foo"])
def test_send_recv_round_trip(pair, message):
    left, right = pair
    send_message(left, message)
    assert recv_message(right, 2048) == message


def test_recv_several_frames_in_order(pair):
    left, right = pair
    for message in ["USER ductq", "POST Hello", "BYE"]:
        send_message(left, message)
    assert [recv_message(right) for _ in range(3)] == ["USER ductq", "POST Hello", "BYE"]


def test_recv_status_round_trip(pair):
    left, right = pair
    send_message(left, StatusCode.ACCOUNT_EXISTS_AND_ACTIVE)
    reply = recv_message(right)
    assert reply == "110"
    assert status_text(reply) == "Login successfully."


def test_recv_on_closed_peer_raises(pair):
    left, right = pair
    left.close()
    with pytest.raises(ConnectionClosed):
        recv_message(right)


def test_recv_truncated_payload_raises(pair):
    left, right = pair
    left.sendall(encode_frame("POST Hello")[:7])
    left.shutdown(socket.SHUT_WR)
    with pytest.raises(ConnectionClosed):
        recv_message(right)


def test_recv_over_limit_raises(pair):
    left, right = pair
    send_message(left, "z" * 150)
    with pytest.raises(ProtocolError):
        recv_message(right, 100)


@pytest.mark.parametrize(
    "status, text",
    [
        ("100", "Connection to the service successful."),
        ("110", "Login successfully."),
        ("211", "Login failed: Account is locked."),
        ("212", "Login failed: Account does not exist."),
        ("213", "Login failed: Account is already logged in on another client."),
        ("214", "Login failed: You are already logged in."),
        ("300", "Login failed: Undefined message request type."),
        ("120", "Post article successful."),
        ("221", "Cannot use the service, you are not logged in."),
        ("130", "Logout successful."),
    ],
)
def test_status_text_known_codes(status, text):
    assert status_text(status) == text
    assert status_text(int(status)) == text


def test_status_text_unknown_code():
    assert status_text("999") == "Unknown status code: 999"


def test_status_text_non_numeric_is_zero():
    assert status_text("abc") == "Unknown status code: 0"


def test_status_text_parses_leading_digits():
    assert status_text(" 130 extra") == status_text(StatusCode.LOGOUT_SUCCESSFULLY)


def test_status_code_values_match_protocol():
    assert StatusCode(110) is StatusCode.ACCOUNT_EXISTS_AND_ACTIVE
    assert StatusCode(213) is StatusCode.ACCOUNT_ALREADY_LOGGED_IN_ANOTHER_DEVICE
    assert StatusCode(300) is StatusCode.UNDEFINED_MESSAGE_TYPE