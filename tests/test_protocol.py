"""Tests for the server list ping packets."""

import pytest

from mcping.codec import decode_varint, encode_string, encode_varint
from mcping.errors import InvalidResponseError, UnexpectedEndError
from mcping.protocol import (
    Handshake,
    NextState,
    PingRequest,
    PongResponse,
    StatusRequest,
    StatusResponse,
)


def _frame(body: bytes) -> bytes:
    return encode_varint(len(body)) + body


class TestHandshake:
    def test_exact_bytes(self):
        data = Handshake(server_address="localhost", server_port=25565).encode()

        body = (
            b"\x00"  # packet id
            + b"\xff\xff\xff\xff\x0f"  # protocol version -1
            + b"\x09localhost"
            + b"\x63\xdd"  # port, big-endian
            + b"\x01"  # next state: status
        )
        assert data == bytes([len(body)]) + body

    def test_length_prefix_matches_body(self):
        data = Handshake(server_address="mc.example.com", server_port=25566).encode()
        length, consumed = decode_varint(data)
        assert length == len(data) - consumed

    def test_defaults(self):
        packet = Handshake(server_address="a", server_port=1)
        assert packet.protocol_version == -1
        assert packet.next_state == NextState.STATUS
        assert list(NextState) == [NextState.STATUS]
        assert packet.packet_id == 0x00

    def test_port_is_fixed_width(self):
        data = Handshake(server_address="a", server_port=1).encode()
        # [len][id][5-byte -1][\x01 a][\x00\x01][\x01]
        assert data[-3:-1] == b"\x00\x01"

    def test_unicode_address(self):
        data = Handshake(server_address="mïnecraft", server_port=25565).encode()
        assert encode_string("mïnecraft") in data

    def test_port_out_of_range(self):
        with pytest.raises(ValueError, match="unsigned short"):
            Handshake(server_address="a", server_port=70000).encode()


class TestStatusRequest:
    def test_exact_bytes(self):
        assert StatusRequest().encode() == b"\x01\x00"


class TestPingRequest:
    def test_exact_bytes(self):
        data = PingRequest(payload=1).encode()
        assert data == b"\x09\x01" + b"\x00" * 7 + b"\x01"


class TestStatusResponseParse:
    def test_parse(self):
        text = '{"version":{"name":"1.20.6","protocol":766}}'
        buffer = _frame(b"\x00" + encode_string(text))

        response = StatusResponse.parse(buffer)

        assert response.packet_id == 0x00
        assert response.json_payload == text
        assert response.length == len(buffer) - 1

    def test_multibyte_json(self):
        text = '{"description":"Bienvenue à bord ✨"}'
        buffer = _frame(b"\x00" + encode_string(text))
        assert StatusResponse.parse(buffer).json_payload == text

    def test_ignores_bytes_past_declared_length(self):
        buffer = _frame(b"\x00" + encode_string("{}")) + b"\x01\x00"
        assert StatusResponse.parse(buffer).json_payload == "{}"

    def test_truncated_buffer(self):
        buffer = _frame(b"\x00" + encode_string("{}"))
        with pytest.raises(UnexpectedEndError):
            StatusResponse.parse(buffer[:-1])

    def test_invalid_utf8(self):
        buffer = _frame(b"\x00\x02\xff\xfe")
        with pytest.raises(InvalidResponseError, match="UTF-8"):
            StatusResponse.parse(buffer)

    def test_missing_string_length(self):
        # Declared packet ends inside the string's VarInt prefix
        buffer = _frame(b"\x00\x80")
        with pytest.raises(InvalidResponseError):
            StatusResponse.parse(buffer)

    def test_negative_length(self):
        with pytest.raises(InvalidResponseError, match="negative"):
            StatusResponse.parse(encode_varint(-1) + b"\x00")


class TestPongResponseParse:
    def test_parse(self):
        buffer = _frame(b"\x01" + (123456789).to_bytes(8, "big", signed=True))
        pong = PongResponse.parse(buffer)
        assert pong.packet_id == 0x01
        assert pong.payload == 123456789

    def test_short_payload(self):
        with pytest.raises(InvalidResponseError, match="truncated"):
            PongResponse.parse(_frame(b"\x01\x00\x00"))
