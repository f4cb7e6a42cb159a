"""Server List Ping packets and their wire layouts."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar

from mcping.codec import (
    decode_long,
    decode_string,
    decode_varint,
    encode_long,
    encode_string,
    encode_ushort,
    encode_varint,
)
from mcping.errors import InvalidResponseError, UnexpectedEndError, VarIntError

# Sent as the handshake protocol version when only the status is wanted
ANY_PROTOCOL_VERSION = -1


class NextState(IntEnum):
    """State the handshake switches the connection to."""

    STATUS = 1


class OutboundPacket:
    """A packet sent from the client.

    Wire format: [length:VarInt][packet_id:VarInt][fields]
    Length covers the packet id and the fields.
    """

    packet_id: ClassVar[int]

    def encode_fields(self) -> bytes:
        """Encode the packet-specific fields."""
        return b""

    def encode(self) -> bytes:
        """Encode the packet into bytes for transmission."""
        body = encode_varint(self.packet_id) + self.encode_fields()
        return encode_varint(len(body)) + body


@dataclass(frozen=True)
class Handshake(OutboundPacket):
    """Handshake switching the connection into the status state."""

    packet_id: ClassVar[int] = 0x00

    server_address: str
    server_port: int
    protocol_version: int = ANY_PROTOCOL_VERSION
    next_state: int = NextState.STATUS

    def encode_fields(self) -> bytes:
        return (
            encode_varint(self.protocol_version)
            + encode_string(self.server_address)
            + encode_ushort(self.server_port)
            + encode_varint(self.next_state)
        )


@dataclass(frozen=True)
class StatusRequest(OutboundPacket):
    """Request for the status document. Has no fields."""

    packet_id: ClassVar[int] = 0x00


@dataclass(frozen=True)
class PingRequest(OutboundPacket):
    """Ping carrying an arbitrary long that the server echoes back."""

    packet_id: ClassVar[int] = 0x01

    payload: int

    def encode_fields(self) -> bytes:
        return encode_long(self.payload)


def _split_frame(buffer: bytes) -> tuple[int, int, bytes]:
    """Split a framed packet into (length, packet_id, fields).

    Raises UnexpectedEndError if the buffer holds fewer bytes than the
    length prefix declares.
    """
    length, prefix_size = decode_varint(buffer)
    if length < 0:
        msg = f"Packet declares a negative length ({length})"
        raise InvalidResponseError(msg)
    available = len(buffer) - prefix_size
    if available < length:
        msg = f"Packet declares {length} bytes but only {available} are available"
        raise UnexpectedEndError(msg)

    body = bytes(buffer[prefix_size : prefix_size + length])
    try:
        packet_id, id_size = decode_varint(body)
    except VarIntError as e:
        msg = f"Could not read packet id: {e}"
        raise InvalidResponseError(msg) from e
    return length, packet_id, body[id_size:]


@dataclass(frozen=True)
class StatusResponse:
    """The status response carrying the JSON status document.

    Wire format: [length:VarInt][packet_id:VarInt][json:String]
    """

    length: int
    packet_id: int
    json_payload: str

    @classmethod
    def parse(cls, buffer: bytes) -> StatusResponse:
        """Parse a complete, length-prefixed status response.

        The caller is responsible for accumulating the whole packet before
        passing it here.
        """
        length, packet_id, fields = _split_frame(buffer)
        try:
            json_payload = decode_string(fields)
        except VarIntError as e:
            msg = f"Could not read the JSON string length: {e}"
            raise InvalidResponseError(msg) from e
        except UnicodeDecodeError as e:
            msg = f"Status JSON is not valid UTF-8: {e}"
            raise InvalidResponseError(msg) from e
        return cls(length=length, packet_id=packet_id, json_payload=json_payload)


@dataclass(frozen=True)
class PongResponse:
    """The server's echo of a PingRequest payload."""

    length: int
    packet_id: int
    payload: int

    @classmethod
    def parse(cls, buffer: bytes) -> PongResponse:
        """Parse a complete, length-prefixed pong packet."""
        length, packet_id, fields = _split_frame(buffer)
        try:
            payload = decode_long(fields)
        except UnexpectedEndError as e:
            msg = f"Pong payload is truncated: {e}"
            raise InvalidResponseError(msg) from e
        return cls(length=length, packet_id=packet_id, payload=payload)
