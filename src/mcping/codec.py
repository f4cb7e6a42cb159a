"""Encoding and decoding of the primitive Minecraft wire types."""

from __future__ import annotations

import struct

from mcping.errors import UnexpectedEndError, VarIntTooBigError

SEGMENT_BITS = 0x7F
CONTINUE_BIT = 0x80

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
_UINT32_MASK = 0xFFFFFFFF
_VARINT_MAX_BITS = 32


def encode_varint(value: int) -> bytes:
    """Encode a signed 32-bit integer as a VarInt.

    Negative values are written as their unsigned 32-bit pattern, so they
    always take five bytes.

    Raises:
        ValueError: If the value does not fit in 32 bits.
    """
    if not _INT32_MIN <= value <= _INT32_MAX:
        msg = f"Value {value} is out of range for a VarInt"
        raise ValueError(msg)

    remaining = value & _UINT32_MASK
    out = bytearray()
    while True:
        if remaining & ~SEGMENT_BITS == 0:
            out.append(remaining)
            return bytes(out)
        out.append(remaining & SEGMENT_BITS | CONTINUE_BIT)
        remaining >>= 7


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a VarInt starting at ``offset``.

    Returns:
        A ``(value, consumed)`` tuple, where ``consumed`` is the number of
        bytes the VarInt occupied.

    Raises:
        UnexpectedEndError: If the data ends before the terminating byte.
        VarIntTooBigError: If the VarInt is longer than five bytes.
    """
    result = 0
    shift = 0
    position = offset
    while True:
        if position >= len(data):
            msg = f"Data ended after {position - offset} byte(s) of a VarInt"
            raise UnexpectedEndError(msg)

        byte = data[position]
        position += 1
        result |= (byte & SEGMENT_BITS) << shift

        if not byte & CONTINUE_BIT:
            break

        shift += 7
        if shift >= _VARINT_MAX_BITS:
            msg = "VarInt is longer than 5 bytes"
            raise VarIntTooBigError(msg)

    result &= _UINT32_MASK
    if result & 0x80000000:
        result -= 1 << 32
    return result, position - offset


def encode_string(value: str) -> bytes:
    """Encode a string as a VarInt byte length followed by UTF-8 bytes."""
    raw = value.encode("utf-8")
    return encode_varint(len(raw)) + raw


def decode_string(data: bytes) -> str:
    """Decode a length-prefixed string.

    The packet has already been framed, so the prefix is skipped and every
    remaining byte is decoded as UTF-8.
    """
    _, consumed = decode_varint(data)
    return bytes(data[consumed:]).decode("utf-8")


def encode_ushort(value: int) -> bytes:
    """Encode an unsigned short as 2 big-endian bytes."""
    if not 0 <= value <= 0xFFFF:
        msg = f"Value {value} is out of range for an unsigned short"
        raise ValueError(msg)
    return struct.pack(">H", value)


def encode_long(value: int) -> bytes:
    """Encode a signed long as 8 big-endian bytes."""
    return struct.pack(">q", value)


def decode_long(data: bytes, offset: int = 0) -> int:
    """Decode a signed big-endian long starting at ``offset``."""
    if len(data) - offset < 8:
        msg = f"Expected 8 bytes for a long, got {len(data) - offset}"
        raise UnexpectedEndError(msg)
    (value,) = struct.unpack_from(">q", data, offset)
    return value
