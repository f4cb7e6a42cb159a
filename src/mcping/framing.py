"""Reassemble a length-prefixed packet from arbitrarily fragmented reads.

A stream socket may deliver the response in any number of pieces, and a
status response with a server icon is usually larger than one TCP segment.
The accumulator buffers whatever arrives, resolves the VarInt length prefix
as soon as enough leading bytes exist, then waits until the declared number
of bytes follows it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from mcping.codec import decode_varint
from mcping.errors import InvalidResponseError, NoDataError, UnexpectedEndError

if TYPE_CHECKING:
    from mcping.transport import Stream

log = logging.getLogger(__name__)

# Largest packet the protocol allows (a 3-byte VarInt length)
MAX_PACKET_LENGTH = 2**21 - 1


class FramingState(Enum):
    """Progress of a PacketAccumulator."""

    AWAITING_LENGTH = "awaiting_length"
    AWAITING_FULL_PACKET = "awaiting_full_packet"
    COMPLETE = "complete"


class PacketAccumulator:
    """Collects bytes until one complete packet is buffered."""

    def __init__(self) -> None:
        self.state = FramingState.AWAITING_LENGTH
        self.declared_length: int | None = None
        self.prefix_size: int | None = None
        self._buffer = bytearray()

    @property
    def complete(self) -> bool:
        """Whether a full packet has been buffered."""
        return self.state is FramingState.COMPLETE

    @property
    def buffered(self) -> int:
        """Number of bytes received so far."""
        return len(self._buffer)

    def feed(self, data: bytes) -> bool:
        """Append received bytes and advance as far as they allow.

        Returns True once the packet is complete. Both the length and the
        payload can be resolved by the same call.

        Raises:
            VarIntTooBigError: If the length prefix is malformed.
            InvalidResponseError: If the declared length is out of range.
        """
        if self.complete:
            msg = "Packet is already complete"
            raise RuntimeError(msg)

        self._buffer.extend(data)

        if self.state is FramingState.AWAITING_LENGTH:
            self._resolve_length()

        if self.state is FramingState.AWAITING_FULL_PACKET:
            received = len(self._buffer) - self.prefix_size
            if received >= self.declared_length:
                self.state = FramingState.COMPLETE
                log.debug("Packet complete: %d byte(s)", self.declared_length)

        return self.complete

    def _resolve_length(self) -> None:
        try:
            length, prefix_size = decode_varint(self._buffer)
        except UnexpectedEndError:
            # Not enough bytes for the length prefix yet
            return

        if not 0 <= length <= MAX_PACKET_LENGTH:
            msg = f"Declared packet length {length} is out of range"
            raise InvalidResponseError(msg)

        self.declared_length = length
        self.prefix_size = prefix_size
        self.state = FramingState.AWAITING_FULL_PACKET
        log.debug(
            "Packet length resolved: %d byte(s) after a %d byte prefix",
            length,
            prefix_size,
        )

    def finish(self) -> None:
        """Handle end-of-stream arriving before the packet is complete.

        Raises:
            NoDataError: If no bytes were ever received.
            UnexpectedEndError: If the stream ended part way through.
        """
        if self.complete:
            return
        if not self._buffer:
            msg = "Server closed the connection without sending any data"
            raise NoDataError(msg)
        if self.state is FramingState.AWAITING_LENGTH:
            msg = (
                f"Connection closed after {len(self._buffer)} byte(s), "
                "before the packet length was known"
            )
        else:
            msg = (
                f"Connection closed after "
                f"{len(self._buffer) - self.prefix_size} of "
                f"{self.declared_length} packet byte(s)"
            )
        raise UnexpectedEndError(msg)

    @property
    def packet(self) -> bytes:
        """The complete packet, including its length prefix."""
        if not self.complete:
            msg = "Packet is not complete yet"
            raise RuntimeError(msg)
        return bytes(self._buffer[: self.prefix_size + self.declared_length])

    @property
    def remainder(self) -> bytes:
        """Bytes received past the end of the packet."""
        if not self.complete:
            return b""
        return bytes(self._buffer[self.prefix_size + self.declared_length :])


def read_packet(stream: Stream) -> bytes:
    """Read from the stream until one whole packet has arrived.

    Only one read is outstanding at a time. A read returning None marks the
    end of the stream; an empty read is skipped.
    """
    accumulator = PacketAccumulator()
    while not accumulator.complete:
        chunk = stream.read()
        if chunk is None:
            # Always raises, the packet is still incomplete here
            accumulator.finish()
        accumulator.feed(chunk)
        log.debug("Read %d byte(s), %d buffered", len(chunk), accumulator.buffered)

    if accumulator.remainder:
        log.debug("Ignoring %d trailing byte(s)", len(accumulator.remainder))
    return accumulator.packet
