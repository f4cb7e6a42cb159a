"""High-level server list ping client."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from mcping.errors import InvalidResponseError, TransportError
from mcping.framing import read_packet
from mcping.protocol import (
    Handshake,
    PingRequest,
    PongResponse,
    StatusRequest,
    StatusResponse,
)
from mcping.status import MinecraftStatus
from mcping.transport import open_stream

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from mcping.protocol import OutboundPacket
    from mcping.transport import Stream

    Opener = Callable[[str, int, float | None], Stream]

log = logging.getLogger(__name__)

DEFAULT_PORT = 25565
_STATUS_RESPONSE_ID = 0x00
_PONG_RESPONSE_ID = 0x01


class StatusClient:
    """Queries the status of a single Minecraft server.

    The connection is left open after ``status()`` so that a latency ping can
    follow on the same stream. Call ``close()`` or use the client as a context
    manager to release it.
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        timeout: float | None = 5.0,
        opener: Opener | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self._opener = opener or open_stream
        self._stream: Stream | None = None
        self._status_received = False

    @property
    def connected(self) -> bool:
        """Whether the client holds an open stream."""
        return self._stream is not None

    def connect(self) -> None:
        """Open the connection to the server."""
        self._stream = self._opener(self.host, self.port, self.timeout)
        self._status_received = False

    def close(self) -> None:
        """Close the connection."""
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def __enter__(self) -> StatusClient:
        if not self.connected:
            self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def status(self) -> MinecraftStatus:
        """Perform the handshake and return the decoded status.

        Connects first if needed. Errors are raised once, never retried.
        """
        if self._stream is None:
            self.connect()

        self._send(Handshake(server_address=self.host, server_port=self.port))
        self._send(StatusRequest())

        response = StatusResponse.parse(self._read())
        if response.packet_id != _STATUS_RESPONSE_ID:
            msg = (
                "Expected a status response, "
                f"got packet id {response.packet_id:#04x}"
            )
            raise InvalidResponseError(msg)
        log.debug("Status JSON (%d chars)", len(response.json_payload))

        status = MinecraftStatus.from_json(response.json_payload)
        self._status_received = True
        return status

    def latency(self) -> float:
        """Measure the round trip of a ping packet in milliseconds.

        Must follow ``status()`` on the same connection.
        """
        if not self._status_received:
            msg = "latency() requires a status() call on the same connection"
            raise RuntimeError(msg)

        token = time.time_ns() & 0x7FFFFFFFFFFFFFFF
        started = time.perf_counter()
        self._send(PingRequest(payload=token))
        pong = PongResponse.parse(self._read())
        elapsed = (time.perf_counter() - started) * 1000

        if pong.packet_id != _PONG_RESPONSE_ID:
            msg = f"Expected a pong response, got packet id {pong.packet_id:#04x}"
            raise InvalidResponseError(msg)
        if pong.payload != token:
            msg = f"Pong payload {pong.payload} does not match ping {token}"
            raise InvalidResponseError(msg)
        return elapsed

    def _send(self, packet: OutboundPacket) -> None:
        """Send an encoded packet over the stream."""
        if self._stream is None:
            msg = "Not connected"
            raise TransportError(msg)
        data = packet.encode()
        log.debug("Sending %s (%d bytes)", type(packet).__name__, len(data))
        self._stream.write(data)

    def _read(self) -> bytes:
        if self._stream is None:
            msg = "Not connected"
            raise TransportError(msg)
        return read_packet(self._stream)


def ping(
    host: str, port: int = DEFAULT_PORT, timeout: float | None = 5.0
) -> MinecraftStatus:
    """Fetch the status of a server over a fresh connection.

    The connection is closed before returning.
    """
    with StatusClient(host, port, timeout=timeout) as client:
        return client.status()
