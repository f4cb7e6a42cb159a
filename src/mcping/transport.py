"""TCP transport used to talk to the server."""

from __future__ import annotations

import contextlib
import logging
import socket
from typing import Protocol

from mcping.errors import TransportError

log = logging.getLogger(__name__)

RECV_SIZE = 4096


class Stream(Protocol):
    """A bidirectional byte stream.

    ``read`` returns None at end-of-stream.
    """

    def write(self, data: bytes) -> None: ...

    def read(self) -> bytes | None: ...

    def close(self) -> None: ...


class SocketStream:
    """A Stream backed by a connected TCP socket."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock: socket.socket | None = sock

    @property
    def closed(self) -> bool:
        """Whether the socket has been closed."""
        return self._sock is None

    def write(self, data: bytes) -> None:
        """Send all of ``data``."""
        sock = self._require_socket()
        try:
            sock.sendall(data)
        except OSError as e:
            msg = f"Failed to send data: {e}"
            raise TransportError(msg) from e

    def read(self) -> bytes | None:
        """Receive the next chunk, or None if the server closed the connection.

        A socket timeout is reported as a TransportError.
        """
        sock = self._require_socket()
        try:
            chunk = sock.recv(RECV_SIZE)
        except TimeoutError as e:
            msg = "Timed out waiting for the server"
            raise TransportError(msg) from e
        except OSError as e:
            msg = f"Connection lost: {e}"
            raise TransportError(msg) from e
        if not chunk:
            return None
        return chunk

    def close(self) -> None:
        """Close the socket."""
        if self._sock is not None:
            with contextlib.suppress(OSError):
                self._sock.close()
            self._sock = None

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            msg = "Stream is closed"
            raise TransportError(msg)
        return self._sock


def open_stream(host: str, port: int, timeout: float | None = None) -> SocketStream:
    """Open a TCP connection to ``host:port``."""
    log.debug("Connecting to %s:%d (timeout=%s)", host, port, timeout)
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        msg = f"Failed to connect to {host}:{port}: {e}"
        raise TransportError(msg) from e
    return SocketStream(sock)
