"""Exceptions raised while pinging a Minecraft server."""

from __future__ import annotations


class PingError(Exception):
    """Base exception for server list ping errors."""


class VarIntError(PingError):
    """Raised when a VarInt cannot be decoded."""


class UnexpectedEndError(VarIntError):
    """Raised when the data ends before a value is complete.

    While a response is still being framed this only means more bytes are
    needed. Anywhere else it is fatal.
    """


class VarIntTooBigError(VarIntError):
    """Raised when a VarInt runs past five bytes without terminating."""


class NoDataError(PingError):
    """Raised when the server closes the connection without sending anything."""


class InvalidResponseError(PingError):
    """Raised when the response packet cannot be split into its fields."""


class TransportError(PingError):
    """Raised when connecting, writing or reading fails."""


class StatusDecodeError(PingError):
    """Raised when the status JSON does not match the expected schema."""


class ProfileError(PingError):
    """Raised when a player profile cannot be fetched or decoded."""
