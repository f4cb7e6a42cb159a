"""Typed view of the JSON status document returned by the server."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mcping.errors import StatusDecodeError
from mcping.profile import fetch_profile

if TYPE_CHECKING:
    from mcping.profile import TextureMetadata

FAVICON_PREFIX = "data:image/png;base64,"


@dataclass(frozen=True)
class Version:
    """Server version name and protocol number."""

    name: str
    protocol: int


@dataclass(frozen=True)
class PlayerSample:
    """A player listed in the status sample."""

    name: str
    id: str

    def skin(self, timeout: float = 10.0) -> TextureMetadata:
        """Look up this player's skin and cape on the session server."""
        return fetch_profile(self.id, timeout=timeout).textures()


@dataclass(frozen=True)
class Players:
    """Player counts and an optional sample of online players."""

    max: int
    online: int
    sample: tuple[PlayerSample, ...] | None = None


@dataclass(frozen=True)
class TextDescription:
    """A MOTD sent as a bare string."""

    text: str

    @property
    def plain(self) -> str:
        return self.text


@dataclass(frozen=True)
class ComponentDescription:
    """A MOTD sent as a chat component object.

    ``extra`` holds the raw child components, which may themselves be strings
    or objects with their own ``extra``.
    """

    text: str
    extra: tuple[Any, ...] = field(default=())
    component: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def plain(self) -> str:
        """The text of this component and all of its children, concatenated."""
        return self.text + "".join(_flatten_component(child) for child in self.extra)


Description = TextDescription | ComponentDescription


def _flatten_component(component: Any) -> str:
    if isinstance(component, str):
        return component
    if isinstance(component, dict):
        text = component.get("text", "")
        children = component.get("extra", [])
        if not isinstance(children, list):
            children = []
        return str(text) + "".join(_flatten_component(c) for c in children)
    return ""


def parse_description(raw: Any) -> Description:
    """Decode the ``description`` field.

    Tries a bare string first, then an object with a ``text`` string.
    """
    if isinstance(raw, str):
        return TextDescription(text=raw)
    if isinstance(raw, dict) and isinstance(raw.get("text"), str):
        extra = raw.get("extra", [])
        if not isinstance(extra, list):
            msg = f"Description 'extra' must be a list, got {type(extra).__name__}"
            raise StatusDecodeError(msg)
        return ComponentDescription(
            text=raw["text"], extra=tuple(extra), component=raw
        )
    msg = f"Description is neither a string nor a text component: {raw!r}"
    raise StatusDecodeError(msg)


@dataclass(frozen=True)
class MinecraftStatus:
    """Decoded server list ping response."""

    version: Version
    players: Players | None = None
    description: Description | None = None
    favicon: str | None = None
    enforces_secure_chat: bool | None = None
    previews_chat: bool | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_json(cls, text: str) -> MinecraftStatus:
        """Decode a status JSON document.

        Raises:
            StatusDecodeError: If the text is not JSON or does not match the
                status schema.
        """
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            msg = f"Status is not valid JSON: {e}"
            raise StatusDecodeError(msg) from e
        return cls.from_dict(raw)

    @classmethod
    def from_dict(cls, raw: Any) -> MinecraftStatus:
        """Build a MinecraftStatus from an already-parsed JSON object."""
        if not isinstance(raw, dict):
            msg = f"Status must be a JSON object, got {type(raw).__name__}"
            raise StatusDecodeError(msg)

        try:
            version = Version(
                name=_require(raw["version"], "name", str),
                protocol=_require(raw["version"], "protocol", int),
            )
            players = _parse_players(raw.get("players"))
        except (KeyError, TypeError, AttributeError) as e:
            msg = f"Status does not match the expected schema: {e!r}"
            raise StatusDecodeError(msg) from e

        description = raw.get("description")
        if description is not None:
            description = parse_description(description)
        return cls(
            version=version,
            players=players,
            description=description,
            favicon=_optional(raw, "favicon", str),
            enforces_secure_chat=_optional(raw, "enforcesSecureChat", bool),
            previews_chat=_optional(raw, "previewsChat", bool),
            raw=raw,
        )

    def favicon_png(self) -> bytes | None:
        """Decode the favicon data URI into PNG bytes.

        Returns None if the server did not send a favicon.
        """
        if self.favicon is None:
            return None
        if not self.favicon.startswith(FAVICON_PREFIX):
            msg = "Favicon is not a base64 PNG data URI"
            raise StatusDecodeError(msg)
        data = self.favicon[len(FAVICON_PREFIX) :].replace("\n", "")
        try:
            return base64.b64decode(data, validate=True)
        except binascii.Error as e:
            msg = f"Favicon is not valid base64: {e}"
            raise StatusDecodeError(msg) from e


def _parse_players(raw: Any) -> Players | None:
    if raw is None:
        return None
    sample = raw.get("sample")
    return Players(
        max=_require(raw, "max", int),
        online=_require(raw, "online", int),
        sample=(
            tuple(
                PlayerSample(name=_require(p, "name", str), id=_require(p, "id", str))
                for p in sample
            )
            if sample is not None
            else None
        ),
    )


def _require(raw: Any, key: str, kind: type) -> Any:
    """Return ``raw[key]``, checking its JSON type."""
    value = raw[key]
    # bool is a subclass of int, but a JSON boolean is never a number
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        msg = f"{key!r} must be {kind.__name__}, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _optional(raw: dict[str, Any], key: str, kind: type) -> Any:
    if raw.get(key) is None:
        return None
    try:
        return _require(raw, key, kind)
    except TypeError as e:
        msg = f"Status does not match the expected schema: {e}"
        raise StatusDecodeError(msg) from e
