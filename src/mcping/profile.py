"""Look up player profiles and skins on the Mojang session server."""

from __future__ import annotations

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import requests

from mcping.errors import ProfileError

log = logging.getLogger(__name__)

SESSION_SERVER_URL = "https://sessionserver.mojang.com/session/minecraft/profile/"
TEXTURES_PROPERTY = "textures"


@dataclass(frozen=True)
class PlayerTexture:
    """A texture hosted by Mojang."""

    url: str


@dataclass(frozen=True)
class PlayerSkin:
    """Skin and cape textures of a player. Either may be missing."""

    skin: PlayerTexture | None
    cape: PlayerTexture | None


@dataclass(frozen=True)
class TextureMetadata:
    """The decoded value of a profile's ``textures`` property."""

    timestamp: datetime
    profile_id: str
    profile_name: str
    signature_required: bool | None
    textures: PlayerSkin


@dataclass(frozen=True)
class ProfileProperty:
    """A signed profile property."""

    name: str
    value: str
    signature: str | None = None

    def texture(self) -> TextureMetadata:
        """Decode the base64 texture metadata held in this property."""
        try:
            raw = json.loads(base64.b64decode(self.value, validate=True))
        except (binascii.Error, ValueError) as e:
            msg = f"Could not decode property {self.name!r}: {e}"
            raise ProfileError(msg) from e

        try:
            textures = raw["textures"]
            return TextureMetadata(
                timestamp=datetime.fromtimestamp(raw["timestamp"] / 1000, tz=UTC),
                profile_id=raw["profileId"],
                profile_name=raw["profileName"],
                signature_required=raw.get("signatureRequired"),
                textures=PlayerSkin(
                    skin=_parse_texture(textures.get("SKIN")),
                    cape=_parse_texture(textures.get("CAPE")),
                ),
            )
        except (KeyError, TypeError, AttributeError) as e:
            msg = f"Unexpected texture metadata: {e}"
            raise ProfileError(msg) from e


@dataclass(frozen=True)
class MinecraftProfile:
    """A player profile as returned by the session server."""

    id: str
    name: str
    properties: tuple[ProfileProperty, ...]
    legacy: bool | None = None

    def textures(self) -> TextureMetadata:
        """Return the decoded ``textures`` property."""
        for prop in self.properties:
            if prop.name == TEXTURES_PROPERTY:
                return prop.texture()
        msg = f"Profile {self.name} has no textures property"
        raise ProfileError(msg)


def _parse_texture(raw: dict[str, Any] | None) -> PlayerTexture | None:
    if raw is None:
        return None
    return PlayerTexture(url=raw["url"])


def parse_profile(raw: dict[str, Any]) -> MinecraftProfile:
    """Build a MinecraftProfile from the session server's JSON."""
    try:
        return MinecraftProfile(
            id=raw["id"],
            name=raw["name"],
            legacy=raw.get("legacy"),
            properties=tuple(
                ProfileProperty(
                    name=prop["name"],
                    value=prop["value"],
                    signature=prop.get("signature"),
                )
                for prop in raw.get("properties", [])
            ),
        )
    except (KeyError, TypeError) as e:
        msg = f"Unexpected profile data: {e}"
        raise ProfileError(msg) from e


def fetch_profile(uuid: str, timeout: float = 10.0) -> MinecraftProfile:
    """Fetch a player's profile from the Mojang session server.

    Args:
        uuid: The player UUID, with or without dashes.
        timeout: HTTP timeout in seconds.

    Raises:
        ProfileError: If the request fails or the profile does not exist.
    """
    url = SESSION_SERVER_URL + uuid.replace("-", "")
    log.debug("Fetching profile %s", url)
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        msg = f"Failed to fetch profile {uuid}: {e}"
        raise ProfileError(msg) from e

    # The session server answers 204 for unknown UUIDs
    if resp.status_code in (204, 404):
        msg = f"No profile found for {uuid}"
        raise ProfileError(msg)
    if resp.status_code != 200:  # noqa: PLR2004
        msg = f"Session server returned HTTP {resp.status_code} for {uuid}"
        raise ProfileError(msg)

    try:
        raw = resp.json()
    except ValueError as e:
        msg = f"Session server returned invalid JSON for {uuid}"
        raise ProfileError(msg) from e
    return parse_profile(raw)
