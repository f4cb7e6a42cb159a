"""Configuration loading for the ping client."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

CONFIG_DIR = Path.home() / ".config" / "mcping"
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_PORT = 25565
DEFAULT_TIMEOUT = 5.0


@dataclass(frozen=True)
class ServerConfig:
    """A named Minecraft server."""

    name: str
    host: str
    port: int = DEFAULT_PORT

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    default_server: str | None
    timeout: float
    servers: dict[str, ServerConfig]


def load_config(path: Path = CONFIG_FILE) -> AppConfig:
    """Load and parse the configuration file.

    Returns built-in defaults if no config file exists.
    """
    if not path.exists():
        return _default_config()

    with path.open("rb") as f:
        raw = tomllib.load(f)

    defaults = raw.get("defaults", {})

    servers: dict[str, ServerConfig] = {}
    for key, val in raw.get("servers", {}).items():
        servers[key] = ServerConfig(
            name=val.get("name", key),
            host=val["host"],
            port=val.get("port", DEFAULT_PORT),
        )

    return AppConfig(
        default_server=defaults.get("server"),
        timeout=float(defaults.get("timeout", DEFAULT_TIMEOUT)),
        servers=servers,
    )


def _default_config() -> AppConfig:
    """Return the built-in configuration."""
    return AppConfig(
        default_server="local",
        timeout=DEFAULT_TIMEOUT,
        servers={
            "local": ServerConfig(name="Local server", host="localhost"),
        },
    )
