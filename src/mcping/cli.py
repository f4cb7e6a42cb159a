"""CLI entry point for the ping client."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter

from mcping.client import StatusClient
from mcping.config import AppConfig, ServerConfig, load_config
from mcping.errors import PingError, StatusDecodeError, TransportError
from mcping.formatting import format_motd

if TYPE_CHECKING:
    from mcping.status import MinecraftStatus


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mcping",
        description="Query a Minecraft server with the server list ping",
    )
    parser.add_argument(
        "server",
        nargs="?",
        help="Server name (from config) or host:port (e.g., mc.example.com:25565)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Socket timeout in seconds (default: from config, or 5)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Strip formatting codes instead of converting to ANSI colors",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Print the raw status document as JSON",
    )
    parser.add_argument(
        "--favicon",
        type=Path,
        metavar="PATH",
        help="Save the server icon as a PNG file",
    )
    parser.add_argument(
        "--latency",
        action="store_true",
        default=False,
        help="Also measure the ping round trip",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log protocol traffic to stderr",
    )
    return parser


def select_server(config: AppConfig) -> tuple[str, ServerConfig]:
    """Prompt the user to select from configured servers.

    Returns (key, ServerConfig).
    """
    servers = list(config.servers.items())
    if not servers:
        print("No servers configured.", file=sys.stderr)
        sys.exit(1)

    print("Available servers:")
    for i, (key, srv) in enumerate(servers, 1):
        print(f"  {i}. {srv.name} [{key}] ({srv.address})")

    completer = WordCompleter([key for key, _ in servers])
    while True:
        try:
            choice = prompt(
                f"\nSelect server [1-{len(servers)}]: ", completer=completer
            ).strip()
        except (EOFError, KeyboardInterrupt):
            sys.exit(1)

        if choice in config.servers:
            return choice, config.servers[choice]
        try:
            idx = int(choice) - 1
        except ValueError:
            idx = -1
        if 0 <= idx < len(servers):
            return servers[idx]
        print(f"Please enter a number between 1 and {len(servers)} or a server name")


def resolve_server(
    server_arg: str | None, config: AppConfig
) -> tuple[str, ServerConfig]:
    """Resolve the target server from CLI arg or interactive selection.

    Returns (display_name, ServerConfig).
    """
    if server_arg is not None:
        if server_arg in config.servers:
            return server_arg, config.servers[server_arg]

        if ":" in server_arg:
            host, port_str = server_arg.rsplit(":", 1)
            try:
                port = int(port_str)
                return server_arg, ServerConfig(name=server_arg, host=host, port=port)
            except ValueError:
                pass

        return server_arg, ServerConfig(name=server_arg, host=server_arg)

    if config.default_server and config.default_server in config.servers:
        key = config.default_server
        return key, config.servers[key]

    return select_server(config)


def format_status(
    status: MinecraftStatus, *, color: bool = True, latency: float | None = None
) -> str:
    """Render a status as human-readable lines."""
    lines = [f"Version: {status.version.name} (protocol {status.version.protocol})"]

    if status.players is not None:
        lines.append(f"Players: {status.players.online}/{status.players.max}")
        if status.players.sample:
            names = ", ".join(p.name for p in status.players.sample)
            lines.append(f"Sample:  {names}")

    motd = format_motd(status.description, color=color)
    if motd:
        motd_lines = motd.splitlines() or [""]
        lines.append(f"MOTD:    {motd_lines[0]}")
        lines.extend(f"         {line}" for line in motd_lines[1:])

    if status.enforces_secure_chat is not None:
        lines.append(f"Secure chat enforced: {_yes_no(status.enforces_secure_chat)}")
    if status.previews_chat is not None:
        lines.append(f"Chat previews: {_yes_no(status.previews_chat)}")
    lines.append(f"Favicon: {'yes' if status.favicon else 'no'}")
    if latency is not None:
        lines.append(f"Latency: {latency:.1f} ms")
    return "\n".join(lines)


def _yes_no(value: bool) -> str:  # noqa: FBT001
    return "yes" if value else "no"


def save_favicon(status: MinecraftStatus, path: Path) -> bool:
    """Write the server icon to ``path``. Returns False if there is none."""
    png = status.favicon_png()
    if png is None:
        return False
    path.write_bytes(png)
    return True


def main() -> None:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
        )

    config = load_config()
    display_name, server = resolve_server(args.server, config)
    timeout = args.timeout if args.timeout is not None else config.timeout

    latency = None
    client = StatusClient(server.host, server.port, timeout=timeout)
    try:
        status = client.status()
        if args.latency:
            latency = client.latency()
    except TransportError as e:
        print(f"Connection failed: {e}", file=sys.stderr)
        sys.exit(1)
    except StatusDecodeError as e:
        print(f"Could not decode status from {display_name}: {e}", file=sys.stderr)
        sys.exit(1)
    except PingError as e:
        print(f"Invalid response from {display_name}: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        client.close()

    if args.json:
        print(json.dumps(status.raw, indent=2))
    else:
        print(f"{display_name} ({server.address})")
        print(format_status(status, color=not args.no_color, latency=latency))

    if args.favicon is not None:
        try:
            saved = save_favicon(status, args.favicon)
        except (PingError, OSError) as e:
            print(f"Could not save favicon: {e}", file=sys.stderr)
            sys.exit(1)
        if not saved:
            print("Server has no favicon.", file=sys.stderr)
