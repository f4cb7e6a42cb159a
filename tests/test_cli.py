"""Tests for CLI server resolution and output."""

import base64
import sys
from unittest.mock import MagicMock, patch

import pytest

from mcping.cli import format_status, main, resolve_server, save_favicon, select_server
from mcping.config import AppConfig, ServerConfig
from mcping.errors import NoDataError, TransportError
from mcping.status import MinecraftStatus


def _make_config(**overrides) -> AppConfig:
    """Build an AppConfig with sensible defaults."""
    defaults = {
        "default_server": "survival",
        "timeout": 5.0,
        "servers": {
            "survival": ServerConfig(name="Survival", host="mc.example.com"),
            "creative": ServerConfig(
                name="Creative", host="creative.example.com", port=25570
            ),
        },
    }
    defaults.update(overrides)
    return AppConfig(**defaults)


STATUS = MinecraftStatus.from_dict(
    {
        "version": {"name": "Paper 1.20.6", "protocol": 766},
        "players": {
            "max": 20,
            "online": 1,
            "sample": [{"name": "Steve", "id": "8667ba71-b85a-4004-af54-457a9734eed7"}],
        },
        "description": {"text": "§aA Minecraft Server"},
        "favicon": "data:image/png;base64," + base64.b64encode(b"PNGDATA").decode(),
        "enforcesSecureChat": True,
    }
)


class TestResolveServer:
    def test_resolve_by_config_name(self):
        name, server = resolve_server("survival", _make_config())

        assert name == "survival"
        assert server.host == "mc.example.com"

    def test_resolve_host_port(self):
        name, server = resolve_server("192.168.1.1:25566", _make_config())

        assert server.host == "192.168.1.1"
        assert server.port == 25566

    def test_resolve_bare_hostname(self):
        name, server = resolve_server("play.example.net", _make_config())

        assert server.host == "play.example.net"
        assert server.port == 25565

    def test_resolve_default_server(self):
        name, server = resolve_server(None, _make_config())

        assert name == "survival"
        assert server.host == "mc.example.com"

    def test_resolve_no_default_no_servers(self):
        config = _make_config(default_server=None, servers={})
        with pytest.raises(SystemExit):
            resolve_server(None, config)

    def test_resolve_host_with_invalid_port(self):
        name, server = resolve_server("myhost:notaport", _make_config())

        assert server.host == "myhost:notaport"
        assert server.port == 25565


class TestSelectServer:
    def test_select_by_number(self):
        with patch("mcping.cli.prompt", return_value="2"):
            key, server = select_server(_make_config())
        assert key == "creative"
        assert server.port == 25570

    def test_select_by_name(self):
        with patch("mcping.cli.prompt", return_value="survival "):
            key, _ = select_server(_make_config())
        assert key == "survival"

    def test_reprompts_on_bad_choice(self):
        with patch("mcping.cli.prompt", side_effect=["9", "nope", "1"]) as prompt:
            key, _ = select_server(_make_config())
        assert key == "survival"
        assert prompt.call_count == 3

    def test_eof_exits(self):
        with patch("mcping.cli.prompt", side_effect=EOFError), pytest.raises(
            SystemExit
        ):
            select_server(_make_config())


class TestFormatStatus:
    def test_plain_output(self):
        text = format_status(STATUS, color=False)

        assert "Version: Paper 1.20.6 (protocol 766)" in text
        assert "Players: 1/20" in text
        assert "Sample:  Steve" in text
        assert "MOTD:    A Minecraft Server" in text
        assert "Secure chat enforced: yes" in text
        assert "Chat previews" not in text
        assert "Favicon: yes" in text

    def test_color_output(self):
        assert "\033[92mA Minecraft Server" in format_status(STATUS)

    def test_latency(self):
        assert "Latency: 12.3 ms" in format_status(STATUS, latency=12.34)

    def test_multiline_motd(self):
        status = MinecraftStatus.from_dict(
            {"version": {"name": "x", "protocol": 1}, "description": "one\ntwo"}
        )
        lines = format_status(status, color=False).splitlines()
        assert "MOTD:    one" in lines
        assert "         two" in lines


class TestSaveFavicon:
    def test_save(self, tmp_path):
        path = tmp_path / "icon.png"
        assert save_favicon(STATUS, path)
        assert path.read_bytes() == b"PNGDATA"

    def test_no_favicon(self, tmp_path):
        status = MinecraftStatus.from_dict({"version": {"name": "x", "protocol": 1}})
        assert not save_favicon(status, tmp_path / "icon.png")


class TestMain:
    def _run(self, monkeypatch, argv, client):
        monkeypatch.setattr(sys, "argv", ["mcping", *argv])
        monkeypatch.setattr("mcping.cli.load_config", lambda: _make_config())
        with patch("mcping.cli.StatusClient", return_value=client) as cls:
            main()
        return cls

    def test_prints_status(self, monkeypatch, capsys):
        client = MagicMock()
        client.status.return_value = STATUS

        cls = self._run(monkeypatch, ["creative", "--no-color"], client)

        cls.assert_called_once_with("creative.example.com", 25570, timeout=5.0)
        client.close.assert_called_once()
        out = capsys.readouterr().out
        assert "creative (creative.example.com:25570)" in out
        assert "Players: 1/20" in out

    def test_json_output(self, monkeypatch, capsys):
        client = MagicMock()
        client.status.return_value = STATUS

        self._run(monkeypatch, ["survival", "--json", "--timeout", "1"], client)

        assert '"protocol": 766' in capsys.readouterr().out

    def test_latency_flag(self, monkeypatch, capsys):
        client = MagicMock()
        client.status.return_value = STATUS
        client.latency.return_value = 5.0

        self._run(monkeypatch, ["survival", "--latency"], client)

        assert "Latency: 5.0 ms" in capsys.readouterr().out

    def test_connection_failure(self, monkeypatch, capsys):
        client = MagicMock()
        client.status.side_effect = TransportError("Failed to connect")

        with pytest.raises(SystemExit):
            self._run(monkeypatch, ["survival"], client)

        assert "Connection failed" in capsys.readouterr().err
        client.close.assert_called_once()

    def test_protocol_failure(self, monkeypatch, capsys):
        client = MagicMock()
        client.status.side_effect = NoDataError("closed")

        with pytest.raises(SystemExit):
            self._run(monkeypatch, ["survival"], client)

        assert "Invalid response from survival" in capsys.readouterr().err

    def test_save_favicon(self, monkeypatch, tmp_path):
        client = MagicMock()
        client.status.return_value = STATUS
        path = tmp_path / "icon.png"

        self._run(monkeypatch, ["survival", "--favicon", str(path)], client)

        assert path.read_bytes() == b"PNGDATA"
