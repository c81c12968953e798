"""
Tests for bluroom.config (TOML settings) and the command-line overrides.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from bluroom.__main__ import main, parse_args
from bluroom.config import (
    DiscoverySettings,
    ServerSettings,
    Settings,
    get_settings,
    load_settings,
    reload_settings,
)
from bluroom.errors import ConfigError


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "bluroom.toml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_bundled_defaults(self) -> None:
        settings = load_settings()
        assert settings.server == ServerSettings()
        assert settings.discovery == DiscoverySettings()
        assert settings.discovery.service_type == "_musc._tcp.local."
        assert settings.discovery.device_port == 11000
        assert settings.discovery.cache_max_age == 30.0

    def test_partial_file_keeps_defaults(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[server]\nport = 8123\n")
        settings = load_settings(path)
        assert settings.server.port == 8123
        assert settings.server.host == "0.0.0.0"
        assert settings.discovery == DiscoverySettings()

    def test_integer_accepted_for_float(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[discovery]\nsweep_seconds = 5\n")
        settings = load_settings(path)
        assert settings.discovery.sweep_seconds == 5.0
        assert isinstance(settings.discovery.sweep_seconds, float)

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[discovery]\nflux_capacitor = true\n[extra]\nx = 1\n")
        assert load_settings(path).discovery == DiscoverySettings()

    def test_wrong_type(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, '[server]\nport = "eighty"\n')
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_bool_is_not_an_int(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[discovery]\nmax_concurrency = true\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_section_must_be_table(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, 'server = "localhost"\n')
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_zero_concurrency_rejected(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[discovery]\nmax_concurrency = 0\n")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "nope.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[server\nport = \n")
        with pytest.raises(ConfigError):
            load_settings(path)


class TestGlobalSettings:
    """Tests for the lazily loaded default settings."""

    def test_get_settings_is_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_reload_settings(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[server]\nport = 9100\n")
        try:
            assert reload_settings(path).server.port == 9100
            assert get_settings().server.port == 9100
        finally:
            reload_settings()


class TestOverrides:
    """Tests for command-line overrides."""

    def test_with_overrides(self) -> None:
        settings = Settings().with_overrides(port=9001, db_path="/tmp/x.sqlite3")
        assert settings.server.port == 9001
        assert settings.server.db_path == "/tmp/x.sqlite3"
        assert settings.server.host == "0.0.0.0"

    def test_none_keeps_values(self) -> None:
        assert Settings().with_overrides() == Settings()

    def test_parse_args(self) -> None:
        args = parse_args(["-v", "--host", "127.0.0.1", "-p", "8080", "--db", "devices.db"])
        assert args.verbose is True
        assert args.host == "127.0.0.1"
        assert args.port == 8080
        assert args.db == "devices.db"
        assert args.config is None

    def test_parse_args_defaults_defer_to_config(self) -> None:
        args = parse_args([])
        assert args.host is None
        assert args.port is None
        assert args.db is None


class TestMain:
    """Tests for the entry point's config handling."""

    def test_main_installs_config_file(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "[server]\nport = 9200\n")
        try:
            with patch("bluroom.__main__.run_server", new_callable=AsyncMock) as run_server:
                assert main(["--config", str(path), "--host", "127.0.0.1"]) == 0

            settings = run_server.await_args.args[0]
            assert settings.server.port == 9200
            assert settings.server.host == "127.0.0.1"
            assert get_settings().server.port == 9200
        finally:
            reload_settings()

    def test_main_rejects_invalid_config(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, '[server]\nport = "eighty"\n')
        with patch("bluroom.__main__.run_server", new_callable=AsyncMock) as run_server:
            assert main(["--config", str(path)]) == 2
        run_server.assert_not_awaited()
