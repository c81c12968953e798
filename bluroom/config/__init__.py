"""
Configuration management for Bluroom.

Settings are read from a TOML file (``bluroom.toml`` next to this module by
default). Missing keys keep their defaults; unknown keys are ignored.
Components receive the values they need explicitly. The entry point loads
the file through `reload_settings()`, which also installs it as the default
returned by `get_settings()`.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from bluroom.errors import ConfigError

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent


@dataclass(frozen=True)
class ServerSettings:
    """HTTP server and persistence settings."""

    host: str = "0.0.0.0"
    port: int = 8000
    db_path: str = "bluroom.sqlite3"


@dataclass(frozen=True)
class DiscoverySettings:
    """Player discovery tuning."""

    service_type: str = "_musc._tcp.local."
    device_port: int = 11000
    sweep_seconds: float = 3.0
    probe_timeout: float = 5.0
    max_concurrency: int = 16
    cache_max_age: float = 30.0


@dataclass(frozen=True)
class Settings:
    """Loaded configuration."""

    server: ServerSettings = field(default_factory=ServerSettings)
    discovery: DiscoverySettings = field(default_factory=DiscoverySettings)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        db_path: str | None = None,
    ) -> Settings:
        """Return a copy with command-line overrides applied (None = keep)."""
        server = self.server
        if host is not None:
            server = replace(server, host=host)
        if port is not None:
            server = replace(server, port=port)
        if db_path is not None:
            server = replace(server, db_path=db_path)
        return replace(self, server=server)


def _parse_section(section_name: str, data: object, cls: type[Any]) -> Any:
    """Build one settings dataclass from a TOML table, checking value types."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"[{section_name}] must be a table")

    known = {f.name: f for f in fields(cls)}
    defaults = cls()
    values: dict[str, Any] = {}

    for key, value in data.items():
        if key not in known:
            logger.debug("Ignoring unknown config key %s.%s", section_name, key)
            continue
        expected = type(getattr(defaults, key))
        # TOML integers are acceptable wherever a float is expected
        if expected is float and isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        if not isinstance(value, expected) or isinstance(value, bool) != (expected is bool):
            raise ConfigError(
                f"{section_name}.{key} must be of type {expected.__name__}, got {type(value).__name__}"
            )
        values[key] = value

    return cls(**values)


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Load settings from a TOML file.

    Args:
        config_path: Path to a TOML file. If None, uses the bundled default.

    Returns:
        Loaded Settings instance.

    Raises:
        ConfigError: The file is missing, unparsable or has wrong value types.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "bluroom.toml"

    logger.debug("Loading config from %s", config_path)

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"Config file not found: {config_path}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    settings = Settings(
        server=_parse_section("server", data.get("server"), ServerSettings),
        discovery=_parse_section("discovery", data.get("discovery"), DiscoverySettings),
    )

    if settings.discovery.max_concurrency < 1:
        raise ConfigError("discovery.max_concurrency must be at least 1")

    return settings


# Lazily loaded default settings (entry point only)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the default settings (lazy loaded)."""
    global _settings

    if _settings is None:
        _settings = load_settings()

    return _settings


def reload_settings(config_path: Path | None = None) -> Settings:
    """Force reload of the default settings."""
    global _settings
    _settings = load_settings(config_path)
    return _settings
