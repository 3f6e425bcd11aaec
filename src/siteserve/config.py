"""Configuration management for Siteserve.

Supports TOML configuration format with auto-discovery.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from siteserve.core.backend import AssetMode

CONFIG_FILENAME = "siteserve.toml"
PORT_ENV_VAR = "PORT"

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 9327
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 5
DEFAULT_STATIC_DIR = "static"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    shutdown_timeout_seconds: int = DEFAULT_SHUTDOWN_TIMEOUT_SECONDS


@dataclass
class AssetsConfig:
    """Asset backend configuration."""

    mode: AssetMode = AssetMode.EMBEDDED
    static_dir: Path = field(default_factory=lambda: Path(DEFAULT_STATIC_DIR))


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    assets: AssetsConfig
    config_path: Path | None = None

    @classmethod
    def load(
        cls,
        config_path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> Config:
        """Load configuration from file and environment.

        If config_path is provided, loads from that file.
        Otherwise, searches for siteserve.toml in current directory and parents.
        A valid PORT environment variable overrides the configured port.

        Args:
            config_path: Optional explicit path to config file
            environ: Environment to read PORT from (default: os.environ)

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            config = cls._load_from_file(config_path)
        else:
            discovered_path = cls._discover_config()
            if discovered_path is None:
                config = cls._default()
            else:
                config = cls._load_from_file(discovered_path)

        env_port = _port_from_env(os.environ if environ is None else environ)
        if env_port is not None:
            config = config.with_overrides(port=env_port)
        return config

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents.

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> Config:
        return cls(server=ServerConfig(), assets=AssetsConfig())

    @classmethod
    def _load_from_file(cls, path: Path) -> Config:
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Invalid TOML in {path}: {e}") from e

        config_dir = path.parent

        server = cls._parse_server(data.get("server"))
        assets = cls._parse_assets(data.get("assets"), config_dir)

        return cls(server=server, assets=assets, config_path=path)

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section.

        Args:
            data: Raw server section data

        Returns:
            ServerConfig instance
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", DEFAULT_HOST)
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")
        _check_host(host)

        port = data.get("port", DEFAULT_PORT)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")
        _check_port(port)

        timeout = data.get("shutdown_timeout_seconds", DEFAULT_SHUTDOWN_TIMEOUT_SECONDS)
        if not isinstance(timeout, int) or isinstance(timeout, bool):
            raise ValueError("server.shutdown_timeout_seconds must be an integer")
        _check_shutdown_timeout(timeout)

        return ServerConfig(host=host, port=port, shutdown_timeout_seconds=timeout)

    @classmethod
    def _parse_assets(cls, data: object, config_dir: Path) -> AssetsConfig:
        """Parse assets configuration section.

        Args:
            data: Raw assets section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            AssetsConfig instance
        """
        if data is None:
            return AssetsConfig(static_dir=config_dir / DEFAULT_STATIC_DIR)

        if not isinstance(data, dict):
            raise ValueError("assets section must be a dictionary")

        mode_raw = data.get("mode", AssetMode.EMBEDDED.value)
        if not isinstance(mode_raw, str):
            raise ValueError("assets.mode must be a string")
        mode = parse_asset_mode(mode_raw)

        static_dir = data.get("static_dir", DEFAULT_STATIC_DIR)
        if not isinstance(static_dir, str):
            raise ValueError("assets.static_dir must be a string")

        return AssetsConfig(mode=mode, static_dir=config_dir / static_dir)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        shutdown_timeout_seconds: int | None = None,
        asset_mode: AssetMode | None = None,
        static_dir: Path | None = None,
    ) -> Config:
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            shutdown_timeout_seconds: Override server.shutdown_timeout_seconds
            asset_mode: Override assets.mode
            static_dir: Override assets.static_dir

        Returns:
            New Config instance with overrides applied

        Raises:
            ValueError: If an override is out of range
        """
        server = self.server
        if host is not None:
            _check_host(host)
            server = replace(server, host=host)
        if port is not None:
            _check_port(port)
            server = replace(server, port=port)
        if shutdown_timeout_seconds is not None:
            _check_shutdown_timeout(shutdown_timeout_seconds)
            server = replace(server, shutdown_timeout_seconds=shutdown_timeout_seconds)

        assets = self.assets
        if asset_mode is not None:
            assets = replace(assets, mode=asset_mode)
        if static_dir is not None:
            assets = replace(assets, static_dir=static_dir)

        return replace(self, server=server, assets=assets)


def parse_asset_mode(value: str) -> AssetMode:
    """Parse an asset mode name (case-insensitive)."""
    try:
        return AssetMode(value.strip().lower())
    except ValueError:
        allowed = ", ".join(mode.value for mode in AssetMode)
        raise ValueError(f"assets.mode must be one of: {allowed}") from None


def _port_from_env(environ: Mapping[str, str]) -> int | None:
    raw = environ.get(PORT_ENV_VAR)
    if raw is None:
        return None
    try:
        port = int(raw.strip())
    except ValueError:
        return None
    if not 1 <= port <= 65535:
        return None
    return port


def _check_host(host: str) -> None:
    if not host.strip():
        raise ValueError("server.host cannot be empty")


def _check_port(port: int) -> None:
    # 0 asks the OS for a free port
    if not 0 <= port <= 65535:
        raise ValueError(f"server.port must be in [0, 65535], got: {port}")


def _check_shutdown_timeout(timeout: int) -> None:
    if timeout < 0:
        raise ValueError(
            f"server.shutdown_timeout_seconds must not be negative, got: {timeout}",
        )
