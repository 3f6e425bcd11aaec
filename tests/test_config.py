"""Tests for configuration loading."""

from pathlib import Path
from unittest.mock import patch

import pytest
from siteserve.config import (
    AssetsConfig,
    Config,
    ServerConfig,
    parse_asset_mode,
)
from siteserve.core.backend import AssetMode


class TestConfigLoad:
    """Tests for Config.load()."""

    def test__explicit_path__loads_config(self, tmp_path: Path) -> None:
        """Load config from explicit path."""
        config_file = tmp_path / "siteserve.toml"
        config_file.write_text("""
[server]
host = "127.0.0.1"
port = 3000
shutdown_timeout_seconds = 10

[assets]
mode = "disk"
static_dir = "public"
""")

        config = Config.load(config_file, environ={})

        assert config.server.host == "127.0.0.1"
        assert config.server.port == 3000
        assert config.server.shutdown_timeout_seconds == 10
        assert config.assets.mode is AssetMode.DISK
        assert config.assets.static_dir == tmp_path / "public"
        assert config.config_path == config_file

    def test__minimal_config__uses_defaults(self, tmp_path: Path) -> None:
        """Load minimal config with defaults relative to config file."""
        config_file = tmp_path / "siteserve.toml"
        config_file.write_text("")

        config = Config.load(config_file, environ={})

        assert config.server.host == "0.0.0.0"
        assert config.server.port == 9327
        assert config.server.shutdown_timeout_seconds == 5
        assert config.assets.mode is AssetMode.EMBEDDED
        assert config.assets.static_dir == tmp_path / "static"

    def test__missing_explicit_path__raises_error(self, tmp_path: Path) -> None:
        """Raise FileNotFoundError for missing explicit config file."""
        config_file = tmp_path / "nonexistent.toml"

        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            Config.load(config_file)

    def test__no_path_no_discovery__returns_defaults(self) -> None:
        """Return defaults when no config file found."""
        with patch.object(Config, "_discover_config", return_value=None):
            config = Config.load(environ={})

        assert config.server.host == "0.0.0.0"
        assert config.server.port == 9327
        assert config.assets.mode is AssetMode.EMBEDDED
        assert config.assets.static_dir == Path("static")
        assert config.config_path is None

    def test__discovery__finds_config_in_parent(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Find siteserve.toml in a parent of the working directory."""
        (tmp_path / "siteserve.toml").write_text("[server]\nport = 4000\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        config = Config.load(environ={})

        assert config.server.port == 4000
        assert config.config_path == tmp_path / "siteserve.toml"

    def test__invalid_toml__raises_value_error(self, tmp_path: Path) -> None:
        """Report malformed files as configuration errors."""
        config_file = tmp_path / "siteserve.toml"
        config_file.write_text("[server\nport = ")

        with pytest.raises(ValueError, match="Invalid TOML"):
            Config.load(config_file, environ={})


class TestPortEnvironment:
    """Tests for the PORT environment variable."""

    def test__valid_port__overrides_file(self, tmp_path: Path) -> None:
        """PORT wins over the config file."""
        config_file = tmp_path / "siteserve.toml"
        config_file.write_text("[server]\nport = 3000\n")

        config = Config.load(config_file, environ={"PORT": " 8081 "})

        assert config.server.port == 8081

    @pytest.mark.parametrize("value", ["", "abc", "0", "70000", "-1"])
    def test__invalid_port__ignored(self, tmp_path: Path, value: str) -> None:
        """Unusable PORT values are ignored."""
        config_file = tmp_path / "siteserve.toml"
        config_file.write_text("[server]\nport = 3000\n")

        config = Config.load(config_file, environ={"PORT": value})

        assert config.server.port == 3000


class TestConfigValidation:
    """Tests for configuration value checks."""

    @pytest.mark.parametrize(
        ("content", "message"),
        [
            ("server = 1", "server section must be a dictionary"),
            ('[server]\nhost = 1', "server.host must be a string"),
            ('[server]\nhost = " "', "server.host cannot be empty"),
            ('[server]\nport = "80"', "server.port must be an integer"),
            ("[server]\nport = true", "server.port must be an integer"),
            ("[server]\nport = 70000", r"server.port must be in \[0, 65535\]"),
            ("[server]\nshutdown_timeout_seconds = 1.5", "must be an integer"),
            ("[server]\nshutdown_timeout_seconds = -1", "must not be negative"),
            ("assets = []", "assets section must be a dictionary"),
            ('[assets]\nmode = "cdn"', "assets.mode must be one of"),
            ("[assets]\nmode = 1", "assets.mode must be a string"),
            ("[assets]\nstatic_dir = 1", "assets.static_dir must be a string"),
        ],
    )
    def test__invalid_value__raises_value_error(
        self,
        tmp_path: Path,
        content: str,
        message: str,
    ) -> None:
        """Reject values of the wrong type or range."""
        config_file = tmp_path / "siteserve.toml"
        config_file.write_text(content)

        with pytest.raises(ValueError, match=message):
            Config.load(config_file, environ={})

    def test__asset_mode__case_insensitive(self) -> None:
        """Asset mode names ignore case and surrounding spaces."""
        assert parse_asset_mode(" Disk ") is AssetMode.DISK
        assert parse_asset_mode("EMBEDDED") is AssetMode.EMBEDDED


class TestWithOverrides:
    """Tests for Config.with_overrides()."""

    def _config(self) -> Config:
        return Config(server=ServerConfig(), assets=AssetsConfig())

    def test__overrides__applied(self, tmp_path: Path) -> None:
        """Non-None values replace configured ones."""
        config = self._config().with_overrides(
            host="localhost",
            port=8000,
            shutdown_timeout_seconds=0,
            asset_mode=AssetMode.DISK,
            static_dir=tmp_path,
        )

        assert config.server == ServerConfig(
            host="localhost",
            port=8000,
            shutdown_timeout_seconds=0,
        )
        assert config.assets == AssetsConfig(mode=AssetMode.DISK, static_dir=tmp_path)

    def test__no_overrides__returns_equal_copy(self) -> None:
        """None leaves every value unchanged."""
        original = self._config()

        assert original.with_overrides() == original

    def test__original__not_modified(self) -> None:
        """Overrides produce a new Config."""
        original = self._config()

        original.with_overrides(port=1234)

        assert original.server.port == 9327

    def test__invalid_override__raises_value_error(self) -> None:
        """Overrides are range-checked too."""
        with pytest.raises(ValueError, match="server.port"):
            self._config().with_overrides(port=70000)
