"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from royale_fleet.config import Config, get_default_config, load_config
from royale_fleet.gateway.client import DEFAULT_BASE_URL


class TestConfigLoader:
    """Tests for load_config function."""

    def test_load_default_config(self) -> None:
        """The shipped default.yaml parses and matches the model defaults."""
        config = load_config()

        assert config.gateway.base_url == DEFAULT_BASE_URL
        assert config.fleet.recovery_profile == "balanced"
        assert config.fleet.scan_window == 15
        assert config.fleet.inventory_capacity == 10
        assert config.api.port == 3000
        assert config.logging.format == "readable"

    def test_load_custom_config_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "custom.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"fleet": {"scan_window": 40, "recovery_profile": "aggressive"}}, f)

        config = load_config(config_file)

        assert config.fleet.scan_window == 40
        assert config.fleet.recovery_profile == "aggressive"
        # Unspecified sections keep their defaults
        assert config.api.port == 3000

    def test_empty_file_yields_defaults(self, tmp_path: Path) -> None:
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert load_config(config_file) == Config()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_recovery_profile_rejected(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"fleet": {"recovery_profile": "reckless"}}, f)

        with pytest.raises(ValidationError):
            load_config(config_file)

    def test_out_of_range_port_rejected(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"api": {"port": 70000}}, f)

        with pytest.raises(ValidationError):
            load_config(config_file)


class TestEnvironmentOverrides:
    """ROYALE_ prefixed variables override YAML values."""

    def test_nested_override_is_typed(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"api": {"port": 3000}, "fleet": {"stats_refresh_seconds": 300.0}}, f)
        monkeypatch.setenv("ROYALE_API__PORT", "8080")
        monkeypatch.setenv("ROYALE_FLEET__STATS_REFRESH_SECONDS", "60")

        config = load_config(config_file)

        assert config.api.port == 8080
        assert config.fleet.stats_refresh_seconds == 60.0

    def test_string_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"gateway": {"base_url": "https://a.test/api"}}, f)
        monkeypatch.setenv("ROYALE_GATEWAY__BASE_URL", "https://b.test/api")

        assert load_config(config_file).gateway.base_url == "https://b.test/api"

    def test_keys_absent_from_yaml_are_overridden(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        config_file = tmp_path / "config.yaml"
        with open(config_file, "w") as f:
            yaml.dump({"api": {"host": "127.0.0.1"}}, f)
        monkeypatch.setenv("ROYALE_API__PORT", "8080")
        monkeypatch.setenv("ROYALE_LOGGING__FORMAT", "json")

        config = load_config(config_file)

        assert config.api.host == "127.0.0.1"
        assert config.api.port == 8080
        assert config.logging.format == "json"

    def test_undeclared_variables_are_ignored(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        monkeypatch.setenv("ROYALE_API__COLOR", "blue")
        monkeypatch.setenv("ROYALE_EXTRA__PORT", "1")

        assert load_config(config_file) == Config()

    def test_invalid_override_rejected(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")
        monkeypatch.setenv("ROYALE_FLEET__SCAN_WINDOW", "many")

        with pytest.raises(ValidationError):
            load_config(config_file)


class TestDefaultConfig:
    def test_get_default_config(self) -> None:
        config = get_default_config()

        assert isinstance(config, Config)
        assert config.fleet.database_path == "data/fleet.db"
        assert config.fleet.stats_refresh_seconds == 300.0
