"""Configuration loader for the fleet controller.

Loads configuration from YAML files and environment variables.
Environment variables override YAML values using the ROYALE_ prefix.
Nested keys use double underscores: ROYALE_FLEET__SCAN_WINDOW=25
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from royale_fleet.gateway.client import DEFAULT_BASE_URL

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "default.yaml"
ENV_PREFIX = "ROYALE_"


class GatewayConfig(BaseModel):
    """Remote game service settings."""

    base_url: str = Field(default=DEFAULT_BASE_URL)
    timeout_seconds: float = Field(default=15.0, gt=0, le=120)


class FleetConfig(BaseModel):
    """Control loop and persistence settings."""

    database_path: str = Field(default="data/fleet.db")
    recovery_profile: str = Field(default="balanced", pattern="^(conservative|balanced|aggressive)$")
    scan_window: int = Field(default=15, ge=1, le=200, description="Sessions inspected per status by the open-session scan")
    inventory_capacity: int = Field(default=10, ge=1, le=100)
    map_size: str = Field(default="massive")
    stats_refresh_seconds: float = Field(default=300.0, ge=5, le=3600)


class ApiConfig(BaseModel):
    """Control API settings."""

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, ge=1, le=65535)


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = Field(default="readable", pattern="^(readable|json)$")


class Config(BaseModel):
    """Root configuration model."""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    fleet: FleetConfig = Field(default_factory=FleetConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Merge ``ROYALE_<SECTION>__<KEY>`` variables into raw config data.

    Only keys the config model declares are read. Values stay strings;
    model validation coerces and range-checks them like YAML values.
    """
    merged = {
        section: dict(values) if isinstance(values, dict) else values for section, values in data.items()
    }
    for section, section_field in Config.model_fields.items():
        model = section_field.annotation
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            continue
        for key in model.model_fields:
            raw = os.environ.get(f"{ENV_PREFIX}{section.upper()}__{key.upper()}")
            if raw is None:
                continue
            if merged.get(section) is None:
                merged[section] = {}
            if isinstance(merged[section], dict):
                merged[section][key] = raw
    return merged


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file, then apply environment overrides.

    Args:
        config_path: Path to YAML config file. If None, uses configs/default.yaml.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ValidationError: If config values are invalid.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = yaml.safe_load(path.read_text()) or {}
    return Config.model_validate(_env_overrides(data))


def get_default_config() -> Config:
    """Get default configuration without loading from file."""
    return Config()
