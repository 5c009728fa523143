"""Configuration management for the fleet controller."""

from royale_fleet.config.loader import Config, get_default_config, load_config
from royale_fleet.config.secrets import load_environment_secrets

__all__ = ["Config", "get_default_config", "load_config", "load_environment_secrets"]
