"""royale-fleet: autonomous agent fleet for a remote battle-royale game service."""

__version__ = "0.1.0"
