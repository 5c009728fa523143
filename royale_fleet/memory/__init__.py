"""Persistent storage for agent records."""

from royale_fleet.memory.persistence import (
    DuplicateAgentError,
    PersistenceError,
    SQLiteAgentStore,
)

__all__ = ["DuplicateAgentError", "PersistenceError", "SQLiteAgentStore"]
