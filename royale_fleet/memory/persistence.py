"""Agent record persistence using SQLite.

This module stores the fleet's agent records: identity (name, API key,
role, wallet) and the runtime fields each control loop keeps current
(session pointer, vitals, last action, run status).

Features:
- SQLite backend with WAL for concurrent readers
- Thread-local connections, one writer lock
- Atomic field-subset updates so different loop phases never clobber
  each other's fields
- Schema versioning with forward migrations

Example:
    >>> from royale_fleet.memory.persistence import SQLiteAgentStore
    >>>
    >>> store = SQLiteAgentStore("data/fleet.db")
    >>> agent_id = store.add(name="Shadow Blade 42", api_key="mr_live_...", role="NINJA")
    >>> store.update(agent_id, last_action="Searching for room...")
    >>> store.get(agent_id).last_action
    'Searching for room...'
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from royale_fleet.models.records import AgentRecord, AgentStatus

logger = logging.getLogger(__name__)

# Default database path
DEFAULT_DB_PATH = Path("data/fleet.db")

# Schema version for migrations
SCHEMA_VERSION = 2

_COLUMNS = (
    "id",
    "name",
    "api_key",
    "role",
    "status",
    "last_action",
    "game_id",
    "agent_id",
    "hp",
    "ep",
    "is_alive",
    "balance",
    "total_wins",
    "total_games",
    "wallet_address",
    "private_key",
)
_UPDATABLE = frozenset(_COLUMNS) - {"id", "api_key"}


class PersistenceError(Exception):
    """Error raised when persistence operations fail."""

    pass


class DuplicateAgentError(PersistenceError):
    """Error raised when an API key is already registered."""

    pass


class SQLiteAgentStore:
    """SQLite-backed store of agent records.

    The class is thread-safe: reads use thread-local connections and writes
    are serialized through a lock.

    Attributes:
        db_path: Path to the SQLite database file.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        auto_init: bool = True,
    ) -> None:
        """Initialize the store.

        Args:
            db_path: Path to the SQLite database file.
                    Uses DEFAULT_DB_PATH if not specified.
            auto_init: Whether to automatically initialize the database.
        """
        self._db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._lock = threading.Lock()
        self._local = threading.local()
        self._connections: list[sqlite3.Connection] = []
        self._connections_lock = threading.Lock()

        if auto_init:
            self._ensure_db_exists()
            self._init_schema()

        logger.debug(f"SQLiteAgentStore initialized: {self._db_path}")

    @property
    def db_path(self) -> Path:
        """Get the database path."""
        return self._db_path

    def _ensure_db_exists(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            connection = sqlite3.connect(str(self._db_path), check_same_thread=False)
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA journal_mode = WAL")
            self._local.connection = connection
            with self._connections_lock:
                self._connections.append(connection)

        conn: sqlite3.Connection = self._local.connection
        return conn

    def release_thread_connection(self) -> None:
        """Close the calling thread's connection, if it opened one.

        Worker threads call this on exit so finished loops do not keep a
        file descriptor open until ``close()``.
        """
        connection = getattr(self._local, "connection", None)
        if connection is None:
            return
        self._local.connection = None
        with self._connections_lock:
            if connection in self._connections:
                self._connections.remove(connection)
        connection.close()

    def _init_schema(self) -> None:
        conn = self._get_connection()

        with conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                )
            """)

            cursor = conn.execute("SELECT version FROM schema_version LIMIT 1")
            row = cursor.fetchone()
            current_version = row[0] if row else 0

            if current_version < SCHEMA_VERSION:
                self._migrate_schema(conn, current_version)

    def _migrate_schema(self, conn: sqlite3.Connection, from_version: int) -> None:
        """Migrate database schema to current version.

        Args:
            conn: Database connection.
            from_version: Current schema version in database.
        """
        if from_version < 1:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS agents (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    api_key TEXT NOT NULL UNIQUE,
                    role TEXT NOT NULL DEFAULT 'AGENT',
                    status TEXT NOT NULL DEFAULT 'stopped',
                    last_action TEXT,
                    game_id TEXT,
                    agent_id TEXT,
                    hp REAL,
                    ep REAL,
                    is_alive INTEGER NOT NULL DEFAULT 1
                )
            """)

        if from_version < 2:
            # Account stats and wallet identity
            for ddl in (
                "ALTER TABLE agents ADD COLUMN balance REAL NOT NULL DEFAULT 0",
                "ALTER TABLE agents ADD COLUMN total_wins INTEGER NOT NULL DEFAULT 0",
                "ALTER TABLE agents ADD COLUMN total_games INTEGER NOT NULL DEFAULT 0",
                "ALTER TABLE agents ADD COLUMN wallet_address TEXT",
                "ALTER TABLE agents ADD COLUMN private_key TEXT",
            ):
                conn.execute(ddl)

        conn.execute("DELETE FROM schema_version")
        conn.execute(
            "INSERT INTO schema_version (version) VALUES (?)",
            (SCHEMA_VERSION,),
        )
        logger.info(f"Database schema migrated to version {SCHEMA_VERSION}")

    @staticmethod
    def _to_record(row: sqlite3.Row) -> AgentRecord:
        data = {column: row[column] for column in _COLUMNS}
        data["is_alive"] = bool(data["is_alive"])
        return AgentRecord.model_validate(data)

    def add(
        self,
        *,
        name: str,
        api_key: str,
        role: str = "AGENT",
        wallet_address: str | None = None,
        private_key: str | None = None,
    ) -> int:
        """Insert a new agent record.

        Returns:
            ID of the new record.

        Raises:
            DuplicateAgentError: If the API key is already stored.
            PersistenceError: If the insert fails.
        """
        with self._lock:
            try:
                conn = self._get_connection()
                with conn:
                    cursor = conn.execute(
                        """
                        INSERT INTO agents (name, api_key, role, wallet_address, private_key)
                        VALUES (?, ?, ?, ?, ?)
                        """,
                        (name, api_key, role, wallet_address, private_key),
                    )
                agent_id = cursor.lastrowid or 0
                logger.debug(f"Stored agent #{agent_id} ({name})")
                return agent_id
            except sqlite3.IntegrityError as e:
                raise DuplicateAgentError(f"API key already registered for another agent: {e}") from e
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to add agent {name}: {e}") from e

    def get(self, agent_id: int) -> AgentRecord | None:
        """Load one agent record, or None if it does not exist."""
        try:
            row = self._get_connection().execute(
                "SELECT * FROM agents WHERE id = ?",
                (agent_id,),
            ).fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to load agent #{agent_id}: {e}") from e
        return self._to_record(row) if row is not None else None

    def list_agents(self) -> list[AgentRecord]:
        """All agent records ordered by id."""
        try:
            rows = self._get_connection().execute("SELECT * FROM agents ORDER BY id").fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list agents: {e}") from e
        return [self._to_record(row) for row in rows]

    def list_by_status(self, status: AgentStatus) -> list[AgentRecord]:
        try:
            rows = self._get_connection().execute(
                "SELECT * FROM agents WHERE status = ? ORDER BY id",
                (status.value,),
            ).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to list {status.value} agents: {e}") from e
        return [self._to_record(row) for row in rows]

    def update(self, record_id: int, /, **fields: Any) -> bool:
        """Atomically update a subset of fields.

        Only the named columns are written, so concurrent updates of disjoint
        field sets never clobber each other.

        Returns:
            True if a record was updated.

        Raises:
            ValueError: If a field is unknown or not updatable.
            PersistenceError: If the update fails.
        """
        if not fields:
            return False
        unknown = set(fields) - _UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        values: list[Any] = []
        for key, value in fields.items():
            if isinstance(value, AgentStatus):
                value = value.value
            elif isinstance(value, bool):
                value = int(value)
            values.append(value)

        assignments = ", ".join(f"{key} = ?" for key in fields)
        with self._lock:
            try:
                conn = self._get_connection()
                with conn:
                    cursor = conn.execute(
                        f"UPDATE agents SET {assignments} WHERE id = ?",
                        (*values, record_id),
                    )
                return cursor.rowcount > 0
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to update agent #{record_id}: {e}") from e

    def delete(self, agent_id: int) -> bool:
        with self._lock:
            try:
                conn = self._get_connection()
                with conn:
                    cursor = conn.execute("DELETE FROM agents WHERE id = ?", (agent_id,))
                return cursor.rowcount > 0
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to delete agent #{agent_id}: {e}") from e

    def delete_all(self) -> int:
        """Delete every record and return how many were removed."""
        with self._lock:
            try:
                conn = self._get_connection()
                with conn:
                    cursor = conn.execute("DELETE FROM agents")
                return cursor.rowcount
            except sqlite3.Error as e:
                raise PersistenceError(f"Failed to delete agents: {e}") from e

    def close(self) -> None:
        """Close every connection opened by this store."""
        with self._connections_lock:
            connections = list(self._connections)
            self._connections.clear()
        for connection in connections:
            connection.close()
        self._local = threading.local()

    def __enter__(self) -> SQLiteAgentStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
