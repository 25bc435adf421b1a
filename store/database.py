"""
SQLite database utilities for the store module.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from kvstore_core.errors import SchemaError, StorageError

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"
DEFAULT_FILENAME = "kvstore.db"
DEFAULT_TIMEOUT_S = 30.0

_MEMORY_URI = "file:kvstore-memory?mode=memory&cache=shared"

# Keeps the shared in-memory database alive until the process exits.
_memory_anchor: sqlite3.Connection | None = None


SCHEMA_SQL = """
CREATE TABLE kvstore (
  key VARCHAR(255) PRIMARY KEY,
  value BLOB,
  encoding VARCHAR(1) NOT NULL
)
"""

META_SQL = """
CREATE TABLE IF NOT EXISTS meta (
  name TEXT PRIMARY KEY,
  value TEXT
)
"""


@dataclass(frozen=True)
class SchemaSpec:
    table: str
    latest_version: int
    install: tuple[str, ...]
    columns: tuple[str, ...]


KVSTORE_SCHEMA = SchemaSpec(
    table="kvstore",
    latest_version=1,
    install=(SCHEMA_SQL,),
    columns=("key", "value", "encoding"),
)


def default_db_path() -> str:
    """Return the per-user default database location ($HOME/kvstore.db)."""
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise StorageError("HOME not defined, can't set default for path") from exc
    return str(home / DEFAULT_FILENAME)


def _anchor_memory_database() -> None:
    global _memory_anchor
    if _memory_anchor is None:
        _memory_anchor = sqlite3.connect(_MEMORY_URI, uri=True, check_same_thread=False)


def release_memory_database() -> None:
    """Drop the shared in-memory database."""
    global _memory_anchor
    if _memory_anchor is not None:
        _memory_anchor.close()
        _memory_anchor = None


@contextmanager
def connect(db_path: str, timeout_s: float = DEFAULT_TIMEOUT_S) -> Iterator[sqlite3.Connection]:
    """Open a SQLite connection for the duration of the block.

    The connection runs in autocommit mode; callers open transactions
    explicitly. ``:memory:`` selects a shared in-memory database.
    """
    if db_path == MEMORY_PATH:
        _anchor_memory_database()
        connection = sqlite3.connect(
            _MEMORY_URI, uri=True, timeout=timeout_s, isolation_level=None
        )
    else:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(db_path, timeout=timeout_s, isolation_level=None)
    try:
        connection.row_factory = sqlite3.Row
        yield connection
    finally:
        connection.close()


def _table_exists(connection: sqlite3.Connection, table: str) -> bool:
    row = connection.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (table,),
    ).fetchone()
    return row is not None


def installed_version(connection: sqlite3.Connection) -> int | None:
    """Return the recorded schema version, or None if nothing is installed."""
    if not _table_exists(connection, "meta"):
        return None
    row = connection.execute(
        "SELECT value FROM meta WHERE name = 'schema_version'"
    ).fetchone()
    if row is None:
        return None
    try:
        return int(row[0])
    except (TypeError, ValueError) as exc:
        raise SchemaError(f"Invalid schema version recorded: {row[0]!r}") from exc


def _verify_columns(connection: sqlite3.Connection, spec: SchemaSpec) -> None:
    rows = connection.execute(f"PRAGMA table_info({spec.table})").fetchall()
    columns = tuple(row["name"] for row in rows)
    if columns != spec.columns:
        raise SchemaError(
            f"Table '{spec.table}' has columns {list(columns)}, expected {list(spec.columns)}"
        )


def _check_version(connection: sqlite3.Connection, spec: SchemaSpec, version: int) -> None:
    if version > spec.latest_version:
        raise SchemaError(
            f"Database schema version {version} is newer than supported version "
            f"{spec.latest_version}"
        )
    if version < spec.latest_version:
        raise SchemaError(
            f"No upgrade path from schema version {version} to {spec.latest_version}"
        )
    _verify_columns(connection, spec)


def ensure_schema(connection: sqlite3.Connection, spec: SchemaSpec = KVSTORE_SCHEMA) -> int:
    """Create the table described by ``spec`` if needed and verify its version.

    Args:
        connection: Open connection in autocommit mode
        spec: Table name, version and install statements

    Returns:
        The installed schema version

    Raises:
        SchemaError: If the database holds an unversioned, newer, older or
            differently shaped table
    """
    version = installed_version(connection)
    if version is not None:
        _check_version(connection, spec, version)
        return version

    _ = connection.execute("BEGIN IMMEDIATE")
    try:
        # Another connection may have installed the schema meanwhile.
        version = installed_version(connection)
        if version is not None:
            _check_version(connection, spec, version)
        elif _table_exists(connection, spec.table):
            raise SchemaError(
                f"Table '{spec.table}' exists but has no recorded schema version"
            )
        else:
            for statement in spec.install:
                _ = connection.execute(statement)
            _ = connection.execute(META_SQL)
            _ = connection.execute(
                "INSERT OR REPLACE INTO meta (name, value) VALUES ('schema_version', ?)",
                (str(spec.latest_version),),
            )
            version = spec.latest_version
            logger.info(f"Installed schema '{spec.table}' version {version}")
    except BaseException:
        _ = connection.execute("ROLLBACK")
        raise
    _ = connection.execute("COMMIT")
    return version
