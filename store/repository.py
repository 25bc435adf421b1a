"""
SQLite-backed row mapper for key-value entries.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import cast

from kvstore_core.errors import UnknownEncodingError
from kvstore_core.schemas import StorageEncoding


def _require_bytes(value: object) -> bytes:
    if value is None:
        return b""
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return str(value).encode("utf-8")


def _require_encoding(value: object) -> StorageEncoding:
    try:
        return StorageEncoding(value)
    except ValueError as exc:
        raise UnknownEncodingError(f"Unknown encoding '{value}'") from exc


@dataclass
class Entry:
    key: str
    value: bytes
    encoding: StorageEncoding

    @classmethod
    def from_row(cls, key: str, row: sqlite3.Row) -> "Entry":
        return cls(
            key=key,
            value=_require_bytes(cast(object, row["value"])),
            encoding=_require_encoding(cast(object, row["encoding"])),
        )


class EntryRepository:
    """Reads and writes ``kvstore`` rows over one open connection."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self.connection: sqlite3.Connection = connection

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the block in one immediate transaction, rolling back on error."""
        _ = self.connection.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            _ = self.connection.execute("ROLLBACK")
            raise
        _ = self.connection.execute("COMMIT")

    def fetch(self, key: str) -> Entry | None:
        row = cast(
            sqlite3.Row | None,
            self.connection.execute(
                "SELECT value, encoding FROM kvstore WHERE key = ?",
                (key,),
            ).fetchone(),
        )
        if row is None:
            return None
        return Entry.from_row(key, row)

    def exists(self, key: str) -> bool:
        row = self.connection.execute(
            "SELECT 1 FROM kvstore WHERE key = ?",
            (key,),
        ).fetchone()
        return row is not None

    def keys(self) -> list[str]:
        rows = self.connection.execute("SELECT key FROM kvstore ORDER BY key").fetchall()
        return [str(cast(sqlite3.Row, row)["key"]) for row in rows]

    def insert_if_absent(self, key: str) -> bool:
        """Insert an empty raw placeholder row. Returns True if a row was created."""
        cursor = self.connection.execute(
            "INSERT OR IGNORE INTO kvstore (key, value, encoding) VALUES (?, X'', 'r')",
            (key,),
        )
        return cursor.rowcount == 1

    def update(self, key: str, value: bytes, encoding: StorageEncoding) -> None:
        _ = self.connection.execute(
            "UPDATE kvstore SET value = ?, encoding = ? WHERE key = ?",
            (value, encoding.value, key),
        )
