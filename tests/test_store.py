import sqlite3
from pathlib import Path

import pytest

from kvstore_core.errors import SchemaError, UnknownEncodingError
from kvstore_core.schemas import StorageEncoding
from store.database import (
    MEMORY_PATH,
    SchemaSpec,
    connect,
    ensure_schema,
    installed_version,
    release_memory_database,
)
from store.repository import EntryRepository


@pytest.fixture
def repository(tmp_path: Path):
    with connect(str(tmp_path / "kv.db")) as connection:
        ensure_schema(connection)
        yield EntryRepository(connection)


class TestSchemaBootstrapper:
    def test_installs_table_and_version(self, tmp_path: Path) -> None:
        with connect(str(tmp_path / "kv.db")) as connection:
            assert installed_version(connection) is None
            assert ensure_schema(connection) == 1
            assert installed_version(connection) == 1
            columns = [row["name"] for row in connection.execute("PRAGMA table_info(kvstore)")]
        assert columns == ["key", "value", "encoding"]

    def test_second_call_is_noop(self, tmp_path: Path) -> None:
        db_path = str(tmp_path / "kv.db")
        with connect(db_path) as connection:
            ensure_schema(connection)
        with connect(db_path) as connection:
            assert ensure_schema(connection) == 1

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "dir" / "kv.db"
        with connect(str(db_path)) as connection:
            ensure_schema(connection)
        assert db_path.exists()

    def test_unversioned_table_is_rejected(self, tmp_path: Path) -> None:
        with connect(str(tmp_path / "kv.db")) as connection:
            connection.execute("CREATE TABLE kvstore (key TEXT)")
            with pytest.raises(SchemaError, match="no recorded schema version"):
                ensure_schema(connection)

    def test_newer_version_is_rejected(self, tmp_path: Path) -> None:
        with connect(str(tmp_path / "kv.db")) as connection:
            ensure_schema(connection)
            connection.execute("UPDATE meta SET value = '2' WHERE name = 'schema_version'")
            with pytest.raises(SchemaError, match="newer than supported"):
                ensure_schema(connection)

    def test_mismatched_columns_are_rejected(self, tmp_path: Path) -> None:
        with connect(str(tmp_path / "kv.db")) as connection:
            ensure_schema(connection)
            connection.execute("DROP TABLE kvstore")
            connection.execute("CREATE TABLE kvstore (key TEXT PRIMARY KEY, data BLOB)")
            with pytest.raises(SchemaError, match="expected"):
                ensure_schema(connection)

    def test_failed_install_rolls_back(self, tmp_path: Path) -> None:
        broken = SchemaSpec(
            table="broken",
            latest_version=1,
            install=("CREATE TABLE broken (a TEXT)", "THIS IS NOT SQL"),
            columns=("a",),
        )
        with connect(str(tmp_path / "kv.db")) as connection:
            with pytest.raises(sqlite3.Error):
                ensure_schema(connection, broken)
            tables = connection.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            ).fetchall()
        assert tables == []


class TestEntryRepository:
    def test_fetch_missing_returns_none(self, repository: EntryRepository) -> None:
        assert repository.fetch("missing") is None
        assert repository.exists("missing") is False

    def test_insert_if_absent_is_idempotent(self, repository: EntryRepository) -> None:
        assert repository.insert_if_absent("foo") is True
        assert repository.insert_if_absent("foo") is False
        entry = repository.fetch("foo")
        assert entry is not None
        assert entry.value == b""
        assert entry.encoding is StorageEncoding.RAW

    def test_update_sets_value_and_encoding(self, repository: EntryRepository) -> None:
        repository.insert_if_absent("foo")
        repository.update("foo", b'{"a":1}', StorageEncoding.JSON)
        entry = repository.fetch("foo")
        assert entry is not None
        assert entry.value == b'{"a":1}'
        assert entry.encoding is StorageEncoding.JSON

    def test_keys_are_sorted(self, repository: EntryRepository) -> None:
        assert repository.keys() == []
        for key in ["b", "a", "c"]:
            repository.insert_if_absent(key)
        assert repository.keys() == ["a", "b", "c"]

    def test_transaction_rolls_back_on_error(self, repository: EntryRepository) -> None:
        with pytest.raises(RuntimeError):
            with repository.transaction():
                repository.insert_if_absent("foo")
                raise RuntimeError("boom")
        assert repository.exists("foo") is False

    def test_unknown_stored_encoding(self, repository: EntryRepository) -> None:
        repository.connection.execute(
            "INSERT INTO kvstore (key, value, encoding) VALUES ('odd', X'00', 'h')"
        )
        with pytest.raises(UnknownEncodingError):
            repository.fetch("odd")
        assert repository.exists("odd") is True


def test_memory_database_survives_between_connections() -> None:
    try:
        with connect(MEMORY_PATH) as connection:
            ensure_schema(connection)
            EntryRepository(connection).insert_if_absent("transient")
        with connect(MEMORY_PATH) as connection:
            assert EntryRepository(connection).exists("transient")
    finally:
        release_memory_database()

    with connect(MEMORY_PATH) as connection:
        ensure_schema(connection)
        assert EntryRepository(connection).exists("transient") is False
    release_memory_database()
