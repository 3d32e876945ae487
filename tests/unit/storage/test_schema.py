"""Tests for the resources table schema and ensure_schema()."""

import sqlite3

import pytest

from fhirstore.exceptions import StorageFaultError, UnsupportedOperationError
from fhirstore.storage.connection import sqlite_conn
from fhirstore.storage.resource_store import ResourceStore
from fhirstore.storage.schema import (
    SCHEMA_VERSION,
    UNIQUE_INDEX,
    ensure_schema,
    get_schema_version,
)


def _connect(db_path) -> sqlite3.Connection:
    return sqlite3.connect(str(db_path))


class TestEnsureSchema:
    def test_creates_on_fresh_database(self, db_path):
        with sqlite_conn(db_path) as conn:
            assert ensure_schema(conn) is True
            assert get_schema_version(conn) == SCHEMA_VERSION

    def test_second_call_is_noop(self, db_path):
        with sqlite_conn(db_path) as conn:
            ensure_schema(conn)
            assert ensure_schema(conn) is False

    def test_store_ensure_schema_idempotent(self, db_path):
        store = ResourceStore(db_path)
        assert store.ensure_schema() is True
        assert store.ensure_schema() is False
        assert ResourceStore(db_path).ensure_schema() is False

    def test_existing_rows_survive_reinit(self, store, db_path, sample_patient):
        store.insert(sample_patient)
        ResourceStore(db_path).ensure_schema()
        assert store.select("Patient", "123") == sample_patient

    def test_newer_version_unsupported(self, db_path):
        conn = _connect(db_path)
        try:
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")
            conn.commit()
        finally:
            conn.close()

        with pytest.raises(UnsupportedOperationError):
            ResourceStore(db_path).ensure_schema()

    def test_unsupported_leaves_database_untouched(self, db_path):
        conn = _connect(db_path)
        try:
            conn.execute("PRAGMA user_version = 7")
            conn.commit()
        finally:
            conn.close()

        with pytest.raises(NotImplementedError):
            ResourceStore(db_path).ensure_schema()

        conn = _connect(db_path)
        try:
            tables = conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'resources'"
            ).fetchall()
        finally:
            conn.close()
        assert tables == []

    def test_unsupported_version_blocks_operations(self, db_path, sample_patient):
        conn = _connect(db_path)
        try:
            conn.execute("PRAGMA user_version = 2")
            conn.commit()
        finally:
            conn.close()

        store = ResourceStore(db_path)
        with pytest.raises(UnsupportedOperationError):
            store.insert(sample_patient)

    def test_unopenable_database_is_storage_fault(self, tmp_path):
        # A directory cannot be opened as a database file.
        directory = tmp_path / "not-a-file"
        directory.mkdir()
        with pytest.raises(StorageFaultError):
            ResourceStore(directory).ensure_schema()

    def test_uncreatable_directory_is_storage_fault(self, tmp_path, sample_patient):
        blocker = tmp_path / "afile"
        blocker.write_text("")
        store = ResourceStore(blocker / "sub" / "FHIRDB")
        with pytest.raises(StorageFaultError):
            store.insert(sample_patient)


class TestOnDiskLayout:
    def test_columns(self, store, db_path):
        conn = _connect(db_path)
        try:
            info = conn.execute("PRAGMA table_info(resources)").fetchall()
        finally:
            conn.close()

        # (cid, name, type, notnull, default, pk)
        columns = [(row[1], row[2], row[3], row[5]) for row in info]
        assert columns == [
            ("_id", "INTEGER", 0, 1),
            ("resource_type", "TEXT", 1, 0),
            ("resource_id", "TEXT", 1, 0),
            ("resource", "TEXT", 1, 0),
        ]

    def test_surrogate_key_autoincrement(self, store, db_path):
        conn = _connect(db_path)
        try:
            sql = conn.execute(
                "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = 'resources'"
            ).fetchone()[0]
        finally:
            conn.close()
        assert "AUTOINCREMENT" in sql.upper()

    def test_unique_index(self, store, db_path):
        conn = _connect(db_path)
        try:
            indexes = {
                row[1]: row[2] for row in conn.execute("PRAGMA index_list(resources)").fetchall()
            }
            index_columns = [
                row[2] for row in conn.execute(f"PRAGMA index_info({UNIQUE_INDEX})").fetchall()
            ]
        finally:
            conn.close()

        assert UNIQUE_INDEX == "resources_resource_type_resource_id"
        assert indexes[UNIQUE_INDEX] == 1
        assert index_columns == ["resource_type", "resource_id"]

    def test_index_rejects_raw_duplicates(self, store, db_path):
        conn = _connect(db_path)
        try:
            conn.execute(
                "INSERT INTO resources (resource_type, resource_id, resource) VALUES ('Patient', '1', '{}')"
            )
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO resources (resource_type, resource_id, resource) VALUES ('Patient', '1', '{}')"
                )
        finally:
            conn.close()

    def test_not_null_enforced(self, store, db_path):
        conn = _connect(db_path)
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    "INSERT INTO resources (resource_type, resource_id, resource) VALUES ('Patient', NULL, '{}')"
                )
        finally:
            conn.close()
