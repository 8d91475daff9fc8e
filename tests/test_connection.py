"""Tests for the connection manager."""
import pytest
from pathlib import Path

from finance_tracker.db.connection import Database, QueryResult
from finance_tracker.db.errors import ConnectionError, ConstraintError, ErrorKind


class TestDatabase:
    """Test cases for Database."""

    def test_open_is_idempotent(self, temp_db_path: Path):
        """Repeated open() calls return the same handle."""
        db = Database(temp_db_path)
        first = db.open()
        second = db.open()

        assert first is second
        assert db.is_open
        db.close()

    def test_open_creates_file(self, temp_db_path: Path):
        """Opening a missing database creates the file."""
        db = Database(temp_db_path)
        db.open()

        assert temp_db_path.exists()
        db.close()

    def test_execute_opens_lazily(self, temp_db_path: Path):
        """The first statement opens a never-opened database."""
        db = Database(temp_db_path)
        assert not db.is_open

        result = db.execute("SELECT 1 AS one")

        assert db.is_open
        assert result.scalar() == 1
        db.close()

    def test_execute_returns_normalized_result(self, temp_db_path: Path):
        """Results expose rowcount, rows by index and the insert id."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)")

        inserted = db.execute("INSERT INTO items (name) VALUES (?)", ("first",))
        db.execute("INSERT INTO items (name) VALUES (?)", ("second",))
        selected = db.execute("SELECT * FROM items ORDER BY id")

        assert isinstance(inserted, QueryResult)
        assert inserted.lastrowid == 1
        assert inserted.rowcount == 1
        assert len(selected) == 2
        assert selected.item(0) == {"id": 1, "name": "first"}
        assert selected[1]["name"] == "second"
        assert [row["name"] for row in selected] == ["first", "second"]
        db.close()

    def test_empty_result(self, temp_db_path: Path):
        """Empty results have no first row and a None scalar."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY)")

        result = db.execute("SELECT * FROM items")

        assert len(result) == 0
        assert result.first() is None
        assert result.scalar() is None
        db.close()

    def test_execute_after_close_raises(self, temp_db_path: Path):
        """A closed database does not reopen on its own."""
        db = Database(temp_db_path)
        db.open()
        db.close()

        with pytest.raises(ConnectionError) as exc_info:
            db.execute("SELECT 1")

        assert exc_info.value.kind is ErrorKind.CONNECTION
        assert not db.is_open

    def test_reopen_after_close(self, temp_db_path: Path):
        """An explicit open() after close() makes the database usable again."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY)")
        db.close()

        db.open()
        assert db.execute("SELECT COUNT(*) FROM items").scalar() == 0
        db.close()

    def test_close_twice_is_safe(self, temp_db_path: Path):
        """close() on an already closed database does nothing."""
        db = Database(temp_db_path)
        db.open()
        db.close()
        db.close()

        assert not db.is_open

    def test_reset_deletes_file(self, temp_db_path: Path):
        """reset() closes the handle and removes the database file."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY)")
        assert temp_db_path.exists()

        db.reset()

        assert not temp_db_path.exists()
        with pytest.raises(ConnectionError):
            db.execute("SELECT 1")

    def test_reset_then_open_gives_empty_database(self, temp_db_path: Path):
        """After reset() a reopened database has no tables."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY)")
        db.reset()

        db.open()
        tables = db.execute("SELECT name FROM sqlite_master WHERE type='table'").rows
        assert tables == []
        db.close()

    def test_memory_database(self):
        """In-memory databases work and reset() just closes them."""
        db = Database(":memory:")
        db.execute("CREATE TABLE items (id INTEGER PRIMARY KEY)")
        assert db.is_memory

        db.reset()
        assert not db.is_open

    def test_foreign_keys_enabled(self, temp_db_path: Path):
        """Foreign key enforcement is switched on for every connection."""
        db = Database(temp_db_path)

        assert db.execute("PRAGMA foreign_keys").scalar() == 1
        db.close()

    def test_integrity_error_translated(self, temp_db_path: Path):
        """Raw constraint failures surface as ConstraintError."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (name TEXT UNIQUE)")
        db.execute("INSERT INTO items (name) VALUES ('a')")

        with pytest.raises(ConstraintError):
            db.execute("INSERT INTO items (name) VALUES ('a')")
        db.close()

    def test_transaction_commits(self, temp_db_path: Path):
        """Statements inside transaction() are committed together."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (name TEXT)")

        with db.transaction():
            db.execute("INSERT INTO items (name) VALUES ('a')")
            db.execute("INSERT INTO items (name) VALUES ('b')")

        assert db.execute("SELECT COUNT(*) FROM items").scalar() == 2
        db.close()

    def test_transaction_rolls_back_on_error(self, temp_db_path: Path):
        """An exception inside transaction() discards every statement."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (name TEXT)")

        with pytest.raises(RuntimeError):
            with db.transaction():
                db.execute("INSERT INTO items (name) VALUES ('a')")
                raise RuntimeError("boom")

        assert db.execute("SELECT COUNT(*) FROM items").scalar() == 0
        db.close()

    def test_nested_transaction_joins_outer(self, temp_db_path: Path):
        """A nested transaction() is part of the outer unit."""
        db = Database(temp_db_path)
        db.execute("CREATE TABLE items (name TEXT)")

        with pytest.raises(RuntimeError):
            with db.transaction():
                with db.transaction():
                    db.execute("INSERT INTO items (name) VALUES ('inner')")
                raise RuntimeError("outer failure")

        assert db.execute("SELECT COUNT(*) FROM items").scalar() == 0
        db.close()

    def test_context_manager_closes(self, temp_db_path: Path):
        """Using Database in a with-block closes it on exit."""
        with Database(temp_db_path) as db:
            assert db.is_open

        assert not db.is_open

    def test_sql_error_translated(self, temp_db_path: Path):
        """Other SQLite failures surface as ConnectionError."""
        db = Database(temp_db_path)

        with pytest.raises(ConnectionError) as exc_info:
            db.execute("SELECT * FROM missing_table")

        assert "missing_table" in str(exc_info.value)
        db.close()
