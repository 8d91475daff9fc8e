"""Connection manager: the single SQLite handle shared by every store."""
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from .errors import ConnectionError, ConstraintError

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class QueryResult:
    """Normalized result of one statement."""

    def __init__(self, rows: List[Dict[str, Any]], rowcount: int, lastrowid: Optional[int]):
        self.rows = rows
        self.rowcount = rowcount
        self.lastrowid = lastrowid

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self.rows)

    def __getitem__(self, index: int) -> Dict[str, Any]:
        return self.rows[index]

    def item(self, index: int) -> Dict[str, Any]:
        """Get the row at ``index``."""
        return self.rows[index]

    def first(self) -> Optional[Dict[str, Any]]:
        """Get the first row, or None for an empty result."""
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        """Get the first column of the first row, or None."""
        row = self.first()
        if row is None:
            return None
        return next(iter(row.values()))


class Database:
    """Owns one SQLite connection and runs every statement through it.

    The handle is opened lazily by the first statement. Once ``close()`` or
    ``reset()`` has been called, statements fail with ``ConnectionError``
    until ``open()`` is called again.
    """

    def __init__(self, db_path: Union[Path, str]):
        """Initialize with a database file path (or ``":memory:"``)."""
        self.db_path = str(db_path)
        self.conn: Optional[sqlite3.Connection] = None
        self._closed = False

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY_PATH

    @property
    def is_open(self) -> bool:
        return self.conn is not None

    def open(self) -> sqlite3.Connection:
        """Open the database, or return the already open handle."""
        if self.conn is not None:
            return self.conn

        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level=None)
        except sqlite3.Error as e:
            raise ConnectionError(f"Could not open database at {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        self.conn = conn
        self._closed = False
        logger.debug(f"Opened database {self.db_path}")
        return conn

    def close(self) -> None:
        """Close the database connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None
            logger.debug(f"Closed database {self.db_path}")
        self._closed = True

    def reset(self) -> None:
        """Close the connection and delete the database file. Test use only."""
        self.close()
        if self.is_memory:
            return
        for suffix in ("", "-wal", "-shm", "-journal"):
            Path(self.db_path + suffix).unlink(missing_ok=True)
        logger.info(f"Deleted database {self.db_path}")

    def _handle(self) -> sqlite3.Connection:
        if self.conn is not None:
            return self.conn
        if self._closed:
            raise ConnectionError(f"Database {self.db_path} is closed")
        return self.open()

    def execute(self, query: str, params: Sequence[Any] = ()) -> QueryResult:
        """Run one parameterized statement.

        Raises:
            ConstraintError: a UNIQUE, NOT NULL, CHECK or foreign key rule failed
            ConnectionError: the handle is closed or SQLite rejected the statement
        """
        conn = self._handle()
        try:
            cursor = conn.execute(query, tuple(params))
            rows = [dict(row) for row in cursor.fetchall()] if cursor.description else []
        except sqlite3.IntegrityError as e:
            raise ConstraintError(f"Constraint failed: {e}") from e
        except sqlite3.Error as e:
            # missing schema, locked or corrupt file
            raise ConnectionError(f"Statement failed on {self.db_path}: {e}") from e
        return QueryResult(rows, cursor.rowcount, cursor.lastrowid)

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """Run the enclosed statements as one atomic unit.

        A nested call joins the enclosing transaction.
        """
        conn = self._handle()
        if conn.in_transaction:
            yield self
            return

        conn.execute("BEGIN")
        try:
            yield self
        except BaseException:
            conn.rollback()
            raise
        else:
            conn.commit()

    def __enter__(self):
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
