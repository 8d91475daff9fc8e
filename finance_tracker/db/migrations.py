"""Schema creation and forward migrations."""
import logging
from datetime import datetime, timezone
from typing import Callable, Dict, List

from finance_tracker.config import DATABASE_VERSION, DB_VERSION_KEY

from .connection import Database
from .errors import ValidationError
from .schema import DROP_ORDER, INDEXES_SQL, TABLES_SQL, split_statements

logger = logging.getLogger(__name__)

# Schema deltas keyed by the version they upgrade to. Version 1 is the
# initial schema, created directly by run_migrations().
MIGRATIONS: Dict[int, Callable[[Database], None]] = {}


class SchemaManager:
    """Creates the schema and tracks the persisted schema version."""

    def __init__(self, db: Database, target_version: int = DATABASE_VERSION):
        self.db = db
        self.target_version = target_version

    def get_version(self) -> int:
        """Get the stored schema version (0 when nothing is stored yet).

        Raises:
            ValidationError: the stored version is not an integer
        """
        has_settings = self.db.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name='settings'"
        ).rows
        if not has_settings:
            return 0

        value = self.db.execute(
            "SELECT value FROM settings WHERE key = ?", (DB_VERSION_KEY,)
        ).scalar()
        if value is None:
            return 0
        try:
            return int(value)
        except ValueError:
            raise ValidationError(
                f"Setting {DB_VERSION_KEY!r} is not an integer: {value!r}", field=DB_VERSION_KEY
            ) from None

    def is_first_launch(self) -> bool:
        """True when no schema version has been persisted."""
        return self.get_version() == 0

    def _set_version(self, version: int) -> None:
        self.db.execute(
            """INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at""",
            (DB_VERSION_KEY, str(version), datetime.now(timezone.utc).isoformat()),
        )

    def _create_schema(self) -> None:
        for statement in split_statements(TABLES_SQL) + split_statements(INDEXES_SQL):
            self.db.execute(statement)

    def run_migrations(self) -> int:
        """Bring the schema up to the target version. Returns the resulting version."""
        current = self.get_version()
        logger.info(f"Current database version: {current}")

        if current == self.target_version:
            logger.debug("Database is up to date")
            return current

        if current > self.target_version:
            logger.warning(
                f"Database version {current} is newer than supported version {self.target_version}"
            )
            return current

        with self.db.transaction():
            if current == 0:
                logger.info("Creating database schema")
                self._create_schema()
            else:
                logger.info(f"Migrating database from version {current} to {self.target_version}")
                for version in range(current + 1, self.target_version + 1):
                    migration = MIGRATIONS.get(version)
                    if migration is not None:
                        logger.debug(f"Applying migration to version {version}")
                        migration(self.db)
            self._set_version(self.target_version)

        logger.info(f"Database at version {self.target_version}")
        return self.target_version

    def drop_all_tables(self) -> None:
        """Drop every table. Test use only."""
        with self.db.transaction():
            for table in DROP_ORDER:
                self.db.execute(f"DROP TABLE IF EXISTS {table}")
        logger.info("Dropped all tables")

    def get_tables(self) -> List[str]:
        """Get list of tables in the database."""
        result = self.db.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
        )
        return [row["name"] for row in result]

    def get_indexes(self) -> List[str]:
        """Get list of user-defined indexes."""
        result = self.db.execute(
            "SELECT name FROM sqlite_master WHERE type='index' AND name LIKE 'idx_%' ORDER BY name"
        )
        return [row["name"] for row in result]
