"""Finance service - startup/shutdown and access to the stores."""
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from finance_tracker.config import DB_PATH, ensure_data_dir
from finance_tracker.db.budget_store import BudgetStore
from finance_tracker.db.category_store import CategoryStore
from finance_tracker.db.connection import Database
from finance_tracker.db.migrations import SchemaManager
from finance_tracker.db.settings_store import SettingsStore
from finance_tracker.db.transaction_store import TransactionStore

logger = logging.getLogger(__name__)


class FinanceService:
    """Entry point for the rest of the application.

    Builds one ``Database`` and hands it to every store. Call
    ``initialize()`` once at startup and ``shutdown()`` on exit, or use the
    service as a context manager.
    """

    def __init__(self, db_path: Optional[Union[Path, str]] = None):
        """Initialize the finance service.

        Args:
            db_path: Path to SQLite database (default: ~/.finance_tracker/FinanceTracker.db,
                or $FINANCE_TRACKER_DB). ``":memory:"`` keeps everything in memory.
        """
        if db_path is None:
            ensure_data_dir()
            db_path = DB_PATH
        elif str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db_path = db_path
        self.db = Database(db_path)
        self.schema = SchemaManager(self.db)
        self.categories = CategoryStore(self.db)
        self.transactions = TransactionStore(self.db)
        self.budgets = BudgetStore(self.db)
        self.settings = SettingsStore(self.db)

    def initialize(self) -> Dict[str, Any]:
        """Open the database, migrate it and seed defaults on first launch.

        Returns:
            Dict with first_launch, version, seeded_categories and seeded_settings
        """
        logger.info("Initializing database...")
        self.db.open()

        seeded_categories = 0
        seeded_settings = 0
        # Schema creation and seeding commit together, so a failed first
        # launch is retried in full on the next start.
        with self.db.transaction():
            first_launch = self.schema.is_first_launch()
            version = self.schema.run_migrations()
            if first_launch:
                logger.info("First launch detected, seeding initial data...")
                seeded_categories = len(self.categories.seed_defaults())
                seeded_settings = len(self.settings.initialize_defaults())

        logger.info("Database initialized successfully")
        return {
            "first_launch": first_launch,
            "version": version,
            "seeded_categories": seeded_categories,
            "seeded_settings": seeded_settings,
        }

    def shutdown(self) -> None:
        """Close the database connection."""
        self.db.close()
        logger.info("Database connection closed")

    def reset(self) -> None:
        """Delete the database file entirely. The next initialize() starts fresh."""
        self.db.reset()

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()
