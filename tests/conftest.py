"""Pytest configuration and shared fixtures."""
import pytest
from pathlib import Path

from finance_tracker.db.budget_store import BudgetStore
from finance_tracker.db.category_store import CategoryStore
from finance_tracker.db.connection import Database
from finance_tracker.db.migrations import SchemaManager
from finance_tracker.db.settings_store import SettingsStore
from finance_tracker.db.transaction_store import TransactionStore


@pytest.fixture
def temp_db_path(tmp_path) -> Path:
    """Path to a database file that does not exist yet."""
    return tmp_path / "test_finance.db"


@pytest.fixture
def db(temp_db_path):
    """Open database with the schema applied."""
    database = Database(temp_db_path)
    SchemaManager(database).run_migrations()
    yield database
    database.close()


@pytest.fixture
def categories(db) -> CategoryStore:
    return CategoryStore(db)


@pytest.fixture
def transactions(db) -> TransactionStore:
    return TransactionStore(db)


@pytest.fixture
def budgets(db) -> BudgetStore:
    return BudgetStore(db)


@pytest.fixture
def settings(db) -> SettingsStore:
    return SettingsStore(db)


@pytest.fixture
def test_category(categories) -> dict:
    """A user category to hang transactions and budgets on."""
    return categories.create(name="Test Category", icon="test", color="#FF0000")


SAMPLE_TRANSACTIONS = [
    {"amount": 3500.00, "description": "Paycheck", "type": "income", "date": "2026-01-01"},
    {"amount": 125.50, "description": "Weekly groceries", "type": "expense", "date": "2026-01-03"},
    {"amount": 15.99, "description": "Streaming subscription", "type": "expense", "date": "2026-01-05"},
    {"amount": 2500.00, "description": "January rent", "type": "expense", "date": "2026-01-10", "source": "sms",
     "raw_data": "Debited 2500.00 for RENT on 10-01-2026"},
    {"amount": 200.00, "description": "Freelance", "type": "income", "date": "2026-02-02", "source": "upload"},
]


@pytest.fixture
def sample_transactions() -> list:
    """Sample transaction payloads."""
    return [dict(t) for t in SAMPLE_TRANSACTIONS]
