"""Configuration settings for the finance tracker persistence layer."""
import os
from pathlib import Path
from typing import Dict, List

# Paths
DATA_DIR = Path.home() / ".finance_tracker"
DB_NAME = "FinanceTracker.db"
DB_PATH = Path(os.environ["FINANCE_TRACKER_DB"]) if os.environ.get("FINANCE_TRACKER_DB") else DATA_DIR / DB_NAME

# Schema version written to the settings table after migrations
DATABASE_VERSION = 1
DB_VERSION_KEY = "db_version"

# Allowed enum values
TRANSACTION_TYPES = ("income", "expense")
TRANSACTION_SOURCES = ("manual", "sms", "upload")
BUDGET_PERIODS = ("monthly", "weekly")

# Budget status thresholds (percent of the budget amount spent)
BUDGET_WARNING_PERCENT = 80
BUDGET_EXCEEDED_PERCENT = 100

# Default categories, seeded on first launch
DEFAULT_CATEGORIES: List[Dict[str, str]] = [
    {"name": "Food & Dining", "icon": "food", "color": "#FF6B6B"},
    {"name": "Transport", "icon": "car", "color": "#4ECDC4"},
    {"name": "Shopping", "icon": "shopping", "color": "#45B7D1"},
    {"name": "Bills & Utilities", "icon": "receipt", "color": "#FFA07A"},
    {"name": "Entertainment", "icon": "movie", "color": "#98D8C8"},
    {"name": "Health & Fitness", "icon": "heart", "color": "#F7B731"},
    {"name": "Education", "icon": "school", "color": "#5F27CD"},
    {"name": "Groceries", "icon": "cart", "color": "#00D2D3"},
    {"name": "Salary", "icon": "cash", "color": "#1DD1A1"},
    {"name": "Other Income", "icon": "cash-multiple", "color": "#10AC84"},
    {"name": "Uncategorized", "icon": "help-circle", "color": "#95A5A6"},
]

# Default settings, seeded on first launch (values are stored as text)
DEFAULT_SETTINGS: Dict[str, str] = {
    "currency": "USD",
    "theme": "light",
    "notifications_enabled": "true",
    "budget_alerts_enabled": "true",
}


def ensure_data_dir() -> Path:
    """Ensure the data directory exists."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    return DATA_DIR
