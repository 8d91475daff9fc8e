"""SQLite schema definitions for the finance tracker."""

TABLES_SQL = """
-- Categories table
CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    icon TEXT,
    color TEXT,  -- Hex color (#RRGGBB)
    is_default INTEGER DEFAULT 0,
    created_at TEXT NOT NULL
);

-- Transactions table
CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    amount REAL NOT NULL,
    description TEXT NOT NULL,
    date TEXT NOT NULL,  -- YYYY-MM-DD
    type TEXT NOT NULL,  -- 'income' or 'expense'
    category_id INTEGER,
    is_manually_set INTEGER DEFAULT 0,
    source TEXT,  -- 'manual', 'sms', 'upload'
    raw_data TEXT,  -- Original SMS text or file row
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (category_id) REFERENCES categories(id)
);

-- Budgets table
CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    category_id INTEGER NOT NULL,
    amount REAL NOT NULL,
    period TEXT NOT NULL,  -- 'monthly' or 'weekly'
    start_date TEXT NOT NULL,
    end_date TEXT,  -- NULL means open-ended
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    FOREIGN KEY (category_id) REFERENCES categories(id)
);

-- Settings table (also holds db_version)
CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
"""

INDEXES_SQL = """
CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);
CREATE INDEX IF NOT EXISTS idx_transactions_category ON transactions(category_id);
CREATE INDEX IF NOT EXISTS idx_transactions_type ON transactions(type);
CREATE INDEX IF NOT EXISTS idx_budgets_category ON budgets(category_id);
"""

# Tables holding foreign keys come before the tables they reference
DROP_ORDER = ("transactions", "budgets", "categories", "settings")


def split_statements(script: str):
    """Split a DDL script into single statements, dropping comment lines."""
    lines = [line for line in script.splitlines() if not line.strip().startswith("--")]
    return [stmt.strip() for stmt in "\n".join(lines).split(";") if stmt.strip()]
