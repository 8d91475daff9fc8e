"""Transaction store: CRUD, filtered queries and aggregates."""
import logging
from typing import Any, Dict, Iterable, List, Optional

from finance_tracker.config import TRANSACTION_TYPES

from .connection import Database
from .errors import NotFoundError, ValidationError
from .models import TransactionInput, check_date, now_iso, validate_input

logger = logging.getLogger(__name__)

TRANSACTION_FIELDS = (
    "amount", "description", "date", "type", "category_id",
    "is_manually_set", "source", "raw_data",
)

SELECT_WITH_CATEGORY = """
    SELECT t.*, c.name AS category_name, c.icon AS category_icon, c.color AS category_color
    FROM transactions t
    LEFT JOIN categories c ON t.category_id = c.id
"""

ORDER_MOST_RECENT = " ORDER BY t.date DESC, t.created_at DESC, t.id DESC"

# Blank values for these fields keep the stored value on update.
KEEP_IF_BLANK = ("date", "source", "raw_data")


def _check_non_negative(value: Optional[int], field: str) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError(f"{field} must be a non-negative integer", field=field)


class TransactionStore:
    """SQLite storage for income and expense transactions."""

    def __init__(self, db: Database):
        self.db = db

    def _check_category(self, category_id: Optional[int]) -> None:
        if category_id is None:
            return
        found = self.db.execute("SELECT 1 FROM categories WHERE id = ?", (category_id,)).rows
        if not found:
            raise ValidationError(
                f"Category with id {category_id} does not exist", field="category_id"
            )

    def _insert(self, data: TransactionInput) -> Dict[str, Any]:
        self._check_category(data.category_id)
        now = now_iso()
        record = data.model_dump()
        record["is_manually_set"] = int(data.is_manually_set)
        result = self.db.execute(
            """INSERT INTO transactions
               (amount, description, date, type, category_id, is_manually_set, source, raw_data, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            [record[f] for f in TRANSACTION_FIELDS] + [now, now]
        )
        return {"id": result.lastrowid, **record, "created_at": now, "updated_at": now}

    def create(
        self,
        amount: float,
        description: str,
        type: str,
        date: Optional[str] = None,
        category_id: Optional[int] = None,
        is_manually_set: bool = False,
        source: Optional[str] = None,
        raw_data: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a transaction and return the stored row.

        ``date`` defaults to today and ``source`` to ``manual``.

        Raises:
            ValidationError: bad amount, description, type, date, source or category
        """
        data = validate_input(TransactionInput, {
            "amount": amount,
            "description": description,
            "type": type,
            "date": date,
            "category_id": category_id,
            "is_manually_set": is_manually_set,
            "source": source,
            "raw_data": raw_data,
        })
        created = self._insert(data)
        logger.debug(f"Created {data.type} transaction {created['id']} on {data.date}")
        return created

    def create_many(self, transactions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Create several transactions atomically.

        Every record is validated before anything is written; one bad record
        rejects the whole batch.
        """
        validated = [validate_input(TransactionInput, dict(txn)) for txn in transactions]
        with self.db.transaction():
            created = [self._insert(data) for data in validated]
        logger.info(f"Created {len(created)} transactions")
        return created

    def get_by_id(self, txn_id: int) -> Optional[Dict[str, Any]]:
        """Get a transaction by ID, with its category display fields."""
        return self.db.execute(SELECT_WITH_CATEGORY + " WHERE t.id = ?", (txn_id,)).first()

    def get_all(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        category_id: Optional[int] = None,
        txn_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Get transactions matching all given filters, most recent first.

        A ``limit`` of None or 0 returns every matching row.
        """
        query = SELECT_WITH_CATEGORY + " WHERE 1=1"
        params: List[Any] = []

        if start_date:
            query += " AND t.date >= ?"
            params.append(check_date(start_date, "start_date"))
        if end_date:
            query += " AND t.date <= ?"
            params.append(check_date(end_date, "end_date"))
        if category_id is not None:
            query += " AND t.category_id = ?"
            params.append(category_id)
        if txn_type:
            if txn_type not in TRANSACTION_TYPES:
                raise ValidationError(f"Type must be one of {TRANSACTION_TYPES}", field="type")
            query += " AND t.type = ?"
            params.append(txn_type)

        query += ORDER_MOST_RECENT

        _check_non_negative(limit, "limit")
        _check_non_negative(offset, "offset")
        if limit or offset:
            query += " LIMIT ?"
            params.append(limit or -1)
        if offset:
            query += " OFFSET ?"
            params.append(offset)

        return self.db.execute(query, params).rows

    def get_by_date_range(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        """Get transactions between two dates (inclusive)."""
        return self.get_all(
            start_date=check_date(start_date, "start_date"),
            end_date=check_date(end_date, "end_date")
        )

    def get_by_category(self, category_id: int) -> List[Dict[str, Any]]:
        """Get all transactions for a category."""
        return self.get_all(category_id=category_id)

    def get_uncategorized(self) -> List[Dict[str, Any]]:
        """Get all transactions without a category."""
        return self.db.execute(
            SELECT_WITH_CATEGORY + " WHERE t.category_id IS NULL" + ORDER_MOST_RECENT
        ).rows

    def update(self, txn_id: int, **fields) -> Dict[str, Any]:
        """Update a transaction. Fields not passed keep their stored value.

        A None or blank ``date``, ``source`` or ``raw_data`` also keeps the
        stored value.

        Raises:
            NotFoundError: no transaction with this id
            ValidationError: the merged record is invalid
        """
        unknown = sorted(set(fields) - set(TRANSACTION_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot update transaction field(s): {', '.join(unknown)}", field=unknown[0])
        fields = {
            key: value for key, value in fields.items()
            if not (key in KEEP_IF_BLANK and (value is None or (isinstance(value, str) and not value.strip())))
        }

        existing = self.get_by_id(txn_id)
        if existing is None:
            raise NotFoundError("Transaction", txn_id)

        merged = {f: existing[f] for f in TRANSACTION_FIELDS}
        merged["is_manually_set"] = bool(merged["is_manually_set"])
        merged.update(fields)
        data = validate_input(TransactionInput, merged)
        self._check_category(data.category_id)

        self.db.execute(
            """UPDATE transactions
               SET amount = ?, description = ?, date = ?, type = ?, category_id = ?,
                   is_manually_set = ?, source = ?, raw_data = ?, updated_at = ?
               WHERE id = ?""",
            (data.amount, data.description, data.date, data.type, data.category_id,
             int(data.is_manually_set), data.source, data.raw_data, now_iso(), txn_id)
        )
        return self.get_by_id(txn_id)

    def set_category(self, txn_id: int, category_id: Optional[int], manual: bool = True) -> Dict[str, Any]:
        """Assign a category. ``manual=False`` marks an automatic assignment."""
        return self.update(txn_id, category_id=category_id, is_manually_set=manual)

    def delete(self, txn_id: int) -> None:
        """Delete a transaction."""
        with self.db.transaction():
            found = self.db.execute("SELECT 1 FROM transactions WHERE id = ?", (txn_id,)).rows
            if not found:
                raise NotFoundError("Transaction", txn_id)
            self.db.execute("DELETE FROM transactions WHERE id = ?", (txn_id,))
        logger.debug(f"Deleted transaction {txn_id}")

    def get_summary(self, start_date: str, end_date: str) -> Dict[str, Any]:
        """Total income, expense, balance and count for a date window."""
        row = self.db.execute(
            """SELECT
                 COALESCE(SUM(CASE WHEN type = 'income' THEN amount ELSE 0 END), 0) AS total_income,
                 COALESCE(SUM(CASE WHEN type = 'expense' THEN amount ELSE 0 END), 0) AS total_expense,
                 COUNT(*) AS total_count
               FROM transactions
               WHERE date >= ? AND date <= ?""",
            (check_date(start_date, "start_date"), check_date(end_date, "end_date"))
        ).first()

        total_income = row["total_income"]
        total_expense = row["total_expense"]
        return {
            "total_income": total_income,
            "total_expense": total_expense,
            "balance": total_income - total_expense,
            "total_count": row["total_count"],
        }

    def get_spending_by_category(self, start_date: str, end_date: str) -> List[Dict[str, Any]]:
        """Expense totals per category, largest first. Income is excluded."""
        return self.db.execute(
            """SELECT c.id, c.name, c.icon, c.color,
                      SUM(t.amount) AS total_amount,
                      COUNT(t.id) AS transaction_count
               FROM transactions t
               JOIN categories c ON t.category_id = c.id
               WHERE t.date >= ? AND t.date <= ? AND t.type = 'expense'
               GROUP BY c.id, c.name, c.icon, c.color
               ORDER BY total_amount DESC""",
            (check_date(start_date, "start_date"), check_date(end_date, "end_date"))
        ).rows
