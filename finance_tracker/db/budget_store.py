"""Budget store: CRUD over budgets and budget progress."""
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from finance_tracker.config import BUDGET_EXCEEDED_PERCENT, BUDGET_WARNING_PERCENT

from .connection import Database
from .errors import NotFoundError, ValidationError
from .models import BudgetInput, check_date, now_iso, today_iso, validate_input

logger = logging.getLogger(__name__)

BUDGET_FIELDS = ("category_id", "amount", "period", "start_date", "end_date")

SELECT_WITH_CATEGORY = """
    SELECT b.*, c.name AS category_name, c.icon AS category_icon, c.color AS category_color
    FROM budgets b
    JOIN categories c ON b.category_id = c.id
"""

ORDER_NEWEST = " ORDER BY b.created_at DESC, b.id DESC"


class BudgetStatus(str, Enum):
    ON_TRACK = "on_track"
    WARNING = "warning"
    EXCEEDED = "exceeded"


def classify_status(percentage: float) -> BudgetStatus:
    """Map a spent percentage onto a budget status.

    Below 80 is on track, 80 up to (not including) 100 is a warning, and
    100 or more is exceeded.
    """
    if percentage >= BUDGET_EXCEEDED_PERCENT:
        return BudgetStatus.EXCEEDED
    if percentage >= BUDGET_WARNING_PERCENT:
        return BudgetStatus.WARNING
    return BudgetStatus.ON_TRACK


class BudgetStore:
    """SQLite storage for per-category spending budgets."""

    def __init__(self, db: Database):
        self.db = db

    def _check_category(self, category_id: int) -> None:
        found = self.db.execute("SELECT 1 FROM categories WHERE id = ?", (category_id,)).rows
        if not found:
            raise ValidationError(
                f"Category with id {category_id} does not exist", field="category_id"
            )

    def create(
        self,
        category_id: int,
        amount: float,
        period: str,
        start_date: str,
        end_date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a budget and return the stored row.

        Raises:
            ValidationError: bad amount, period or dates, or unknown category
        """
        data = validate_input(BudgetInput, {
            "category_id": category_id,
            "amount": amount,
            "period": period,
            "start_date": start_date,
            "end_date": end_date,
        })
        self._check_category(data.category_id)

        now = now_iso()
        result = self.db.execute(
            """INSERT INTO budgets (category_id, amount, period, start_date, end_date, created_at, updated_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (data.category_id, data.amount, data.period, data.start_date, data.end_date, now, now)
        )
        logger.debug(f"Created {data.period} budget {result.lastrowid} for category {data.category_id}")
        return {"id": result.lastrowid, **data.model_dump(), "created_at": now, "updated_at": now}

    def get_by_id(self, budget_id: int) -> Optional[Dict[str, Any]]:
        """Get a budget by ID, with its category display fields."""
        return self.db.execute(SELECT_WITH_CATEGORY + " WHERE b.id = ?", (budget_id,)).first()

    def get_all(self) -> List[Dict[str, Any]]:
        """Get all budgets, newest first."""
        return self.db.execute(SELECT_WITH_CATEGORY + ORDER_NEWEST).rows

    def get_by_category(self, category_id: int) -> List[Dict[str, Any]]:
        """Get all budgets for a category, newest first."""
        return self.db.execute(
            SELECT_WITH_CATEGORY + " WHERE b.category_id = ?" + ORDER_NEWEST, (category_id,)
        ).rows

    def get_active(self, on_date: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get budgets whose window contains ``on_date`` (default: today)."""
        check = check_date(on_date, "on_date") if on_date else today_iso()
        return self.db.execute(
            SELECT_WITH_CATEGORY
            + " WHERE b.start_date <= ? AND (b.end_date IS NULL OR b.end_date >= ?)"
            + ORDER_NEWEST,
            (check, check)
        ).rows

    def update(self, budget_id: int, **fields) -> Dict[str, Any]:
        """Update a budget. Fields not passed keep their stored value.

        Raises:
            NotFoundError: no budget with this id
            ValidationError: the merged budget is invalid
        """
        unknown = sorted(set(fields) - set(BUDGET_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot update budget field(s): {', '.join(unknown)}", field=unknown[0])

        existing = self.get_by_id(budget_id)
        if existing is None:
            raise NotFoundError("Budget", budget_id)

        merged = {f: existing[f] for f in BUDGET_FIELDS}
        merged.update(fields)
        data = validate_input(BudgetInput, merged)
        self._check_category(data.category_id)

        self.db.execute(
            """UPDATE budgets
               SET category_id = ?, amount = ?, period = ?, start_date = ?, end_date = ?, updated_at = ?
               WHERE id = ?""",
            (data.category_id, data.amount, data.period, data.start_date, data.end_date,
             now_iso(), budget_id)
        )
        return self.get_by_id(budget_id)

    def delete(self, budget_id: int) -> None:
        """Delete a budget."""
        with self.db.transaction():
            found = self.db.execute("SELECT 1 FROM budgets WHERE id = ?", (budget_id,)).rows
            if not found:
                raise NotFoundError("Budget", budget_id)
            self.db.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
        logger.debug(f"Deleted budget {budget_id}")

    def _progress(self, budget: Dict[str, Any], period_start: str, period_end: str) -> Dict[str, Any]:
        spent = self.db.execute(
            """SELECT COALESCE(SUM(amount), 0) AS spent
               FROM transactions
               WHERE category_id = ? AND type = 'expense' AND date >= ? AND date <= ?""",
            (budget["category_id"], period_start, period_end)
        ).scalar()

        amount = budget["amount"]
        percentage = round(spent / amount * 100, 2) if amount > 0 else 0
        return {
            "budget_id": budget["id"],
            "category_id": budget["category_id"],
            "category_name": budget.get("category_name"),
            "budget_amount": amount,
            "spent": spent,
            "remaining": amount - spent,
            "percentage": percentage,
            "is_exceeded": spent > amount,
            "status": classify_status(percentage).value,
            "period_start": period_start,
            "period_end": period_end,
        }

    def get_progress(
        self,
        budget_id: int,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Compute how much of a budget has been spent.

        Sums expense transactions in the budget's category between
        ``start_date`` (default: the budget's start date) and ``end_date``
        (default: today), both inclusive.

        Returns:
            Dict with budget_id, budget_amount, spent, remaining, percentage,
            is_exceeded, status, period_start and period_end

        Raises:
            NotFoundError: no budget with this id
        """
        period_start = check_date(start_date, "start_date") if start_date else None
        period_end = check_date(end_date, "end_date") if end_date else today_iso()

        budget = self.get_by_id(budget_id)
        if budget is None:
            raise NotFoundError("Budget", budget_id)

        return self._progress(budget, period_start or budget["start_date"], period_end)

    def get_active_progress(self, on_date: Optional[str] = None) -> List[Dict[str, Any]]:
        """Progress of every budget active on ``on_date`` (default: today).

        Each budget is measured from its start date up to ``on_date``.
        """
        check = check_date(on_date, "on_date") if on_date else today_iso()
        return [self._progress(b, b["start_date"], check) for b in self.get_active(check)]
