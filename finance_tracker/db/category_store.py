"""Category store: CRUD over spending/income categories."""
import logging
from typing import Any, Dict, List, Optional

from finance_tracker.config import DEFAULT_CATEGORIES

from .connection import Database
from .errors import ConstraintError, ConstraintReason, NotFoundError, ValidationError
from .models import CategoryInput, now_iso, validate_input

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "icon", "color")


class CategoryStore:
    """SQLite storage for categories."""

    def __init__(self, db: Database):
        self.db = db

    def _ensure_unique_name(self, name: str, exclude_id: Optional[int] = None) -> None:
        existing = self.get_by_name(name)
        if existing and existing["id"] != exclude_id:
            raise ConstraintError(
                f'Category with name "{name}" already exists', ConstraintReason.DUPLICATE
            )

    def create(
        self,
        name: str,
        icon: Optional[str] = None,
        color: Optional[str] = None,
        is_default: bool = False
    ) -> Dict[str, Any]:
        """Create a category and return the stored row.

        Raises:
            ValidationError: name is blank or color is not #RRGGBB
            ConstraintError: a category with the same name exists
        """
        data = validate_input(
            CategoryInput, {"name": name, "icon": icon, "color": color, "is_default": is_default}
        )
        self._ensure_unique_name(data.name)

        created_at = now_iso()
        try:
            result = self.db.execute(
                """INSERT INTO categories (name, icon, color, is_default, created_at)
                   VALUES (?, ?, ?, ?, ?)""",
                (data.name, data.icon, data.color, int(data.is_default), created_at)
            )
        except ConstraintError as e:
            raise ConstraintError(
                f'Category with name "{data.name}" already exists', ConstraintReason.DUPLICATE
            ) from e

        logger.debug(f"Created category {result.lastrowid}: {data.name}")
        return {
            "id": result.lastrowid,
            "name": data.name,
            "icon": data.icon,
            "color": data.color,
            "is_default": int(data.is_default),
            "created_at": created_at,
        }

    def get_by_id(self, category_id: int) -> Optional[Dict[str, Any]]:
        """Get a single category by ID."""
        return self.db.execute(
            "SELECT * FROM categories WHERE id = ?", (category_id,)
        ).first()

    def get_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Get a category by its exact (trimmed) name."""
        return self.db.execute(
            "SELECT * FROM categories WHERE name = ?", (name.strip(),)
        ).first()

    def get_all(self) -> List[Dict[str, Any]]:
        """Get all categories, defaults first and then by name."""
        return self.db.execute(
            "SELECT * FROM categories ORDER BY is_default DESC, name ASC"
        ).rows

    def exists(self, category_id: int) -> bool:
        return bool(self.db.execute(
            "SELECT 1 FROM categories WHERE id = ?", (category_id,)
        ).rows)

    def update(self, category_id: int, **fields) -> Dict[str, Any]:
        """Update name, icon and/or color of a category.

        Fields that are not passed keep their stored value. Passing
        ``icon=None`` or ``color=None`` clears them.
        """
        unknown = sorted(set(fields) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot update category field(s): {', '.join(unknown)}", field=unknown[0])

        existing = self.get_by_id(category_id)
        if existing is None:
            raise NotFoundError("Category", category_id)

        merged = {k: existing[k] for k in EDITABLE_FIELDS}
        merged.update(fields)
        data = validate_input(CategoryInput, merged)
        self._ensure_unique_name(data.name, exclude_id=category_id)

        try:
            self.db.execute(
                "UPDATE categories SET name = ?, icon = ?, color = ? WHERE id = ?",
                (data.name, data.icon, data.color, category_id)
            )
        except ConstraintError as e:
            raise ConstraintError(
                f'Category with name "{data.name}" already exists', ConstraintReason.DUPLICATE
            ) from e
        return self.get_by_id(category_id)

    def count_dependents(self, category_id: int) -> Dict[str, int]:
        """Count transactions and budgets that reference a category."""
        transactions = self.db.execute(
            "SELECT COUNT(*) AS count FROM transactions WHERE category_id = ?", (category_id,)
        ).scalar()
        budgets = self.db.execute(
            "SELECT COUNT(*) AS count FROM budgets WHERE category_id = ?", (category_id,)
        ).scalar()
        return {"transactions": transactions, "budgets": budgets}

    def delete(self, category_id: int) -> None:
        """Delete a category that nothing references.

        Raises:
            NotFoundError: no category with this id
            ConstraintError: transactions or budgets still use the category
        """
        with self.db.transaction():
            if not self.exists(category_id):
                raise NotFoundError("Category", category_id)

            counts = self.count_dependents(category_id)
            if counts["transactions"] > 0:
                raise ConstraintError(
                    f"Cannot delete category with {counts['transactions']} associated transaction(s)",
                    ConstraintReason.HAS_DEPENDENTS
                )
            if counts["budgets"] > 0:
                raise ConstraintError(
                    f"Cannot delete category with {counts['budgets']} associated budget(s)",
                    ConstraintReason.HAS_DEPENDENTS
                )

            self.db.execute("DELETE FROM categories WHERE id = ?", (category_id,))
        logger.debug(f"Deleted category {category_id}")

    def seed_defaults(self) -> List[Dict[str, Any]]:
        """Insert the default categories, skipping names that already exist."""
        created = []
        with self.db.transaction():
            for category in DEFAULT_CATEGORIES:
                try:
                    created.append(self.create(**category, is_default=True))
                except ConstraintError as e:
                    if e.reason is not ConstraintReason.DUPLICATE:
                        raise
        logger.info(f"Seeded {len(created)} default categories")
        return created
