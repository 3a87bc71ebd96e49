"""Category service for database operations."""

import uuid
from typing import Optional

from logger import get_logger
from models.category import Category, CategoryType, GLOBAL_OWNER, NO_PARENT

logger = get_logger()

_CATEGORY_SELECT_FIELDS = "id, user_id, parent_id, name, type"

BASIC_CATEGORY_NAME = "Other"


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find(self, category_id: str) -> Optional[Category]:
        """Get a single category by ID.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
                (category_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_category(row)
            return None

    def create(
        self,
        user_id: str,
        name: str,
        category_type: CategoryType,
        parent_id: str = NO_PARENT,
    ) -> Category:
        """Create a new category.

        Args:
            user_id: Owning user, or "-1" for a global category.
            name: Category name.
            category_type: Income or Expense.
            parent_id: Parent category ID ("-1" for none).

        Returns:
            The created Category object with id populated.
        """
        category = Category(
            id=uuid.uuid4().hex,
            user_id=user_id,
            parent_id=parent_id,
            name=name,
            type=CategoryType(category_type),
        )
        with self.db_manager.connect() as conn:
            conn.execute(
                f"INSERT INTO categories ({_CATEGORY_SELECT_FIELDS}) VALUES (?, ?, ?, ?, ?)",
                (
                    category.id,
                    category.user_id,
                    category.parent_id,
                    category.name,
                    category.type.value,
                ),
            )
            conn.commit()

        return category

    def get_basic_categories(self) -> dict:
        """Make sure the global "Other" income and expense categories exist.

        Idempotent: existing rows are reused, missing ones are inserted.

        Returns:
            Dict with the category ids under "in" (Income) and "out" (Expense).
        """
        output = {}
        for key, category_type in (
            ("in", CategoryType.INCOME),
            ("out", CategoryType.EXPENSE),
        ):
            category = self._find_basic(category_type)
            if category is None:
                category = self.create(
                    GLOBAL_OWNER, BASIC_CATEGORY_NAME, category_type, NO_PARENT
                )
                logger.info(f"Inserted global {category_type.value} category")
            output[key] = category.id

        return output

    def _find_basic(self, category_type: CategoryType) -> Optional[Category]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_CATEGORY_SELECT_FIELDS}
                FROM categories
                WHERE user_id = ? AND parent_id = ? AND name = ? AND type = ?
                ORDER BY id
                LIMIT 1
                """,
                (GLOBAL_OWNER, NO_PARENT, BASIC_CATEGORY_NAME, category_type.value),
            )
            row = cursor.fetchone()
            return self._row_to_category(row) if row else None

    @staticmethod
    def _row_to_category(row) -> Category:
        """Convert a database row to a Category object."""
        return Category(
            id=row["id"],
            user_id=row["user_id"],
            parent_id=row["parent_id"],
            name=row["name"],
            type=CategoryType(row["type"]),
        )
