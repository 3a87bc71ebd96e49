"""Category model for transaction classification."""

from dataclasses import dataclass
from enum import Enum

GLOBAL_OWNER = "-1"
NO_PARENT = "-1"


class CategoryType(str, Enum):
    """Direction a category moves money: into or out of a wallet."""

    INCOME = "Income"
    EXPENSE = "Expense"

    @property
    def sign(self) -> int:
        return 1 if self is CategoryType.INCOME else -1


@dataclass
class Category:
    """Represents a transaction category.

    Attributes:
        id: Unique identifier.
        user_id: Owning user, or "-1" for categories shared by every user.
        parent_id: Parent category ID, "-1" for top-level categories.
        name: Category name.
        type: Whether transactions in this category are income or expenses.
    """

    id: str
    user_id: str
    parent_id: str
    name: str
    type: CategoryType

    @property
    def is_global(self) -> bool:
        return self.user_id == GLOBAL_OWNER

    def to_dict(self) -> dict:
        return {
            "_id": self.id,
            "user_id": self.user_id,
            "parent_id": self.parent_id,
            "name": self.name,
            "type": self.type.value,
        }
