from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

# Wire value meaning "this wallet has no parent"
NO_PARENT = "-1"


@dataclass
class Wallet:
    id: str
    user_id: str
    name: str  # unique per user
    currency: str  # 3-letter code, upper case
    icon_id: int
    balance: Decimal  # running total, includes subwallet contributions
    parent_id: Optional[str]
    created_at: datetime
    child_ids: List[str] = field(default_factory=list)
    children: Optional[List["Wallet"]] = None  # only set when populated

    @property
    def is_root(self) -> bool:
        """A root wallet may hold subwallets; a child wallet may not."""
        return self.parent_id is None

    @property
    def is_child(self) -> bool:
        return self.parent_id is not None

    def to_dict(self) -> dict:
        """Convert wallet to the dictionary shape used in response payloads."""
        if self.children is not None:
            child_id = [child.to_dict() for child in self.children]
        else:
            child_id = list(self.child_ids)

        return {
            "_id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "currency": self.currency,
            "icon_id": self.icon_id,
            "money": float(self.balance),
            "parent_id": self.parent_id,
            "child_id": child_id,
            "createdAt": self.created_at.isoformat(),
        }
