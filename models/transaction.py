from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from models.category import Category


@dataclass
class Transaction:
    id: str
    user_id: str
    wallet_id: str
    category: Category  # populated; its type gives the sign
    concept: str
    amount: Decimal  # always positive
    transaction_date: date
    created_at: datetime
    transfer_id: Optional[str] = None  # partner transaction of a transfer pair
    exclude_from_report: Optional[bool] = None

    @property
    def signed_amount(self) -> Decimal:
        """Contribution of this transaction to its wallet's balance."""
        return self.amount * self.category.type.sign

    @property
    def is_transfer(self) -> bool:
        return self.transfer_id is not None

    def to_dict(self) -> dict:
        """Convert transaction to the dictionary shape used in response payloads."""
        data = {
            "_id": self.id,
            "user_id": self.user_id,
            "wallet_id": self.wallet_id,
            "category": self.category.to_dict(),
            "concept": self.concept,
            "amount": float(self.amount),
            "transactionDate": self.transaction_date.isoformat(),
            "createdAt": self.created_at.isoformat(),
        }
        if self.transfer_id is not None:
            data["transfer_id"] = self.transfer_id
        if self.exclude_from_report is not None:
            data["excludeFromReport"] = self.exclude_from_report
        return data
