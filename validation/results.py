"""Result type shared by field validators and ownership guards."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class FieldError(str, Enum):
    """Error messages reported for a field; member names are the error codes."""

    AMOUNT_NOT_NUMBER = "Amount is not a number"
    INVALID_DATE_FORMAT = "The date must be in YYYY-MM-DD format"
    INVALID_DATE = "Invalid date"
    EMPTY_CONCEPT = "Concept must not be empty"
    EMPTY_CURRENCY = "Currency must not be empty"
    BAD_CURRENCY_LENGTH = "Currency must be a 3 letter acronym"
    CURRENCY_MISMATCH = "Currency must match its parent"
    CURRENCY_LOCKED_BY_CHILDREN = "Currency must match its subwallets"
    EMPTY_NAME = "Wallet name must not be empty"
    DUPLICATE_NAME = "Wallet name already exists"
    CATEGORY_NOT_FOUND = "Category doesn't exist"
    CATEGORY_NOT_OWNED = "Category does not belong to the user"
    NOT_OWNER = "User does not own this wallet"
    NOT_TRANSACTION_OWNER = "User does not own this transaction"
    PARENT_NOT_OWNED = "User does not own parent wallet"
    DEPTH_EXCEEDED = "Only one generation of subwallets is allowed"
    SAME_WALLET = "Source and destination wallets must be different"

    def __str__(self) -> str:
        return self.value


@dataclass
class ValidationResult:
    """Outcome of a validation step.

    Attributes:
        errors: Field name to error message; empty when valid.
        value: Whatever the step produced for the caller (a rounded amount,
            a normalized currency, a fetched wallet...), set even when invalid.
    """

    errors: Dict[str, str] = field(default_factory=dict)
    value: Any = None

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, field_name: str, error: FieldError) -> None:
        self.errors[field_name] = error.value

    def merge(self, *others: "ValidationResult") -> "ValidationResult":
        """Fold other results' errors into this one and return it."""
        for other in others:
            self.errors.update(other.errors)
        return self
