"""Ownership and wallet hierarchy checks.

A guard fetches the record it checks and hands it back in ``value`` so the
caller does not look it up again. ``value`` is only meaningful once the
caller has confirmed ``valid``.
"""

from models.wallet import NO_PARENT
from validation.results import FieldError, ValidationResult


def wallet_ownership(wallets, user_id, wallet_id) -> ValidationResult:
    wallet = wallets.find(wallet_id)
    result = ValidationResult(value=wallet)

    if not user_id or wallet is None or wallet.user_id != user_id:
        result.add("wallet", FieldError.NOT_OWNER)

    return result


def transaction_ownership(transactions, user_id, transaction_id) -> ValidationResult:
    transaction = transactions.find(transaction_id)
    result = ValidationResult(value=transaction)

    if not user_id or transaction is None or transaction.user_id != user_id:
        result.add("transaction", FieldError.NOT_TRANSACTION_OWNER)

    return result


def wallet_lineage(wallets, user_id, parent_id) -> ValidationResult:
    """Check a wallet may be created under ``parent_id``.

    The parent must belong to the user and must not be a subwallet itself,
    which keeps the hierarchy at two levels.

    Returns:
        Result whose ``value`` is the parent id, "-1" when none was given.
    """
    parent = (str(parent_id).strip() if parent_id is not None else "") or NO_PARENT
    result = ValidationResult(value=parent)

    if parent == NO_PARENT:
        return result

    wallet = wallets.find(parent)
    if wallet is None or wallet.user_id != user_id:
        result.add("parent_id", FieldError.PARENT_NOT_OWNED)
    elif wallet.is_child:
        result.add("parent_id", FieldError.DEPTH_EXCEEDED)

    return result
