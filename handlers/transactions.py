"""Handlers for transaction requests."""

from errors import AuthorizationError, FieldValidationError, NoChangeSignal
from logger import get_logger
from services.transactions import ALL_WALLETS
from validation.fields import (
    validate_amount,
    validate_category,
    validate_concept,
    validate_date,
)
from validation.guards import transaction_ownership, wallet_ownership
from validation.results import ValidationResult

logger = get_logger()


def _category_id(payload: dict):
    category = payload.get("category")
    if isinstance(category, dict):
        return category.get("_id")
    return category


def _require_owner(services, payload: dict):
    ownership = transaction_ownership(
        services.transactions, payload.get("user_id"), payload.get("_id")
    )
    if not ownership.valid:
        logger.warning(
            f"User {payload.get('user_id')} denied access to transaction {payload.get('_id')}"
        )
        raise AuthorizationError(ownership.errors)
    return ownership.value


def _require_wallet(services, user_id, wallet_id):
    ownership = wallet_ownership(services.wallets, user_id, wallet_id)
    if not ownership.valid:
        logger.warning(f"User {user_id} denied access to wallet {wallet_id}")
        raise AuthorizationError(ownership.errors)
    return ownership.value


def add_transaction(services, payload: dict) -> dict:
    user_id = payload.get("user_id")
    wallet = _require_wallet(services, user_id, payload.get("wallet_id"))

    category = validate_category(services.categories, _category_id(payload), user_id)
    amount = validate_amount(payload.get("amount"))
    transaction_date = validate_date(payload.get("transactionDate"))
    concept = validate_concept(payload.get("concept"))

    result = ValidationResult().merge(category, amount, transaction_date, concept)
    if not result.valid:
        raise FieldValidationError(result.errors)

    transaction = services.transactions.create(
        user_id,
        wallet.id,
        concept.value,
        amount.value,
        transaction_date.value,
        category.value.id,
        payload.get("excludeFromReport"),
    )
    return transaction.to_dict()


def delete_transaction(services, payload: dict) -> list:
    """Delete a transaction; deleting one half of a transfer deletes both."""
    transaction = _require_owner(services, payload)
    deleted = services.transactions.delete(transaction.id)
    return [t.to_dict() for t in deleted]


def edit_transaction(services, payload: dict) -> dict:
    """Apply the fields of ``payload`` that differ from the stored transaction.

    Only changed fields are validated. The wallet and category of a transfer
    half are fixed; requests to change them are ignored.
    """
    transaction = _require_owner(services, payload)
    user_id = payload.get("user_id")

    result = ValidationResult()
    content = {}

    wallet_id = payload.get("wallet_id")
    if wallet_id and wallet_id != transaction.wallet_id and not transaction.is_transfer:
        _require_wallet(services, user_id, wallet_id)
        content["wallet_id"] = wallet_id

    raw_concept = payload.get("concept")
    if raw_concept is not None and str(raw_concept).strip() != transaction.concept:
        concept = validate_concept(raw_concept)
        result.merge(concept)
        content["concept"] = concept.value

    category_id = _category_id(payload)
    if (
        category_id
        and category_id != transaction.category.id
        and not transaction.is_transfer
    ):
        category = validate_category(services.categories, category_id, transaction.user_id)
        result.merge(category)
        content["category"] = category_id

    raw_amount = payload.get("amount")
    if raw_amount is not None:
        amount = validate_amount(raw_amount)
        if abs(amount.value) != transaction.amount:
            result.merge(amount)
            content["amount"] = amount.value

    raw_date = payload.get("transactionDate")
    if raw_date and raw_date != transaction.transaction_date.isoformat():
        transaction_date = validate_date(raw_date)
        result.merge(transaction_date)
        content["transaction_date"] = transaction_date.value

    exclude = payload.get("excludeFromReport")
    if exclude is not None and bool(exclude) != bool(transaction.exclude_from_report):
        content["exclude_from_report"] = bool(exclude)

    if not result.valid:
        raise FieldValidationError(result.errors)

    if not content:
        raise NoChangeSignal()

    changes = services.transactions.update(transaction, content)
    logger.info(
        f"Edited transaction {transaction.id} ({len(changes['new'])} record(s) changed)"
    )
    return changes["new"][-1].to_dict()


def get_transaction(services, payload: dict) -> dict:
    return _require_owner(services, payload).to_dict()


def get_transactions(services, payload: dict) -> list:
    """List a month of transactions for a wallet (and its subwallets) or all wallets."""
    user_id = payload.get("user_id")
    wallet_id = payload.get("_id") or ALL_WALLETS

    if wallet_id != ALL_WALLETS:
        _require_wallet(services, user_id, wallet_id)

    transactions = services.transactions.get_all(
        wallet_id, user_id, payload.get("datamonth")
    )
    return [t.to_dict() for t in transactions]
