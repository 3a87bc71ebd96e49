"""Handlers for wallet requests.

Each handler takes the services container and a request payload and returns
the response payload. Failed checks are raised as ``errors.LedgerError``
subclasses for the message processor to turn into error responses.
"""

from errors import AuthorizationError, FieldValidationError, NoChangeSignal
from logger import get_logger
from models.wallet import NO_PARENT
from validation.fields import (
    set_icon_id,
    validate_amount,
    validate_concept,
    validate_currency,
    validate_date,
    validate_wallet_name,
)
from validation.guards import wallet_lineage, wallet_ownership
from validation.results import FieldError, ValidationResult

logger = get_logger()


def _require_owner(services, payload: dict, key: str = "_id"):
    ownership = wallet_ownership(services.wallets, payload.get("user_id"), payload.get(key))
    if not ownership.valid:
        logger.warning(
            f"User {payload.get('user_id')} denied access to wallet {payload.get(key)}"
        )
        raise AuthorizationError(ownership.errors)
    return ownership.value


def add_wallet(services, payload: dict) -> dict:
    """Create a wallet, optionally under a parent and with a starting balance."""
    user_id = payload.get("user_id")
    if not user_id:
        raise AuthorizationError({"wallet": FieldError.NOT_OWNER.value})

    lineage = wallet_lineage(services.wallets, user_id, payload.get("parent_id"))
    if not lineage.valid:
        logger.warning(f"User {user_id} cannot nest a wallet under {lineage.value}")
        raise AuthorizationError(lineage.errors)
    parent_id = lineage.value

    raw_currency = payload.get("currency")
    if raw_currency is None:
        if parent_id != NO_PARENT:
            raw_currency = services.wallets.find(parent_id).currency
        else:
            raw_currency = services.config.default_currency

    name = validate_wallet_name(services.wallets, payload.get("name"), user_id)
    amount = validate_amount(payload.get("money", 0))
    currency = validate_currency(services.wallets, raw_currency, parent_id)

    errors = ValidationResult().merge(name, amount, currency)
    if not errors.valid:
        raise FieldValidationError(errors.errors)

    wallet = services.wallets.create(
        user_id,
        name.value,
        set_icon_id(payload.get("icon_id")),
        currency.value,
        None if parent_id == NO_PARENT else parent_id,
    )

    if wallet.parent_id is not None:
        services.wallets.add_child(wallet.parent_id, wallet.id)

    if amount.value > 0:
        # Written before responding so the returned balance is the stored one
        try:
            basic = services.categories.get_basic_categories()
            services.transactions.create(
                user_id,
                wallet.id,
                services.config.seed_transaction_concept,
                amount.value,
                wallet.created_at.date(),
                basic["in"],
            )
        except Exception as e:
            logger.error(f"Initial transaction for wallet {wallet.id} failed: {e}")
            services.wallets.discard(wallet.id)
            raise

    logger.info(f"Created wallet {wallet.id} for user {user_id}")
    return services.wallets.find(wallet.id).to_dict()


def delete_wallet(services, payload: dict) -> dict:
    wallet = _require_owner(services, payload)
    deleted = services.wallets.delete(wallet.id)
    logger.info(f"Deleted wallet {wallet.id}")
    return deleted.to_dict()


def edit_wallet(services, payload: dict) -> dict:
    """Change a wallet's name, currency or icon. The balance cannot be edited."""
    wallet = _require_owner(services, payload)

    result = ValidationResult()
    content = {}

    raw_name = payload.get("name")
    if raw_name and str(raw_name).strip() != wallet.name:
        name = validate_wallet_name(services.wallets, raw_name, wallet.user_id)
        result.merge(name)
        content["name"] = name.value

    raw_currency = payload.get("currency")
    if raw_currency and str(raw_currency).strip().upper() != wallet.currency:
        currency = validate_currency(
            services.wallets, raw_currency, wallet.parent_id or NO_PARENT
        )
        if currency.valid and wallet.child_ids:
            currency.add("currency", FieldError.CURRENCY_LOCKED_BY_CHILDREN)
        result.merge(currency)
        content["currency"] = currency.value

    if payload.get("icon_id") is not None:
        icon_id = set_icon_id(payload["icon_id"])
        if icon_id != wallet.icon_id:
            content["icon_id"] = icon_id

    if not result.valid:
        raise FieldValidationError(result.errors)

    if not content:
        raise NoChangeSignal()

    return services.wallets.update(wallet.id, content).to_dict()


def get_wallet(services, payload: dict) -> dict:
    return _require_owner(services, payload).to_dict()


def get_wallets(services, payload: dict) -> dict:
    """List a user's top-level wallets, subwallets nested under them."""
    user_id = payload.get("_id") or payload.get("user_id")
    wallets = services.wallets.get_wallets(user_id)
    return {"wallets": [wallet.to_dict() for wallet in wallets]}


def transfer_wallet(services, payload: dict) -> list:
    """Move money between two of the user's wallets as a linked pair of transactions.

    The source wallet gets an expense and the destination an income, both in
    the global "Other" categories. A leg is excluded from reports when the
    other leg's wallet is its own wallet's parent.

    Returns:
        The two linked transactions, source leg first.
    """
    user_id = payload.get("user_id")
    from_id = payload.get("from_id")
    to_id = payload.get("to_id")

    source = wallet_ownership(services.wallets, user_id, from_id)
    destination = wallet_ownership(services.wallets, user_id, to_id)
    if not (source.valid and destination.valid):
        logger.warning(f"User {user_id} denied transfer {from_id} -> {to_id}")
        errors = {}
        if not source.valid:
            errors["from_id"] = FieldError.NOT_OWNER.value
        if not destination.valid:
            errors["to_id"] = FieldError.NOT_OWNER.value
        raise AuthorizationError(errors)

    result = ValidationResult()
    if from_id == to_id:
        result.add("to_id", FieldError.SAME_WALLET)

    amount = validate_amount(payload.get("amount"))
    concept = validate_concept(payload.get("concept"))
    transaction_date = validate_date(payload.get("transactionDate"))
    result.merge(amount, concept, transaction_date)

    if not result.valid:
        raise FieldValidationError(result.errors)

    from_wallet, to_wallet = source.value, destination.value
    basic = services.categories.get_basic_categories()

    outgoing = services.transactions.create(
        user_id,
        from_wallet.id,
        concept.value,
        amount.value,
        transaction_date.value,
        basic["out"],
        from_wallet.parent_id == to_wallet.id,
    )
    incoming = services.transactions.create(
        user_id,
        to_wallet.id,
        concept.value,
        amount.value,
        transaction_date.value,
        basic["in"],
        to_wallet.parent_id == from_wallet.id,
    )

    linked_out = services.transactions.update(outgoing, {"transfer_id": incoming.id})
    linked_in = services.transactions.update(incoming, {"transfer_id": outgoing.id})

    logger.info(f"Transferred {amount.value} from wallet {from_wallet.id} to {to_wallet.id}")
    return [t.to_dict() for t in linked_out["new"] + linked_in["new"]]
