"""Dispatches request envelopes to their handlers.

``MessageProcessor.process`` is what a queue consumer calls for every
message it receives: it never raises, every outcome is a response envelope.
"""

from errors import LedgerError, NoChangeSignal, UnexpectedError, UnsupportedOperation
from handlers import transactions, wallets
from logger import get_logger
from models.message import Message

logger = get_logger()

HANDLERS = {
    "add-Transaction": transactions.add_transaction,
    "delete-Transaction": transactions.delete_transaction,
    "edit-Transaction": transactions.edit_transaction,
    "get-Transaction": transactions.get_transaction,
    "get-Transactions": transactions.get_transactions,
    "add-Wallet": wallets.add_wallet,
    "delete-Wallet": wallets.delete_wallet,
    "edit-Wallet": wallets.edit_wallet,
    "get-Wallet": wallets.get_wallet,
    "get-Wallets": wallets.get_wallets,
    "transfer-Wallet": wallets.transfer_wallet,
}


class MessageProcessor:
    """Routes each request type to its handler.

    Args:
        services: Services container passed to every handler.
    """

    def __init__(self, services):
        self.services = services

    def process(self, message: dict) -> dict:
        """Handle one request envelope and build its response envelope.

        Args:
            message: Decoded ``{"type": ..., "payload": {...}}`` request.

        Returns:
            ``{"type", "status", "payload"}`` response dictionary.
        """
        try:
            request = Message.from_dict(message)
        except ValueError as e:
            logger.info(f"Rejected malformed message: {e}")
            return Message.error(str(e), 400).to_dict()

        return self.dispatch(request).to_dict()

    def dispatch(self, request: Message) -> Message:
        handler = HANDLERS.get(request.type)
        if handler is None:
            error = UnsupportedOperation(request.type)
            logger.debug(error.title)
            return Message.error(error.title, error.status)

        logger.info(f"{request.type}: {_target(request.payload)}")

        try:
            payload = handler(self.services, request.payload)
        except NoChangeSignal:
            return Message(type=request.type, payload=None, status=NoChangeSignal.status)
        except LedgerError as e:
            logger.info(f"{request.type} failed with {e.status}: {e.errors}")
            return Message.error(e.title, e.status, e.details())
        except Exception as e:
            logger.exception(f"Unexpected error handling {request.type}")
            error = UnexpectedError(e)
            return Message.error(error.title, error.status, error.details())

        return Message(type=request.type, payload=payload, status=200)


def _target(payload: dict) -> str:
    for key in ("_id", "wallet_id", "from_id"):
        if payload.get(key):
            return f"{key}={payload[key]}"
    return f"user_id={payload.get('user_id')}"
