"""Exceptions raised by request handlers.

Each carries the response status it maps to; the message processor turns
them into error envelopes.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for errors that become a response envelope."""

    status = 500
    title = "Unexpected error"

    def __init__(self, errors: Optional[dict] = None):
        super().__init__(self.title)
        self.errors = errors or {}

    def details(self):
        return self.errors or None


class AuthorizationError(LedgerError):
    """The caller does not own a wallet or transaction it referenced."""

    status = 403
    title = "Authentication Error"


class FieldValidationError(LedgerError):
    """One or more request fields are invalid; ``errors`` maps field to message."""

    status = 422
    title = "Invalid Fields"


class NoChangeSignal(LedgerError):
    """An edit request matched the stored record exactly."""

    status = 204
    title = "No changes"

    def details(self):
        return None


class UnsupportedOperation(LedgerError):
    status = 400

    def __init__(self, message_type: str):
        self.message_type = message_type
        self.title = f"Unsupported function type: {message_type}"
        super().__init__()


class UnexpectedError(LedgerError):
    """Wraps any exception that escaped a handler."""

    def __init__(self, original: BaseException):
        super().__init__()
        self.original = original

    def details(self):
        return {"error": f"{type(self.original).__name__}: {self.original}"}


class HierarchyError(ValueError):
    """A wallet would be nested more than one level deep."""
