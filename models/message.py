"""Request/response envelope exchanged with the message transport."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Message:
    """A typed message: requests carry a payload, responses also a status.

    Attributes:
        type: Operation name, e.g. "add-Wallet".
        payload: Request fields or response body.
        status: HTTP-style status code (responses only).
    """

    type: str
    payload: Any = field(default_factory=dict)
    status: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Message":
        """Build a request message from a decoded envelope.

        Raises:
            ValueError: If the envelope is not an object or has no type.
        """
        if not isinstance(data, dict):
            raise ValueError("Message envelope must be an object")
        message_type = data.get("type")
        if not isinstance(message_type, str) or not message_type:
            raise ValueError("Message envelope has no type")
        payload = data.get("payload")
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise ValueError("Message payload must be an object")
        return cls(type=message_type, payload=payload)

    @classmethod
    def error(cls, message: str, status: int = 400, details: Any = None) -> "Message":
        """Build an error response."""
        payload = {"error": message}
        if details is not None:
            payload["details"] = details
        return cls(type="error", payload=payload, status=status)

    def to_dict(self) -> dict:
        data = {"type": self.type, "payload": self.payload}
        if self.status is not None:
            data["status"] = self.status
        return data
