"""Outbound channel for customer order emails."""

from abc import ABC, abstractmethod
from enum import Enum


class DeliveryStatus(Enum):
    SENT = "sent"
    FAILED = "failed"


class EmailPort(ABC):
    """Hands a rendered order email to a delivery provider.

    Adapters report delivery problems through the returned ``status`` rather
    than raising; callers still guard against unexpected exceptions.
    """

    @abstractmethod
    def send(self, to: str, subject: str, body: str, html_body: str | None = None) -> dict:
        """Returns ``{"message_id", "status", "error"}`` with ``status`` a ``DeliveryStatus`` value."""
