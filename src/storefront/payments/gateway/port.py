"""Payment gateway port (abstract interface).

Every way a customer can pay is a ``PaymentGateway`` selected by its
``PaymentMethod``. Gateways report declines and connectivity problems as a
failed ``PaymentResult``; only missing configuration raises, and it does so
before any network call is made.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class PaymentMethod(Enum):
    CARD = "card"
    WALLET = "wallet"
    MANUAL_TRANSFER = "manual_transfer"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @classmethod
    def parse(cls, value: "str | PaymentMethod | None") -> "PaymentMethod | None":
        """Resolve a submitted method name. Returns None for anything unknown."""
        if isinstance(value, PaymentMethod):
            return value
        key = (value or "").strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            return None


_LABELS = {
    PaymentMethod.CARD: "Credit Card",
    PaymentMethod.WALLET: "PayPal",
    PaymentMethod.MANUAL_TRANSFER: "Bank Transfer",
}

# Names used by storefront forms before methods were keyed by kind
_ALIASES = {
    "stripe": "card",
    "paypal": "wallet",
    "bank_transfer": "manual_transfer",
}


class ChargeStatus(Enum):
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"


class GatewayNotConfigured(Exception):
    """The gateway for a payment method is missing its credentials."""

    def __init__(self, method: PaymentMethod) -> None:
        self.method = method
        super().__init__(f"{method.label} is not configured")


@dataclass(frozen=True)
class PaymentResult:
    """Result of a charge attempt."""

    success: bool
    method: PaymentMethod
    amount: Decimal
    status: str = ChargeStatus.FAILED.value
    transaction_id: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    reference: str | None = None
    bank_details: dict | None = None
    instructions: str | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == ChargeStatus.PENDING.value

    @classmethod
    def paid(cls, method: PaymentMethod, amount: Decimal, transaction_id: str) -> "PaymentResult":
        return cls(
            success=True,
            method=method,
            amount=amount,
            status=ChargeStatus.PAID.value,
            transaction_id=transaction_id,
        )

    @classmethod
    def failed(
        cls,
        method: PaymentMethod,
        amount: Decimal,
        error_code: str | None,
        error_message: str,
    ) -> "PaymentResult":
        return cls(
            success=False,
            method=method,
            amount=amount,
            status=ChargeStatus.FAILED.value,
            error_code=error_code,
            error_message=error_message,
        )


@dataclass(frozen=True)
class IntentResult:
    """Result of creating a client-side payment intent (wallet order)."""

    success: bool
    intent_id: str | None = None
    status: str | None = None
    error_code: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class Verification:
    """Gateway-side status of an earlier transaction. Never mutates local orders."""

    success: bool
    status: str
    transaction_id: str | None = None
    error_message: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    method: PaymentMethod

    @abstractmethod
    def is_configured(self) -> bool:
        """True when the gateway has everything it needs to make calls."""
        ...

    @abstractmethod
    def charge(self, amount: Decimal, payment_data: dict, order_context: dict) -> PaymentResult:
        """Take payment for ``amount`` in the store currency."""
        ...

    @abstractmethod
    def verify(self, transaction_id: str) -> Verification:
        """Look up the gateway status of an earlier transaction."""
        ...

    def _require_configuration(self) -> None:
        if not self.is_configured():
            raise GatewayNotConfigured(self.method)


class IntentGateway(PaymentGateway):
    """A gateway where the customer approves an intent before it is captured."""

    @abstractmethod
    def create_intent(self, amount: Decimal, metadata: dict) -> IntentResult:
        """Create an intent the client-side widget can approve."""
        ...
