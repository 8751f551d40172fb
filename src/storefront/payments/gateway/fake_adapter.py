"""Configurable fake card and wallet gateways for development and testing.

These adapters simulate the real gateways without any external calls. They
can be told to decline with a specific gateway error code, and they record
every call so tests can assert what was (and was not) charged.
"""

from decimal import Decimal
from uuid import uuid4

from storefront.payments.gateway.port import (
    ChargeStatus,
    IntentGateway,
    IntentResult,
    PaymentGateway,
    PaymentMethod,
    PaymentResult,
    Verification,
)


class _ConfigurableFake:
    default_failure_code = "card_declined"
    default_failure_message = "Your card was declined."

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.configured: bool = True
        self.failure_code: str | None = self.default_failure_code
        self.failure_message: str = self.default_failure_message
        self.calls: list[dict] = []
        self.charged: dict[str, Decimal] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_code: str | None = None,
        failure_message: str | None = None,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_code = failure_code if failure_code is not None else self.default_failure_code
        self.failure_message = failure_message or self.default_failure_message

    def is_configured(self) -> bool:
        return self.configured

    @property
    def charge_calls(self) -> list[dict]:
        return [call for call in self.calls if call["method"] == "charge"]

    def _charge(self, method: PaymentMethod, amount: Decimal, payment_data: dict, order_context: dict):
        self.calls.append(
            {
                "method": "charge",
                "amount": amount,
                "payment_data": dict(payment_data or {}),
                "order_context": dict(order_context or {}),
            }
        )
        if self.should_succeed:
            transaction_id = f"fake_txn_{uuid4().hex[:12]}"
            self.charged[transaction_id] = amount
            return PaymentResult.paid(method, amount, transaction_id)
        return PaymentResult.failed(method, amount, self.failure_code, self.failure_message)

    def verify(self, transaction_id: str) -> Verification:
        self.calls.append({"method": "verify", "transaction_id": transaction_id})
        if transaction_id in self.charged:
            return Verification(success=True, status=ChargeStatus.PAID.value, transaction_id=transaction_id)
        return Verification(
            success=False,
            status=ChargeStatus.FAILED.value,
            transaction_id=transaction_id,
            error_message="Payment not verified",
        )


class FakeCardGateway(_ConfigurableFake, PaymentGateway):
    method = PaymentMethod.CARD

    def charge(self, amount: Decimal, payment_data: dict, order_context: dict) -> PaymentResult:
        self._require_configuration()
        return self._charge(self.method, amount, payment_data, order_context)


class FakeWalletGateway(_ConfigurableFake, IntentGateway):
    method = PaymentMethod.WALLET
    default_failure_code = "INSTRUMENT_DECLINED"
    default_failure_message = "The instrument presented was either declined by the processor or bank."

    def charge(self, amount: Decimal, payment_data: dict, order_context: dict) -> PaymentResult:
        self._require_configuration()
        return self._charge(self.method, amount, payment_data, order_context)

    def create_intent(self, amount: Decimal, metadata: dict) -> IntentResult:
        self._require_configuration()
        self.calls.append({"method": "create_intent", "amount": amount, "metadata": dict(metadata or {})})
        return IntentResult(success=True, intent_id=f"fake_order_{uuid4().hex[:12]}", status="CREATED")
