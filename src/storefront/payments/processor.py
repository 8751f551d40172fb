"""Dispatches payment operations to the gateway for each payment method."""

import structlog

from storefront.payments.gateway import get_gateway
from storefront.payments.gateway.port import (
    IntentGateway,
    IntentResult,
    PaymentMethod,
    PaymentResult,
    Verification,
)
from storefront.shared.money import to_decimal

logger = structlog.get_logger(__name__)


class PaymentProcessor:
    def process(
        self,
        method: PaymentMethod | str,
        amount,
        payment_data: dict | None = None,
        order_context: dict | None = None,
    ) -> PaymentResult:
        """Charge ``amount`` through the gateway for ``method``.

        Raises ``GatewayNotConfigured`` when the gateway lacks credentials.
        Every other failure comes back as an unsuccessful ``PaymentResult``.
        """
        amount = to_decimal(amount)
        resolved = PaymentMethod.parse(method)
        if resolved is None:
            return PaymentResult.failed(PaymentMethod.CARD, amount, "invalid_method", "Invalid payment method")
        if amount <= 0:
            return PaymentResult.failed(resolved, amount, "invalid_amount", "Invalid payment amount")

        result = get_gateway(resolved).charge(amount, payment_data or {}, order_context or {})
        if result.success:
            logger.info(
                "payment_processed",
                payment_method=resolved.value,
                amount=str(amount),
                status=result.status,
                transaction_id=result.transaction_id,
            )
        else:
            logger.warning(
                "payment_declined",
                payment_method=resolved.value,
                amount=str(amount),
                error_code=result.error_code,
            )
        return result

    def create_intent(self, amount, metadata: dict | None = None) -> IntentResult:
        """Open a wallet intent for the client-side approval flow."""
        amount = to_decimal(amount)
        if amount <= 0:
            return IntentResult(success=False, error_code="invalid_amount", error_message="Invalid payment amount")

        gateway = get_gateway(PaymentMethod.WALLET)
        if not isinstance(gateway, IntentGateway):
            return IntentResult(
                success=False,
                error_code="gateway_unavailable",
                error_message="Wallet payments do not support intents",
            )
        return gateway.create_intent(amount, metadata or {})

    def verify_payment(self, method: PaymentMethod | str, transaction_id: str) -> Verification:
        """Ask the gateway for the status of an earlier transaction. Read only."""
        resolved = PaymentMethod.parse(method)
        if resolved is None:
            return Verification(success=False, status="failed", error_message="Invalid payment method")
        return get_gateway(resolved).verify(transaction_id)

    def is_method_available(self, method: PaymentMethod | str) -> bool:
        resolved = PaymentMethod.parse(method)
        if resolved is None:
            return False
        return get_gateway(resolved).is_configured()

    def get_available_methods(self) -> list[PaymentMethod]:
        return [method for method in PaymentMethod if self.is_method_available(method)]

