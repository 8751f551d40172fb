"""Card gateway backed by Stripe's charges API.

The client-side widget tokenizes the card; this adapter only ever sees the
token. Amounts go over the wire as integer cents.
"""

from decimal import Decimal

import requests
import structlog

from storefront.config import Settings
from storefront.payments.gateway.port import (
    ChargeStatus,
    PaymentGateway,
    PaymentMethod,
    PaymentResult,
    Verification,
)
from storefront.shared.money import to_cents

logger = structlog.get_logger(__name__)


class CardGateway(PaymentGateway):
    method = PaymentMethod.CARD

    def __init__(
        self,
        secret_key: str,
        api_base: str = "https://api.stripe.com/v1",
        currency: str = "USD",
        timeout: int = 30,
        http: requests.Session | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.currency = currency
        self.timeout = timeout
        self.http = http or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CardGateway":
        return cls(
            secret_key=settings.stripe_secret_key,
            api_base=settings.stripe_api_base,
            currency=settings.store_currency,
            timeout=settings.gateway_timeout_seconds,
        )

    def is_configured(self) -> bool:
        return bool(self.secret_key)

    def charge(self, amount: Decimal, payment_data: dict, order_context: dict) -> PaymentResult:
        token = (payment_data or {}).get("token")
        if not token:
            return PaymentResult.failed(self.method, amount, "missing_token", "Payment token is required")

        self._require_configuration()

        order_number = order_context.get("order_number") or "New Order"
        form = {
            "amount": to_cents(amount),
            "currency": self.currency.lower(),
            "source": token,
            "description": f"Storefront order: {order_number}",
            "metadata[order_number]": order_context.get("order_number") or "",
            "metadata[customer_email]": order_context.get("email") or "",
        }

        try:
            response = self.http.post(
                f"{self.api_base}/charges",
                data=form,
                auth=(self.secret_key, ""),
                timeout=self.timeout,
            )
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("card_gateway_unreachable", error=str(exc))
            return PaymentResult.failed(
                self.method, amount, "processing_error", f"Payment processing error: {exc}"
            )

        if body.get("id") and body.get("status") == "succeeded":
            return PaymentResult.paid(self.method, amount, body["id"])

        error = body.get("error") or {}
        return PaymentResult.failed(
            self.method,
            amount,
            _error_code(error),
            error.get("message") or "Payment failed",
        )

    def verify(self, transaction_id: str) -> Verification:
        self._require_configuration()
        try:
            response = self.http.get(
                f"{self.api_base}/charges/{transaction_id}",
                auth=(self.secret_key, ""),
                timeout=self.timeout,
            )
            body = response.json()
        except (requests.RequestException, ValueError) as exc:
            return Verification(
                success=False,
                status=ChargeStatus.FAILED.value,
                transaction_id=transaction_id,
                error_message=f"Verification error: {exc}",
            )

        if body.get("id") and body.get("paid") is True:
            return Verification(success=True, status=ChargeStatus.PAID.value, transaction_id=body["id"])
        return Verification(
            success=False,
            status=ChargeStatus.FAILED.value,
            transaction_id=transaction_id,
            error_message="Payment not verified",
        )


def _error_code(error: dict) -> str | None:
    """Stripe's ``decline_code`` when it names a reason customers are told about, otherwise its ``code``."""
    # errors.py imports the gateway package
    from storefront.payments.errors import DEFAULT_CODE, ERROR_MESSAGES

    decline_code = error.get("decline_code")
    if decline_code != DEFAULT_CODE and decline_code in ERROR_MESSAGES:
        return decline_code
    return error.get("code") or decline_code
