"""Wallet gateway backed by PayPal's Orders v2 API.

Two steps: ``create_intent`` opens a PayPal order that the customer
approves in the PayPal widget, then ``charge`` captures the approved order.
Each call fetches a client-credentials access token first.
"""

from decimal import Decimal

import requests
import structlog

from storefront.config import Settings
from storefront.payments.gateway.port import (
    ChargeStatus,
    IntentGateway,
    IntentResult,
    PaymentMethod,
    PaymentResult,
    Verification,
)
from storefront.shared.money import to_decimal

logger = structlog.get_logger(__name__)


class WalletGateway(IntentGateway):
    method = PaymentMethod.WALLET

    def __init__(
        self,
        client_id: str,
        secret: str,
        api_base: str = "https://api-m.sandbox.paypal.com",
        currency: str = "USD",
        timeout: int = 30,
        http: requests.Session | None = None,
    ) -> None:
        self.client_id = client_id
        self.secret = secret
        self.api_base = api_base.rstrip("/")
        self.currency = currency
        self.timeout = timeout
        self.http = http or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "WalletGateway":
        return cls(
            client_id=settings.paypal_client_id,
            secret=settings.paypal_secret,
            api_base=settings.paypal_api_base,
            currency=settings.store_currency,
            timeout=settings.gateway_timeout_seconds,
        )

    def is_configured(self) -> bool:
        return bool(self.client_id and self.secret)

    # -------------------------------------------------------------------
    # HTTP helpers
    # -------------------------------------------------------------------
    def _access_token(self) -> str | None:
        response = self.http.post(
            f"{self.api_base}/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.secret),
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        if response.status_code != 200:
            logger.warning("wallet_gateway_auth_failed", status_code=response.status_code)
            return None
        return response.json().get("access_token")

    def _request(self, method: str, path: str, token: str, payload: dict | None = None) -> dict:
        response = self.http.request(
            method,
            f"{self.api_base}{path}",
            json=payload,
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )
        return response.json()

    @staticmethod
    def _issue(body: dict) -> str | None:
        details = body.get("details") or []
        if details and details[0].get("issue"):
            return details[0]["issue"]
        return body.get("name")

    # -------------------------------------------------------------------
    # Gateway operations
    # -------------------------------------------------------------------
    def create_intent(self, amount: Decimal, metadata: dict) -> IntentResult:
        self._require_configuration()
        payload = {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "amount": {
                        "currency_code": self.currency,
                        "value": f"{to_decimal(amount):.2f}",
                    },
                    "description": metadata.get("description") or "Storefront order",
                }
            ],
        }
        try:
            token = self._access_token()
            if not token:
                return IntentResult(
                    success=False,
                    error_code="authentication_failed",
                    error_message="Failed to authenticate with PayPal",
                )
            body = self._request("POST", "/v2/checkout/orders", token, payload)
        except (requests.RequestException, ValueError) as exc:
            return IntentResult(success=False, error_code="processing_error", error_message=f"PayPal error: {exc}")

        if body.get("id"):
            return IntentResult(success=True, intent_id=body["id"], status=body.get("status"))
        return IntentResult(
            success=False,
            error_code=self._issue(body),
            error_message=body.get("message") or "Failed to create PayPal order",
        )

    def charge(self, amount: Decimal, payment_data: dict, order_context: dict) -> PaymentResult:
        order_id = (payment_data or {}).get("order_id")
        if not order_id:
            return PaymentResult.failed(self.method, amount, "missing_order_id", "PayPal order ID is required")

        self._require_configuration()

        try:
            token = self._access_token()
            if not token:
                return PaymentResult.failed(
                    self.method, amount, "authentication_failed", "Failed to authenticate with PayPal"
                )
            body = self._request("POST", f"/v2/checkout/orders/{order_id}/capture", token, {})
        except (requests.RequestException, ValueError) as exc:
            logger.warning("wallet_gateway_unreachable", error=str(exc))
            return PaymentResult.failed(
                self.method, amount, "processing_error", f"PayPal processing error: {exc}"
            )

        if body.get("status") == "COMPLETED":
            try:
                capture_id = body["purchase_units"][0]["payments"]["captures"][0]["id"]
            except (KeyError, IndexError, TypeError):
                capture_id = body.get("id") or order_id
            return PaymentResult.paid(self.method, amount, capture_id)

        return PaymentResult.failed(
            self.method,
            amount,
            self._issue(body),
            body.get("message") or "PayPal payment failed",
        )

    def verify(self, transaction_id: str) -> Verification:
        self._require_configuration()
        try:
            token = self._access_token()
            if not token:
                return Verification(
                    success=False,
                    status=ChargeStatus.FAILED.value,
                    transaction_id=transaction_id,
                    error_message="Failed to authenticate with PayPal",
                )
            body = self._request("GET", f"/v2/checkout/orders/{transaction_id}", token)
        except (requests.RequestException, ValueError) as exc:
            return Verification(
                success=False,
                status=ChargeStatus.FAILED.value,
                transaction_id=transaction_id,
                error_message=f"Verification error: {exc}",
            )

        status = body.get("status")
        if status == "COMPLETED":
            return Verification(success=True, status=ChargeStatus.PAID.value, transaction_id=transaction_id)
        return Verification(success=True, status=(status or "unknown").lower(), transaction_id=transaction_id)
