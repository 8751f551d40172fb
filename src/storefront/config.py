"""Runtime settings read from the environment.

Adapters are selected the same way everywhere: ``fake`` by default so that
development and tests never reach a real gateway or mail server.
"""

import os
from dataclasses import dataclass, field


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class BankDetails:
    bank_name: str = ""
    account_name: str = ""
    account_number: str = ""
    routing_number: str = ""
    swift_code: str = ""

    def as_dict(self, currency: str) -> dict:
        return {
            "bank_name": self.bank_name,
            "account_name": self.account_name,
            "account_number": self.account_number,
            "routing_number": self.routing_number,
            "swift_code": self.swift_code,
            "currency": currency,
        }


@dataclass(frozen=True)
class Settings:
    payment_gateway_adapter: str = "fake"
    notification_adapter: str = "fake"

    stripe_secret_key: str = ""
    stripe_public_key: str = ""
    stripe_api_base: str = "https://api.stripe.com/v1"

    paypal_client_id: str = ""
    paypal_secret: str = ""
    paypal_mode: str = "sandbox"

    bank: BankDetails = field(default_factory=BankDetails)

    store_currency: str = "USD"
    order_number_prefix: str = "CC"
    gateway_timeout_seconds: int = 30

    @property
    def paypal_api_base(self) -> str:
        if self.paypal_mode == "live":
            return "https://api-m.paypal.com"
        return "https://api-m.sandbox.paypal.com"


def load_settings() -> Settings:
    """Build settings from environment variables."""
    return Settings(
        payment_gateway_adapter=os.environ.get("PAYMENT_GATEWAY_ADAPTER", "fake").lower(),
        notification_adapter=os.environ.get("NOTIFICATION_ADAPTER", "fake").lower(),
        stripe_secret_key=os.environ.get("STRIPE_SECRET_KEY", ""),
        stripe_public_key=os.environ.get("STRIPE_PUBLIC_KEY", ""),
        stripe_api_base=os.environ.get("STRIPE_API_BASE", "https://api.stripe.com/v1"),
        paypal_client_id=os.environ.get("PAYPAL_CLIENT_ID", ""),
        paypal_secret=os.environ.get("PAYPAL_SECRET", ""),
        paypal_mode=os.environ.get("PAYPAL_MODE", "sandbox").lower(),
        bank=BankDetails(
            bank_name=os.environ.get("BANK_NAME", ""),
            account_name=os.environ.get("BANK_ACCOUNT_NAME", ""),
            account_number=os.environ.get("BANK_ACCOUNT_NUMBER", ""),
            routing_number=os.environ.get("BANK_ROUTING_NUMBER", ""),
            swift_code=os.environ.get("BANK_SWIFT_CODE", ""),
        ),
        store_currency=os.environ.get("STORE_CURRENCY", "USD").upper(),
        order_number_prefix=os.environ.get("ORDER_NUMBER_PREFIX", "CC"),
        gateway_timeout_seconds=_env_int("GATEWAY_TIMEOUT_SECONDS", 30),
    )
