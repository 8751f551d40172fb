"""Payment gateway registry.

One gateway per ``PaymentMethod``. ``PAYMENT_GATEWAY_ADAPTER`` selects the
card and wallet implementations:
- ``fake`` (default): FakeCardGateway / FakeWalletGateway
- ``live``: CardGateway (Stripe) / WalletGateway (PayPal)

Manual bank transfer never leaves the process, so it has a single adapter.
"""

from storefront.config import load_settings
from storefront.payments.gateway.card_adapter import CardGateway
from storefront.payments.gateway.fake_adapter import FakeCardGateway, FakeWalletGateway
from storefront.payments.gateway.manual_transfer import ManualTransferGateway
from storefront.payments.gateway.port import PaymentGateway, PaymentMethod
from storefront.payments.gateway.wallet_adapter import WalletGateway

_gateways: dict[PaymentMethod, PaymentGateway] = {}


def _build(method: PaymentMethod) -> PaymentGateway:
    settings = load_settings()
    if method is PaymentMethod.MANUAL_TRANSFER:
        return ManualTransferGateway(settings.bank, settings.store_currency)

    live = settings.payment_gateway_adapter == "live"
    if method is PaymentMethod.CARD:
        return CardGateway.from_settings(settings) if live else FakeCardGateway()
    return WalletGateway.from_settings(settings) if live else FakeWalletGateway()


def get_gateway(method: PaymentMethod) -> PaymentGateway:
    """Return the active gateway for ``method``, building the default on first use."""
    if method not in _gateways:
        _gateways[method] = _build(method)
    return _gateways[method]


def set_gateway(method: PaymentMethod, gateway: PaymentGateway) -> None:
    """Override the gateway for a method (useful for tests)."""
    _gateways[method] = gateway


def reset_gateways() -> None:
    """Drop every override and cached gateway."""
    _gateways.clear()
