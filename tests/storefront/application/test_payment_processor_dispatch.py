from decimal import Decimal

import pytest

from storefront.payments.gateway import get_gateway, reset_gateways, set_gateway
from storefront.payments.gateway.fake_adapter import FakeCardGateway, FakeWalletGateway
from storefront.payments.gateway.manual_transfer import ManualTransferGateway
from storefront.payments.gateway.port import GatewayNotConfigured, PaymentMethod
from storefront.payments.processor import PaymentProcessor


@pytest.fixture()
def processor():
    return PaymentProcessor()


class TestProcess:
    def test_card_charge(self, processor, card_gateway):
        result = processor.process("card", "19.99", {"token": "tok_visa"}, {"email": "ada@example.com"})

        assert result.success
        assert result.status == "paid"
        assert result.transaction_id.startswith("fake_txn_")
        assert card_gateway.charge_calls[0]["amount"] == Decimal("19.99")
        assert card_gateway.charge_calls[0]["order_context"] == {"email": "ada@example.com"}

    @pytest.mark.parametrize("alias", ["stripe", "STRIPE", " card "])
    def test_card_aliases(self, processor, card_gateway, alias):
        assert processor.process(alias, 10).method is PaymentMethod.CARD

    def test_unknown_method(self, processor, card_gateway):
        result = processor.process("cheque", 10)

        assert not result.success
        assert result.error_code == "invalid_method"
        assert card_gateway.calls == []

    @pytest.mark.parametrize("amount", [0, "-5.00"])
    def test_non_positive_amount(self, processor, card_gateway, amount):
        result = processor.process("card", amount, {"token": "tok_visa"})

        assert result.error_code == "invalid_amount"
        assert card_gateway.calls == []

    def test_decline_is_returned_not_raised(self, processor, wallet_gateway):
        wallet_gateway.configure(should_succeed=False, failure_code="PAYER_ACTION_REQUIRED")

        result = processor.process("paypal", 10, {"order_id": "PP-1"})

        assert not result.success
        assert result.error_code == "PAYER_ACTION_REQUIRED"

    def test_unconfigured_gateway_raises_before_charging(self, processor, card_gateway):
        card_gateway.configured = False

        with pytest.raises(GatewayNotConfigured) as exc:
            processor.process("card", 10, {"token": "tok_visa"})

        assert exc.value.method is PaymentMethod.CARD
        assert card_gateway.calls == []

    def test_manual_transfer_is_pending(self, processor, monkeypatch):
        monkeypatch.setenv("BANK_ACCOUNT_NUMBER", "12345678")
        monkeypatch.setenv("STORE_CURRENCY", "eur")

        result = processor.process("bank_transfer", "42.10")

        assert result.success
        assert result.is_pending
        assert result.reference.startswith("BT-")
        assert result.transaction_id == result.reference
        assert result.bank_details["account_number"] == "12345678"
        assert result.bank_details["currency"] == "EUR"
        assert "Please transfer 42.10 EUR" in result.instructions
        assert result.reference in result.instructions


class TestIntentsAndVerification:
    def test_create_intent(self, processor, wallet_gateway):
        result = processor.create_intent("30.00", {"description": "Order"})

        assert result.success
        assert wallet_gateway.calls[0]["metadata"] == {"description": "Order"}

    def test_create_intent_rejects_zero(self, processor, wallet_gateway):
        assert processor.create_intent(0).error_code == "invalid_amount"
        assert wallet_gateway.calls == []

    def test_create_intent_needs_intent_gateway(self, processor):
        set_gateway(PaymentMethod.WALLET, FakeCardGateway())
        assert processor.create_intent(10).error_code == "gateway_unavailable"

    def test_verify_known_and_unknown(self, processor, card_gateway):
        charge = processor.process("card", 10, {"token": "tok_visa"})

        assert processor.verify_payment("card", charge.transaction_id).status == "paid"
        unknown = processor.verify_payment("card", "txn_missing")
        assert not unknown.success
        assert unknown.error_message == "Payment not verified"

    def test_verify_unknown_method(self, processor):
        assert processor.verify_payment("cheque", "txn").error_message == "Invalid payment method"


class TestAvailability:
    def test_only_configured_methods(self, processor, card_gateway, wallet_gateway):
        wallet_gateway.configured = False

        assert processor.get_available_methods() == [PaymentMethod.CARD, PaymentMethod.MANUAL_TRANSFER]
        assert processor.is_method_available("card")
        assert not processor.is_method_available("paypal")
        assert not processor.is_method_available("cheque")


class TestRegistry:
    def test_fake_adapters_by_default(self, monkeypatch):
        monkeypatch.delenv("PAYMENT_GATEWAY_ADAPTER", raising=False)
        reset_gateways()

        assert isinstance(get_gateway(PaymentMethod.CARD), FakeCardGateway)
        assert isinstance(get_gateway(PaymentMethod.WALLET), FakeWalletGateway)
        assert isinstance(get_gateway(PaymentMethod.MANUAL_TRANSFER), ManualTransferGateway)

    def test_live_adapters_without_credentials_are_unavailable(self, monkeypatch):
        monkeypatch.setenv("PAYMENT_GATEWAY_ADAPTER", "live")
        monkeypatch.delenv("STRIPE_SECRET_KEY", raising=False)
        monkeypatch.delenv("PAYPAL_CLIENT_ID", raising=False)
        reset_gateways()

        assert PaymentProcessor().get_available_methods() == [PaymentMethod.MANUAL_TRANSFER]

    def test_gateway_is_cached(self):
        assert get_gateway(PaymentMethod.CARD) is get_gateway(PaymentMethod.CARD)
