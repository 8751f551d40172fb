"""Tests for PaymentErrorClassifier."""

import pytest

from storefront.payments.errors import ERROR_MESSAGES, MAX_RETRY_ATTEMPTS, PaymentErrorClassifier
from storefront.payments.gateway.port import PaymentMethod


@pytest.fixture()
def classifier():
    return PaymentErrorClassifier()


class TestUserMessage:
    def test_exact_code_wins(self, classifier):
        info = classifier.classify("insufficient_funds", "Your card has insufficient funds.", PaymentMethod.CARD)
        assert info.message == "Insufficient funds. Please try a different card."

    def test_wallet_code(self, classifier):
        info = classifier.classify("INSTRUMENT_DECLINED", None, PaymentMethod.WALLET)
        assert info.message == ERROR_MESSAGES["INSTRUMENT_DECLINED"]

    def test_keyword_fallback(self, classifier):
        info = classifier.classify("do_not_honor", "The card was DECLINED by the issuer", PaymentMethod.CARD)
        assert info.message == ERROR_MESSAGES["card_declined"]

    def test_keyword_order_first_match_wins(self, classifier):
        info = classifier.classify("unknown", "declined: insufficient balance", PaymentMethod.CARD)
        assert info.message == ERROR_MESSAGES["card_declined"]

    def test_cvv_keyword(self, classifier):
        info = classifier.classify(None, "Bad CVV supplied", PaymentMethod.CARD)
        assert info.message == ERROR_MESSAGES["incorrect_cvc"]

    def test_generic_fallback(self, classifier):
        info = classifier.classify("weird_code", "Something odd", PaymentMethod.CARD)
        assert info.message == ERROR_MESSAGES["default"]

    def test_missing_code_is_default(self, classifier):
        assert classifier.classify(None, None, None).error_code == "default"


class TestRecoverability:
    @pytest.mark.parametrize("code", ["authentication_failed", "gateway_unavailable", "PAYEE_BLOCKED_TRANSACTION"])
    def test_non_recoverable(self, classifier, code):
        assert classifier.is_recoverable(code) is False

    def test_declines_are_recoverable(self, classifier):
        assert classifier.is_recoverable("card_declined") is True


class TestSuggestions:
    def test_code_specific(self, classifier):
        info = classifier.classify("expired_card", None, PaymentMethod.CARD)
        assert info.suggestion == "Update your card information or use a different card."

    def test_method_fallback(self, classifier):
        assert classifier.suggestion("weird", PaymentMethod.CARD) == "Try a different card or use PayPal."
        assert classifier.suggestion("weird", PaymentMethod.WALLET) == (
            "Try a different PayPal account or use a credit card."
        )

    def test_generic_fallback(self, classifier):
        assert classifier.suggestion("weird", None) == "Please try a different payment method."

    def test_customer_message_joins_message_and_suggestion(self, classifier):
        info = classifier.classify("card_declined", None, PaymentMethod.CARD)
        assert info.customer_message == (
            "Your card was declined. Please try a different card. Try using a different card or contact your bank."
        )


class TestRetry:
    def test_retryable_below_limit(self, classifier):
        assert classifier.should_retry("processing_error", 0) is True
        assert classifier.should_retry("rate_limit", MAX_RETRY_ATTEMPTS - 1) is True

    def test_stops_at_limit(self, classifier):
        assert classifier.should_retry("processing_error", MAX_RETRY_ATTEMPTS) is False

    def test_declines_are_never_retried(self, classifier):
        assert classifier.should_retry("card_declined", 0) is False
        assert classifier.should_retry(None, 0) is False
