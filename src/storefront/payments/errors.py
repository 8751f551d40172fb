"""Turns raw gateway failures into messages a customer can act on.

Classification is tiered: an exact gateway code wins, then keywords in the
raw gateway message, then a generic fallback. The raw message is logged but
never shown to the customer.
"""

from dataclasses import dataclass

import structlog

from storefront.payments.gateway.port import PaymentMethod

logger = structlog.get_logger(__name__)

DEFAULT_CODE = "default"

ERROR_MESSAGES = {
    # Card gateway codes
    "card_declined": "Your card was declined. Please try a different card.",
    "insufficient_funds": "Insufficient funds. Please try a different card.",
    "expired_card": "Your card has expired. Please use a different card.",
    "incorrect_cvc": "The security code (CVC) is incorrect.",
    "incorrect_number": "The card number is incorrect.",
    "invalid_expiry_month": "The expiration month is invalid.",
    "invalid_expiry_year": "The expiration year is invalid.",
    "processing_error": "An error occurred while processing your card. Please try again.",
    "rate_limit": "Too many requests. Please wait a moment and try again.",
    # Wallet gateway codes
    "INSTRUMENT_DECLINED": "Your payment method was declined. Please try a different method.",
    "PAYER_ACTION_REQUIRED": "Additional action is required to complete this payment.",
    "PAYEE_BLOCKED_TRANSACTION": "This transaction cannot be processed.",
    # Generic
    "authentication_failed": "Payment authentication failed. Please contact support.",
    "gateway_unavailable": "Payment service is temporarily unavailable. Please try again later.",
    "invalid_amount": "Invalid payment amount.",
    "currency_not_supported": "This currency is not supported.",
    DEFAULT_CODE: "Payment could not be processed. Please try again or use a different payment method.",
}

# Keyword -> code used when the gateway code is unknown. First match wins.
MESSAGE_KEYWORDS = (
    (("declined",), "card_declined"),
    (("insufficient",), "insufficient_funds"),
    (("expired",), "expired_card"),
    (("cvc", "cvv"), "incorrect_cvc"),
)

NON_RECOVERABLE_CODES = frozenset({"authentication_failed", "gateway_unavailable", "PAYEE_BLOCKED_TRANSACTION"})

RETRYABLE_CODES = frozenset({"processing_error", "rate_limit", "gateway_unavailable"})
MAX_RETRY_ATTEMPTS = 3

SUGGESTIONS = {
    "card_declined": "Try using a different card or contact your bank.",
    "insufficient_funds": "Use a different card or try a smaller amount.",
    "expired_card": "Update your card information or use a different card.",
    "incorrect_cvc": "Check the 3-digit code on the back of your card.",
    "incorrect_number": "Double-check your card number.",
    "processing_error": "Wait a moment and try again.",
    "rate_limit": "Please wait 30 seconds before trying again.",
    "INSTRUMENT_DECLINED": "Try a different PayPal account or payment method.",
    "gateway_unavailable": "Try again in a few minutes or use bank transfer.",
}

METHOD_SUGGESTIONS = {
    PaymentMethod.CARD: "Try a different card or use PayPal.",
    PaymentMethod.WALLET: "Try a different PayPal account or use a credit card.",
}
DEFAULT_SUGGESTION = "Please try a different payment method."


@dataclass(frozen=True)
class PaymentErrorInfo:
    error_code: str
    message: str
    recoverable: bool
    suggestion: str

    @property
    def customer_message(self) -> str:
        return f"{self.message} {self.suggestion}"


class PaymentErrorClassifier:
    def classify(
        self,
        error_code: str | None,
        raw_message: str | None,
        payment_method: PaymentMethod | None,
    ) -> PaymentErrorInfo:
        code = error_code or DEFAULT_CODE
        logger.warning(
            "payment_error",
            payment_method=payment_method.value if payment_method else None,
            error_code=code,
            raw_message=raw_message,
        )
        return PaymentErrorInfo(
            error_code=code,
            message=self.user_message(code, raw_message),
            recoverable=self.is_recoverable(code),
            suggestion=self.suggestion(code, payment_method),
        )

    @staticmethod
    def user_message(error_code: str, raw_message: str | None) -> str:
        if error_code != DEFAULT_CODE and error_code in ERROR_MESSAGES:
            return ERROR_MESSAGES[error_code]

        lowered = (raw_message or "").lower()
        for keywords, code in MESSAGE_KEYWORDS:
            if any(keyword in lowered for keyword in keywords):
                return ERROR_MESSAGES[code]

        return ERROR_MESSAGES[DEFAULT_CODE]

    @staticmethod
    def is_recoverable(error_code: str) -> bool:
        return error_code not in NON_RECOVERABLE_CODES

    @staticmethod
    def suggestion(error_code: str, payment_method: PaymentMethod | None) -> str:
        if error_code in SUGGESTIONS:
            return SUGGESTIONS[error_code]
        return METHOD_SUGGESTIONS.get(payment_method, DEFAULT_SUGGESTION)

    @staticmethod
    def should_retry(error_code: str | None, attempt_count: int) -> bool:
        return error_code in RETRYABLE_CODES and attempt_count < MAX_RETRY_ATTEMPTS
