"""Checkout orchestration: from a session cart to a committed order.

One checkout attempt runs strictly in sequence::

    cart not empty → stock valid → form valid → shipping valid → addresses valid
        → manual transfer: reference → place order (payment pending)
        → card / wallet:   charge → place order (paid)
    → clear cart → notify

Nothing before a committed order touches the cart. The charge happens
before the order is written; if the write then fails the customer has paid
without an order, which is logged as critical for manual reconciliation and
is never retried or refunded automatically. Notification runs after commit
and its failures are only logged.
"""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from storefront.cart.cart import Cart, CartSummary, StockIssue, StockIssueReason
from storefront.catalogue.product import ProductCatalog
from storefront.checkout.form import CheckoutSubmission, validate_submission
from storefront.identity.session import Session
from storefront.notifications.service import OrderNotificationService
from storefront.ordering.order import Address, Order, PaymentStatus
from storefront.ordering.placement import OrderDraft, OrderLine, StockConflict, place_order
from storefront.payments.errors import PaymentErrorClassifier
from storefront.payments.gateway.port import GatewayNotConfigured, IntentResult, PaymentMethod, PaymentResult
from storefront.payments.processor import PaymentProcessor
from storefront.shared.money import ZERO, to_cents
from storefront.shipping.calculator import AvailableMethods, ShippingCalculator
from storefront.shipping.method import ShippingQuote
from storefront.utils.logging import add_context, clear_context

logger = structlog.get_logger(__name__)

EMPTY_CART_MESSAGE = "Your cart is empty."
STOCK_ISSUE_MESSAGE = "Some items are no longer available. Please review your cart."
RECONCILIATION_MESSAGE = (
    "An error occurred while creating your order. Please contact support with your payment confirmation."
)
ORDER_FAILED_MESSAGE = "We could not create your order. Please try again."


class CheckoutOutcome(Enum):
    SUCCESS = "success"
    EMPTY_CART = "empty_cart"
    STOCK_ISSUE = "stock_issue"
    VALIDATION_ERROR = "validation_error"
    SHIPPING_ERROR = "shipping_error"
    PAYMENT_FAILED = "payment_failed"
    RECONCILIATION_REQUIRED = "reconciliation_required"
    ORDER_FAILED = "order_failed"


@dataclass(frozen=True)
class CheckoutResult:
    outcome: CheckoutOutcome
    message: str
    order_number: str | None = None
    email: str | None = None
    total: Decimal | None = None
    payment_status: str | None = None
    transaction_id: str | None = None
    stock_issues: dict[str, StockIssue] = field(default_factory=dict)
    error_code: str | None = None
    recoverable: bool | None = None
    bank_transfer: dict | None = None
    notification_sent: bool | None = None

    @property
    def success(self) -> bool:
        return self.outcome is CheckoutOutcome.SUCCESS

    def __bool__(self) -> bool:
        return self.success


class CheckoutOrchestrator:
    def __init__(
        self,
        catalog: ProductCatalog | None = None,
        shipping: ShippingCalculator | None = None,
        processor: PaymentProcessor | None = None,
        classifier: PaymentErrorClassifier | None = None,
        notifier: OrderNotificationService | None = None,
    ) -> None:
        self.catalog = catalog or ProductCatalog()
        self.shipping = shipping or ShippingCalculator()
        self.processor = processor or PaymentProcessor()
        self.classifier = classifier or PaymentErrorClassifier()
        self.notifier = notifier or OrderNotificationService()

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def checkout(self, session: Session, submission: CheckoutSubmission) -> CheckoutResult:
        add_context(session_id=session.session_id)
        try:
            return self._checkout(session, submission)
        finally:
            clear_context("session_id", "order_number")

    def _checkout(self, session: Session, submission: CheckoutSubmission) -> CheckoutResult:
        cart = Cart(session, self.catalog)

        if cart.is_empty():
            return CheckoutResult(outcome=CheckoutOutcome.EMPTY_CART, message=EMPTY_CART_MESSAGE)

        issues = cart.validate_stock()
        if issues:
            logger.info("checkout_stock_issues", products=sorted(issues))
            return CheckoutResult(
                outcome=CheckoutOutcome.STOCK_ISSUE,
                message=STOCK_ISSUE_MESSAGE,
                stock_issues=issues,
            )

        errors = validate_submission(submission, self.processor)
        if errors:
            return CheckoutResult(outcome=CheckoutOutcome.VALIDATION_ERROR, message=". ".join(errors))

        summary = cart.get_summary()
        shipping = self.shipping.validate_shipping_method(
            submission.shipping_method,
            submission.country,
            summary.total_weight,
            summary.subtotal,
        )
        if not shipping.valid:
            return CheckoutResult(outcome=CheckoutOutcome.SHIPPING_ERROR, message=shipping.error)

        tax = ZERO
        total = summary.subtotal + shipping.cost + tax
        draft = self._draft(session, submission, summary, shipping.method_id, shipping.method_name, shipping.cost)
        address_errors = _address_errors(draft)
        if address_errors:
            return CheckoutResult(outcome=CheckoutOutcome.VALIDATION_ERROR, message=". ".join(address_errors))

        order_context = {"email": submission.email, "customer_name": f"{submission.first_name} {submission.last_name}"}

        if submission.method is PaymentMethod.MANUAL_TRANSFER:
            return self._manual_transfer(session, cart, draft, total, order_context)
        return self._charge_and_place(session, cart, submission, draft, total, order_context)

    def _manual_transfer(self, session, cart, draft, total, order_context) -> CheckoutResult:
        payment = self.processor.process(PaymentMethod.MANUAL_TRANSFER, total, {}, order_context)
        if not payment.success:
            return self._payment_failed(payment, PaymentMethod.MANUAL_TRANSFER, total)

        try:
            order = place_order(_with_payment(draft, PaymentStatus.PENDING.value, payment.reference))
        except StockConflict as conflict:
            return self._stock_conflict(conflict)
        except ValidationError as exc:
            logger.warning("checkout_order_rejected", errors=exc.messages)
            return CheckoutResult(outcome=CheckoutOutcome.VALIDATION_ERROR, message=". ".join(_flatten(exc.messages)))
        except Exception as exc:
            # Nothing was charged, so the customer can simply retry
            logger.error("order_placement_failed", payment_method=draft.payment_method, error=str(exc), exc_info=True)
            return CheckoutResult(outcome=CheckoutOutcome.ORDER_FAILED, message=ORDER_FAILED_MESSAGE, total=total)

        bank_transfer = {
            "reference": payment.reference,
            "amount": str(order.total_amount),
            "bank_details": payment.bank_details,
            "instructions": payment.instructions,
        }
        session.bank_transfer_details = bank_transfer
        return self._complete(session, cart, order, payment, bank_transfer=bank_transfer)

    def _charge_and_place(self, session, cart, submission, draft, total, order_context) -> CheckoutResult:
        method = submission.method
        try:
            payment = self.processor.process(method, total, submission.payment_data, order_context)
        except GatewayNotConfigured as exc:
            logger.error("payment_gateway_not_configured", payment_method=method.value, error=str(exc))
            payment = PaymentResult.failed(method, total, "gateway_unavailable", str(exc))

        if not payment.success:
            return self._payment_failed(payment, method, total)

        try:
            order = place_order(_with_payment(draft, PaymentStatus.PAID.value, payment.transaction_id))
        except Exception as exc:
            # Funds are captured but no order exists. Never re-charge here.
            logger.critical(
                "payment_captured_without_order",
                transaction_id=payment.transaction_id,
                payment_method=method.value,
                amount=str(total),
                email=submission.email,
                error=str(exc),
                exc_info=True,
            )
            return CheckoutResult(
                outcome=CheckoutOutcome.RECONCILIATION_REQUIRED,
                message=RECONCILIATION_MESSAGE,
                transaction_id=payment.transaction_id,
                total=total,
            )

        return self._complete(session, cart, order, payment)

    def _payment_failed(self, payment: PaymentResult, method: PaymentMethod, total: Decimal) -> CheckoutResult:
        info = self.classifier.classify(payment.error_code, payment.error_message, method)
        return CheckoutResult(
            outcome=CheckoutOutcome.PAYMENT_FAILED,
            message=info.customer_message,
            error_code=info.error_code,
            recoverable=info.recoverable,
            total=total,
        )

    def _complete(self, session, cart, order: Order, payment: PaymentResult, bank_transfer=None) -> CheckoutResult:
        add_context(order_number=order.order_number)
        cart.clear()
        session.record_last_order(order.order_number, order.email)

        notification_sent = self._notify(order.order_number)
        return CheckoutResult(
            outcome=CheckoutOutcome.SUCCESS,
            message=f"Thank you! Your order {order.order_number} has been placed.",
            order_number=order.order_number,
            email=order.email,
            total=order.total_amount,
            payment_status=order.payment_status,
            transaction_id=payment.transaction_id,
            bank_transfer=bank_transfer,
            notification_sent=notification_sent,
        )

    def _notify(self, order_number: str) -> bool:
        try:
            sent = self.notifier.send_order_confirmation(order_number)
        except Exception as exc:
            logger.error("order_confirmation_failed", order_number=order_number, error=str(exc))
            return False
        if not sent:
            logger.error("order_confirmation_not_sent", order_number=order_number)
        return bool(sent)

    @staticmethod
    def _stock_conflict(conflict: StockConflict) -> CheckoutResult:
        logger.warning("checkout_stock_conflict", product_id=conflict.product_id, detail=conflict.message)
        reason = (
            StockIssueReason.INSUFFICIENT_STOCK
            if conflict.available is not None
            else StockIssueReason.PRODUCT_NOT_FOUND
        )
        return CheckoutResult(
            outcome=CheckoutOutcome.STOCK_ISSUE,
            message=STOCK_ISSUE_MESSAGE,
            stock_issues={
                conflict.product_id: StockIssue(
                    product_id=conflict.product_id,
                    reason=reason,
                    message=conflict.message,
                    requested=0,
                    available=conflict.available,
                )
            },
        )

    @staticmethod
    def _draft(session, submission, summary: CartSummary, method_id, method_name, shipping_cost) -> OrderDraft:
        return OrderDraft(
            email=submission.email,
            first_name=submission.first_name,
            last_name=submission.last_name,
            phone=submission.phone or None,
            user_id=session.user_id,
            shipping_address=submission.shipping_address(),
            billing_address=submission.billing_address_fields(),
            payment_method=submission.method.value,
            shipping_method_id=method_id,
            shipping_method_name=method_name,
            shipping_cost=shipping_cost,
            notes=submission.notes or None,
            wholesale=session.is_wholesale,
            lines=[
                OrderLine(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price_cents=to_cents(line.unit_price),
                )
                for line in summary.lines
            ],
        )

    # -------------------------------------------------------------------
    # Pre-checkout helpers
    # -------------------------------------------------------------------
    def quote_shipping(self, session: Session, country_code: str) -> AvailableMethods:
        summary = Cart(session, self.catalog).get_summary()
        return self.shipping.get_available_methods(country_code, summary.total_weight, summary.subtotal)

    def price_shipping(self, session: Session, method_id: str) -> ShippingQuote:
        summary = Cart(session, self.catalog).get_summary()
        return self.shipping.calculate_cost(method_id, summary.total_weight, summary.subtotal)

    def create_wallet_intent(self, session: Session, shipping_method_id: str | None = None) -> IntentResult:
        """Open a wallet intent for the current cart total (plus shipping when chosen)."""
        summary = Cart(session, self.catalog).get_summary()
        if summary.is_empty:
            return IntentResult(success=False, error_code="empty_cart", error_message=EMPTY_CART_MESSAGE)

        total = summary.subtotal
        if shipping_method_id:
            quote = self.shipping.calculate_cost(shipping_method_id, summary.total_weight, summary.subtotal)
            if not quote.success:
                return IntentResult(success=False, error_code="shipping_error", error_message=quote.error)
            total += quote.cost

        return self.processor.create_intent(total, {"description": "Storefront order", "items": summary.item_count})


def _with_payment(draft: OrderDraft, payment_status: str, transaction_id: str | None) -> OrderDraft:
    return replace(draft, payment_status=payment_status, transaction_id=transaction_id)


def _flatten(messages: dict) -> list[str]:
    return [f"{name}: {message}" for name, problems in messages.items() for message in problems]


def _address_errors(draft: OrderDraft) -> list[str]:
    """Problems the Address value object would reject at placement, found before any money moves."""
    errors = []
    for address in (draft.shipping_address, draft.billing_address):
        if address is None:
            continue
        try:
            Address(**address)
        except ValidationError as exc:
            errors.extend(_flatten(exc.messages))
    return errors
